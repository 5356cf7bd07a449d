from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking, WaitlistEntry
from bookings.services.bookings import cancel_booking, create_booking, participant_delta, update_booking
from courses.models import CourseInstance
from courses.services.participants import CourseFullError
from payments.models import Payment
from payments.services.checkout import create_invoice_payment

User = get_user_model()


@pytest.fixture
def staff_client(db):
    user = User.objects.create_user(
        username="eva@studioclay.test",
        email="eva@studioclay.test",
        password="examplepass",
        is_staff=True,
    )
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def course(db):
    start = timezone.now() + timedelta(days=14)
    return CourseInstance.objects.create(
        title="Drejning för nybörjare",
        start_date=start,
        end_date=start + timedelta(hours=3),
        price=Decimal("3300.00"),
        max_participants=5,
        location="Studio Clay",
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )


@pytest.fixture
def booking(course):
    return create_booking(
        course=course,
        customer_name="Greta Gäst",
        customer_email="greta@example.com",
        number_of_participants=2,
    )


def _participants(course):
    course.refresh_from_db()
    return course.current_participants


@pytest.mark.parametrize(
    "was_active,is_active,old,new,expected",
    [
        (True, True, 2, 3, 1),
        (True, True, 3, 1, -2),
        (True, False, 2, 2, -2),
        (False, True, 2, 4, 4),
        (False, False, 2, 5, 0),
    ],
)
def test_participant_delta(was_active, is_active, old, new, expected):
    assert (
        participant_delta(
            was_active=was_active,
            is_active=is_active,
            old_participants=old,
            new_participants=new,
        )
        == expected
    )


def test_create_booking_reserves_spots_and_prices(course, booking):
    assert booking.reference.startswith("BK-")
    assert booking.total_price == Decimal("6600.00")
    assert _participants(course) == 2


def test_create_booking_rejects_full_course(course, booking):
    with pytest.raises(CourseFullError):
        create_booking(course=course, customer_name="X", customer_email="x@example.com", number_of_participants=4)

    assert Booking.objects.count() == 1
    assert _participants(course) == 2


def test_update_booking_moves_participant_count(course, booking):
    update_booking(booking, {"number_of_participants": 4})
    assert _participants(course) == 4

    update_booking(booking, {"number_of_participants": 1})
    assert _participants(course) == 1

    booking.refresh_from_db()
    assert booking.total_price == Decimal("3300.00")


def test_cancel_and_reactivate_booking(course, booking):
    cancel_booking(booking)
    assert _participants(course) == 0

    # cancelling twice does not release twice
    cancel_booking(Booking.objects.get(pk=booking.pk))
    assert _participants(course) == 0

    update_booking(booking, {"status": Booking.CONFIRMED})
    assert _participants(course) == 2


def test_admin_update_changes_participants(staff_client, course, booking):
    response = staff_client.patch(
        f"/api/admin/bookings/{booking.pk}/",
        {"number_of_participants": 3, "message": "Vill sitta nära fönstret"},
        format="json",
    )

    assert response.status_code == 200, response.content
    body = response.json()
    assert body["number_of_participants"] == 3
    assert body["message"] == "Vill sitta nära fönstret"
    assert _participants(course) == 3


def test_admin_delete_cancels_booking(staff_client, course, booking):
    response = staff_client.delete(f"/api/admin/bookings/{booking.pk}/")

    assert response.status_code == 200
    assert response.json()["status"] == Booking.CANCELLED
    assert Booking.objects.filter(pk=booking.pk).exists()
    assert _participants(course) == 0


def test_admin_marks_invoice_booking_paid(staff_client, course):
    payment, booking = create_invoice_payment(
        product_type=Payment.COURSE,
        product_id=str(course.pk),
        quantity=2,
        user_info={"first_name": "Greta", "last_name": "Gäst", "email": "greta@example.com"},
        invoice_details={"address": "Storgatan 1", "postal_code": "111 22", "city": "Stockholm"},
    )

    response = staff_client.patch(
        f"/api/admin/bookings/{booking.pk}/",
        {"payment_status": Payment.PAID},
        format="json",
    )

    assert response.status_code == 200, response.content
    assert response.json()["payment_status"] == Payment.PAID
    payment.refresh_from_db()
    assert payment.status == Payment.PAID
    assert payment.paid_at is not None
    assert _participants(course) == 2


def test_admin_cannot_reopen_paid_booking_payment(staff_client, course):
    payment, booking = create_invoice_payment(
        product_type=Payment.COURSE,
        product_id=str(course.pk),
        user_info={"first_name": "Greta", "last_name": "Gäst", "email": "greta@example.com"},
        invoice_details={"address": "Storgatan 1", "postal_code": "111 22", "city": "Stockholm"},
    )
    staff_client.patch(f"/api/admin/bookings/{booking.pk}/", {"payment_status": Payment.PAID}, format="json")

    response = staff_client.patch(
        f"/api/admin/bookings/{booking.pk}/",
        {"payment_status": Payment.DECLINED},
        format="json",
    )

    assert response.status_code == 409
    payment.refresh_from_db()
    assert payment.status == Payment.PAID


def test_admin_rejects_unknown_payment_status(staff_client, booking):
    response = staff_client.patch(
        f"/api/admin/bookings/{booking.pk}/",
        {"payment_status": "MAYBE"},
        format="json",
    )

    assert response.status_code == 400


def test_booking_by_reference_is_public(db, booking):
    response = APIClient().get(f"/api/bookings/by-reference/{booking.reference}/")

    assert response.status_code == 200
    body = response.json()
    assert body["reference"] == booking.reference
    assert body["course_title"] == "Drejning för nybörjare"
    assert body["number_of_participants"] == 2
    assert "customer_email" not in body


def test_booking_by_unknown_reference_returns_404(db):
    response = APIClient().get("/api/bookings/by-reference/BK-NOPE/")

    assert response.status_code == 404


def test_anyone_can_join_waitlist_but_only_staff_can_read_it(db, staff_client, course):
    payload = {
        "course": course.pk,
        "customer_name": "Frank Vän",
        "customer_email": "frank@example.com",
        "number_of_participants": 2,
    }
    public = APIClient()

    response = public.post("/api/waitlist/", payload, format="json")

    assert response.status_code == 201, response.content
    assert WaitlistEntry.objects.filter(course=course).count() == 1
    assert public.get("/api/waitlist/").status_code in (401, 403)

    listing = staff_client.get(f"/api/admin/courses/{course.pk}/waitlist/")
    assert listing.status_code == 200
    assert listing.json()[0]["customer_email"] == "frank@example.com"
