from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from bookings.services.bookings import create_booking
from courses.models import Category, CourseInstance, CourseTemplate
from courses.services.participants import (
    CourseFullError,
    recalculate_participants,
    release_spots,
    reserve_spots,
)

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
def template(db):
    return CourseTemplate.objects.create(
        title="Drejning för nybörjare",
        description="Fyra kvällar vid drejskivan.",
        duration_minutes=180,
        price=Decimal("3300.00"),
        max_participants=6,
        location="Studio Clay, Stockholm",
    )


@pytest.fixture
def course(db):
    start = timezone.now() + timedelta(days=10)
    return CourseInstance.objects.create(
        title="Handbyggnad",
        start_date=start,
        end_date=start + timedelta(hours=3),
        price=Decimal("1950.00"),
        max_participants=4,
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )


def test_reserve_spots_counts_participants(course):
    reserve_spots(course.pk, 3)

    course.refresh_from_db()
    assert course.current_participants == 3
    assert course.available_spots == 1
    assert not course.is_full


def test_reserve_spots_refuses_overbooking(course):
    reserve_spots(course.pk, 3)

    with pytest.raises(CourseFullError):
        reserve_spots(course.pk, 2)

    course.refresh_from_db()
    assert course.current_participants == 3


def test_reserve_spots_can_skip_capacity_check(course):
    reserve_spots(course.pk, 6, enforce_capacity=False)

    course.refresh_from_db()
    assert course.current_participants == 6
    assert course.is_full
    assert course.available_spots == 0


def test_release_spots_never_goes_negative(course):
    reserve_spots(course.pk, 1)

    release_spots(course.pk, 5)

    course.refresh_from_db()
    assert course.current_participants == 0


def test_recalculate_ignores_cancelled_bookings(course):
    create_booking(course=course, customer_name="A", customer_email="a@example.com", number_of_participants=2)
    cancelled = create_booking(course=course, customer_name="B", customer_email="b@example.com")
    Booking.objects.filter(pk=cancelled.pk).update(status=Booking.CANCELLED)
    CourseInstance.objects.filter(pk=course.pk).update(current_participants=4)

    assert recalculate_participants(course) == 2
    course.refresh_from_db()
    assert course.current_participants == 2


def test_is_bookable_requires_published_future_course(course):
    assert course.is_bookable

    course.start_date = timezone.now() - timedelta(hours=1)
    assert not course.is_bookable

    course.start_date = timezone.now() + timedelta(days=1)
    course.status = CourseInstance.DRAFT
    assert not course.is_bookable


def test_create_course_from_template(staff_client, template):
    start = timezone.now() + timedelta(days=30)
    response = staff_client.post(
        "/api/admin/courses/",
        {
            "template": template.pk,
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(hours=3)).isoformat(),
            "status": CourseInstance.PUBLISHED,
            "is_published": True,
        },
        format="json",
    )

    assert response.status_code == 201, response.content
    body = response.json()
    assert body["title"] == "Drejning för nybörjare"
    assert Decimal(body["price"]) == Decimal("3300.00")
    assert body["max_participants"] == 6
    assert body["location"] == "Studio Clay, Stockholm"
    assert body["available_spots"] == 6


def test_create_course_without_template_needs_title_and_price(staff_client):
    start = timezone.now() + timedelta(days=30)
    response = staff_client.post(
        "/api/admin/courses/",
        {"start_date": start.isoformat(), "title": "Glasyrkväll"},
        format="json",
    )

    assert response.status_code == 400


def test_end_date_must_follow_start(staff_client):
    start = timezone.now() + timedelta(days=30)
    response = staff_client.post(
        "/api/admin/courses/",
        {
            "title": "Glasyrkväll",
            "price": "650.00",
            "start_date": start.isoformat(),
            "end_date": (start - timedelta(hours=1)).isoformat(),
        },
        format="json",
    )

    assert response.status_code == 400
    assert "end_date" in response.json()


def test_max_participants_cannot_drop_below_bookings(staff_client, course):
    reserve_spots(course.pk, 3)

    response = staff_client.patch(f"/api/admin/courses/{course.pk}/", {"max_participants": 2}, format="json")

    assert response.status_code == 400
    assert "max_participants" in response.json()


def test_deleting_booked_course_cancels_it(staff_client, course):
    create_booking(course=course, customer_name="A", customer_email="a@example.com")

    response = staff_client.delete(f"/api/admin/courses/{course.pk}/")

    assert response.status_code == 204
    course.refresh_from_db()
    assert course.status == CourseInstance.CANCELLED
    assert course.is_published is False


def test_deleting_empty_course_removes_it(staff_client, course):
    response = staff_client.delete(f"/api/admin/courses/{course.pk}/")

    assert response.status_code == 204
    assert not CourseInstance.objects.filter(pk=course.pk).exists()


def test_course_bookings_action_lists_bookings(staff_client, course):
    booking = create_booking(course=course, customer_name="A", customer_email="a@example.com")

    response = staff_client.get(f"/api/admin/courses/{course.pk}/bookings/")

    assert response.status_code == 200
    assert [row["reference"] for row in response.json()] == [booking.reference]


def test_admin_course_endpoints_require_staff(db, course):
    response = APIClient().get("/api/admin/courses/")

    assert response.status_code in (401, 403)


def test_public_courses_only_lists_upcoming_published(db, course):
    start = timezone.now() + timedelta(days=5)
    CourseInstance.objects.create(title="Utkast", start_date=start, price=Decimal("100"))
    CourseInstance.objects.create(
        title="Passerad",
        start_date=timezone.now() - timedelta(days=1),
        price=Decimal("100"),
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )

    response = APIClient().get("/api/public/courses/")

    assert response.status_code == 200
    titles = [row["title"] for row in response.json()]
    assert titles == ["Handbyggnad"]


def test_public_categories_are_listed_by_name(db):
    Category.objects.create(name="Drejning")
    Category.objects.create(name="Glasyr", description="Kvällar med glasyrprov.")

    response = APIClient().get("/api/public/categories/")

    assert response.status_code == 200
    assert [row["name"] for row in response.json()] == ["Drejning", "Glasyr"]


def test_admin_manages_categories(staff_client):
    response = staff_client.post("/api/admin/categories/", {"name": "Raku"}, format="json")
    assert response.status_code == 201

    response = staff_client.post("/api/admin/categories/", {"name": "Raku"}, format="json")
    assert response.status_code == 400
    assert APIClient().post("/api/admin/categories/", {"name": "Porslin"}, format="json").status_code in (401, 403)


def test_public_courses_filter_by_template_category(db, template, course):
    wheel = Category.objects.create(name="Drejning")
    template.category = wheel
    template.save(update_fields=["category"])
    start = timezone.now() + timedelta(days=20)
    CourseInstance.objects.create(
        template=template,
        title="Drejning för nybörjare",
        start_date=start,
        price=Decimal("3300"),
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )

    everything = APIClient().get("/api/public/courses/").json()
    assert [row["category"] for row in everything] == [None, "Drejning"]

    response = APIClient().get("/api/public/courses/", {"category": wheel.pk})
    assert [row["title"] for row in response.json()] == ["Drejning för nybörjare"]
