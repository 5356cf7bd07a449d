from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from bookings.models import Booking
from courses.models import CourseInstance
from giftcards.models import GiftCard
from jobs.models import BackgroundJob
from payments.models import Payment
from payments.services import swish
from payments.services.references import is_valid_reference
from shop.models import Product, ShopOrder

User = get_user_model()

USER_INFO = {
    "first_name": "Greta",
    "last_name": "Gäst",
    "email": "Greta@Example.com",
    "phone": "0701234567",
}
INVOICE_DETAILS = {"address": "Storgatan 1", "postal_code": "111 22", "city": "Stockholm"}


@pytest.fixture
def client():
    return APIClient()


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
        max_participants=4,
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )


@pytest.fixture
def product(db):
    return Product.objects.create(
        title="Vas, blå glasyr",
        price=Decimal("890.00"),
        stock_quantity=1,
        is_published=True,
    )


def _swish_payload(product_type, **extra):
    payload = {
        "product_type": product_type,
        "user_info": dict(USER_INFO),
        "phone_number": "070-123 45 67",
    }
    payload.update(extra)
    return payload


def _invoice_payload(product_type, **extra):
    payload = {
        "product_type": product_type,
        "user_info": dict(USER_INFO),
        "invoice_details": dict(INVOICE_DETAILS),
    }
    payload.update(extra)
    return payload


def _job_types():
    return sorted(BackgroundJob.objects.values_list("job_type", flat=True))


def test_swish_checkout_creates_pending_payment(client, course):
    user_info = dict(USER_INFO, number_of_participants=2)
    response = client.post(
        "/api/payments/swish/create/",
        _swish_payload("course", product_id=str(course.pk), user_info=user_info),
        format="json",
    )

    assert response.status_code == 201, response.content
    body = response.json()
    assert body["success"] is True
    assert body["status"] == Payment.CREATED
    assert Decimal(body["amount"]) == Decimal("6600.00")
    assert body["swish_payment_id"]
    assert body["confirmation_url"] == (
        f"https://studioclay.test/book-course/confirmation?reference={body['payment_reference']}"
    )

    payment = Payment.objects.get(payment_reference=body["payment_reference"])
    assert is_valid_reference(payment.payment_reference, "payment")
    assert payment.quantity == 2
    assert payment.phone_number == "46701234567"
    assert payment.user_info["email"] == "greta@example.com"
    assert payment.swish_callback_url == "https://api.studioclay.test/api/payments/swish/callback/"
    # nothing is booked until Swish confirms the payment
    assert not Booking.objects.exists()
    course.refresh_from_db()
    assert course.current_participants == 0


def test_swish_checkout_is_idempotent(client, course):
    payload = _swish_payload("course", product_id=str(course.pk))

    first = client.post("/api/payments/swish/create/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-123")
    second = client.post("/api/payments/swish/create/", payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-123")

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()["payment_reference"] == second.json()["payment_reference"]
    assert Payment.objects.count() == 1


def test_swish_failure_marks_payment_error(monkeypatch, client, course):
    def reject(self, **kwargs):
        raise swish.SwishApiError("Swish rejected payment request (422).", status_code=422, error_codes=["RP03"])

    monkeypatch.setattr(swish.SwishClientStub, "create_payment_request", reject)

    response = client.post(
        "/api/payments/swish/create/",
        _swish_payload("course", product_id=str(course.pk)),
        format="json",
    )

    assert response.status_code == 502
    payment = Payment.objects.get()
    assert payment.status == Payment.ERROR
    assert payment.metadata["swish_error"]["error_codes"] == ["RP03"]


@pytest.mark.parametrize(
    "payload_overrides,expected_status",
    [
        ({"phone_number": "12345"}, 400),
        ({"product_id": "999999"}, 400),
        ({"product_id": ""}, 400),
    ],
)
def test_swish_checkout_rejects_bad_input(client, course, payload_overrides, expected_status):
    payload = _swish_payload("course", product_id=str(course.pk))
    payload.update(payload_overrides)

    response = client.post("/api/payments/swish/create/", payload, format="json")

    assert response.status_code == expected_status
    assert not Payment.objects.exists()


def test_swish_checkout_for_full_course_conflicts(client, course):
    user_info = dict(USER_INFO, number_of_participants=5)

    response = client.post(
        "/api/payments/swish/create/",
        _swish_payload("course", product_id=str(course.pk), user_info=user_info),
        format="json",
    )

    assert response.status_code == 409


def test_gift_card_checkout_needs_amount(client, db):
    response = client.post("/api/payments/swish/create/", _swish_payload("gift_card"), format="json")

    assert response.status_code == 400
    assert "amount" in response.json()


def test_sold_out_product_conflicts(client, product):
    response = client.post(
        "/api/payments/swish/create/",
        _swish_payload("art_product", product_id=str(product.pk), quantity=2),
        format="json",
    )

    assert response.status_code == 409


def test_invoice_booking_reserves_spots_and_queues_jobs(client, course):
    user_info = dict(USER_INFO, number_of_participants=3)

    response = client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("course", product_id=str(course.pk), user_info=user_info),
        format="json",
    )

    assert response.status_code == 201, response.content
    body = response.json()
    assert is_valid_reference(body["invoice_number"], "invoice")
    assert body["redirect_url"].startswith("https://studioclay.test/book-course/confirmation?reference=")

    booking = Booking.objects.get(reference=body["booking_reference"])
    assert booking.status == Booking.CONFIRMED
    assert booking.payment_status == Payment.CREATED
    assert booking.payment_method == Payment.INVOICE
    assert booking.invoice_number == body["invoice_number"]
    assert booking.invoice_city == "Stockholm"
    course.refresh_from_db()
    assert course.current_participants == 3
    assert _job_types() == [BackgroundJob.ADMIN_NOTIFICATION, BackgroundJob.INVOICE_EMAIL]


def test_invoice_gift_card_is_created_unpaid(client, db):
    response = client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("gift_card", amount="600.00", item_details={"recipient_name": "Frank"}),
        format="json",
    )

    assert response.status_code == 201, response.content
    payment = Payment.objects.get(payment_reference=response.json()["payment_reference"])
    gift_card = GiftCard.objects.get(payment=payment)
    assert gift_card.is_paid is False
    assert gift_card.amount == Decimal("600.00")
    assert gift_card.recipient_name == "Frank"
    assert payment.product_id == str(gift_card.pk)


def test_invoice_shop_order_takes_stock(client, product):
    response = client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("art_product", product_id=str(product.pk)),
        format="json",
    )

    assert response.status_code == 201, response.content
    order = ShopOrder.objects.get(order_reference=response.json()["order_reference"])
    assert order.payment_method == Payment.INVOICE
    product.refresh_from_db()
    assert product.stock_quantity == 0


def test_invoice_requires_billing_address(client, course):
    payload = _invoice_payload("course", product_id=str(course.pk))
    del payload["invoice_details"]

    response = client.post("/api/payments/invoice/create/", payload, format="json")

    assert response.status_code == 400
    assert not Payment.objects.exists()


def test_payment_status_summary(client, course):
    created = client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("course", product_id=str(course.pk)),
        format="json",
    ).json()

    response = client.get(f"/api/payments/status/{created['payment_reference']}/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == Payment.CREATED
    assert body["payment_method"] == Payment.INVOICE
    assert body["booking"]["reference"] == created["booking_reference"]
    assert body["gift_card"] is None
    assert client.get("/api/payments/status/SC-00000000-000000/").status_code == 404


def test_cancel_pending_swish_payment(client, course):
    reference = client.post(
        "/api/payments/swish/create/",
        _swish_payload("course", product_id=str(course.pk)),
        format="json",
    ).json()["payment_reference"]

    response = client.post(f"/api/payments/swish/{reference}/cancel/")

    assert response.status_code == 200
    assert response.json()["status"] == Payment.DECLINED
    assert client.post(f"/api/payments/swish/{reference}/cancel/").status_code == 409


def test_admin_marks_invoice_paid(staff_client, course):
    created = staff_client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("course", product_id=str(course.pk)),
        format="json",
    ).json()
    url = "/api/admin/payments/update-status/"

    response = staff_client.post(
        url,
        {"payment_reference": created["payment_reference"], "status": Payment.PAID},
        format="json",
    )

    assert response.status_code == 200, response.content
    assert response.json()["status"] == Payment.PAID
    booking = Booking.objects.get(reference=created["booking_reference"])
    assert booking.payment_status == Payment.PAID

    response = staff_client.post(
        url,
        {"payment_reference": created["payment_reference"], "status": Payment.DECLINED},
        format="json",
    )
    assert response.status_code == 409

    response = staff_client.post(
        url,
        {"payment_reference": "SC-00000000-000000", "status": Payment.PAID},
        format="json",
    )
    assert response.status_code == 404


def test_admin_payment_endpoints_require_staff(client, db):
    assert client.get("/api/admin/payments/").status_code in (401, 403)
    response = client.post(
        "/api/admin/payments/update-status/",
        {"payment_reference": "SC-00000000-000000", "status": Payment.PAID},
        format="json",
    )
    assert response.status_code in (401, 403)


def test_admin_payment_list_and_detail(staff_client, course):
    created = staff_client.post(
        "/api/payments/invoice/create/",
        _invoice_payload("course", product_id=str(course.pk)),
        format="json",
    ).json()

    listing = staff_client.get("/api/admin/payments/", {"status": Payment.CREATED})
    assert [row["payment_reference"] for row in listing.json()] == [created["payment_reference"]]

    detail = staff_client.get(f"/api/admin/payments/{created['payment_reference']}/")
    assert detail.status_code == 200
    assert detail.json()["customer_name"] == "Greta Gäst"
