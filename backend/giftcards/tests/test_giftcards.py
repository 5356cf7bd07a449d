from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from giftcards.models import GiftCard
from giftcards.services.giftcards import (
    GiftCardBalanceError,
    create_gift_card,
    deliver_gift_card,
    redeem,
    update_balance,
)
from payments.models import Payment
from payments.services.checkout import create_invoice_payment
from payments.services.references import is_valid_reference

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
def gift_card(db):
    return create_gift_card(
        amount=Decimal("500.00"),
        sender_name="Greta Gäst",
        sender_email="greta@example.com",
        recipient_name="Frank Vän",
        recipient_email="frank@example.com",
        message="Grattis!",
        payment_method="swish",
        is_paid=True,
    )


def _invoice_gift_card():
    return create_invoice_payment(
        product_type=Payment.GIFT_CARD,
        amount=Decimal("750"),
        user_info={"first_name": "Greta", "last_name": "Gäst", "email": "greta@example.com"},
        invoice_details={"address": "Storgatan 1", "postal_code": "111 22", "city": "Stockholm"},
        item_details={"recipient_name": "Frank Vän", "type": GiftCard.PHYSICAL},
    )


def test_new_gift_card_defaults(gift_card, settings):
    assert is_valid_reference(gift_card.code, "gift_card")
    assert gift_card.remaining_balance == gift_card.amount
    assert gift_card.status == GiftCard.ACTIVE
    assert gift_card.payment_status == "PAID"
    expected_expiry = timezone.now() + timedelta(days=settings.GIFT_CARD_VALIDITY_DAYS)
    assert abs(gift_card.expires_at - expected_expiry) < timedelta(minutes=1)


def test_unknown_card_type_falls_back_to_digital(db):
    card = create_gift_card(amount=Decimal("100"), sender_name="A", sender_email="a@example.com", card_type="plastic")

    assert card.type == GiftCard.DIGITAL
    assert card.is_paid is False


def test_emptying_balance_marks_card_used_and_refilling_reactivates(gift_card):
    update_balance(gift_card, Decimal("0"))
    gift_card.refresh_from_db()
    assert gift_card.status == GiftCard.USED

    update_balance(gift_card, Decimal("120"))
    gift_card.refresh_from_db()
    assert gift_card.status == GiftCard.ACTIVE
    assert gift_card.remaining_balance == Decimal("120.00")


@pytest.mark.parametrize("balance", [Decimal("-1"), Decimal("500.01")])
def test_balance_must_stay_within_original_amount(gift_card, balance):
    with pytest.raises(GiftCardBalanceError):
        update_balance(gift_card, balance)


def test_redeem_draws_down_balance(gift_card):
    redeem(gift_card, Decimal("200"))
    assert gift_card.remaining_balance == Decimal("300.00")

    with pytest.raises(GiftCardBalanceError):
        redeem(gift_card, Decimal("300.01"))

    redeem(gift_card, Decimal("300"))
    assert gift_card.status == GiftCard.USED


def test_redeem_refuses_unpaid_and_expired_cards(gift_card):
    gift_card.expires_at = timezone.now() - timedelta(days=1)
    gift_card.save()
    assert gift_card.effective_status == GiftCard.EXPIRED
    with pytest.raises(GiftCardBalanceError):
        redeem(gift_card, Decimal("10"))

    unpaid = create_gift_card(amount=Decimal("100"), sender_name="A", sender_email="a@example.com")
    with pytest.raises(GiftCardBalanceError):
        redeem(unpaid, Decimal("10"))


def test_deliver_gift_card_emails_pdf(gift_card, mailoutbox):
    deliver_gift_card(gift_card)

    gift_card.refresh_from_db()
    assert gift_card.is_emailed
    assert gift_card.pdf.name.endswith(".pdf")
    assert len(mailoutbox) == 1
    message = mailoutbox[0]
    assert message.to == ["frank@example.com"]
    filename, content, mimetype = message.attachments[0]
    assert filename == f"presentkort-{gift_card.code}.pdf"
    assert content.startswith(b"%PDF")
    assert mimetype == "application/pdf"


def test_update_balance_endpoint(staff_client, gift_card):
    url = f"/api/admin/gift-cards/{gift_card.pk}/update-balance/"

    response = staff_client.post(url, {"redeem_amount": "150.00"}, format="json")
    assert response.status_code == 200, response.content
    assert Decimal(response.json()["remaining_balance"]) == Decimal("350.00")

    response = staff_client.post(url, {"remaining_balance": "900.00"}, format="json")
    assert response.status_code == 400

    response = staff_client.post(url, {"remaining_balance": "1.00", "redeem_amount": "1.00"}, format="json")
    assert response.status_code == 400


def test_status_and_print_flags(staff_client, gift_card):
    base = f"/api/admin/gift-cards/{gift_card.pk}"

    response = staff_client.post(f"{base}/print-status/", {"value": True}, format="json")
    assert response.status_code == 200
    assert response.json()["is_printed"] is True

    response = staff_client.post(f"{base}/update-status/", {"status": GiftCard.CANCELLED}, format="json")
    assert response.status_code == 200
    assert response.json()["status"] == GiftCard.CANCELLED

    response = staff_client.post(f"{base}/update-status/", {"status": "lost"}, format="json")
    assert response.status_code == 400


def test_marking_invoice_gift_card_paid_settles_payment(staff_client):
    payment, gift_card = _invoice_gift_card()
    assert gift_card.is_paid is False
    assert gift_card.type == GiftCard.PHYSICAL

    response = staff_client.post(f"/api/admin/gift-cards/{gift_card.pk}/payment/", {"value": True}, format="json")

    assert response.status_code == 200, response.content
    assert response.json()["is_paid"] is True
    payment.refresh_from_db()
    assert payment.status == Payment.PAID


def test_pdf_download(staff_client, gift_card):
    response = staff_client.get(f"/api/admin/gift-cards/{gift_card.pk}/pdf/")

    assert response.status_code == 200
    assert response["Content-Type"] == "application/pdf"
    assert b"".join(response.streaming_content).startswith(b"%PDF")


def test_send_email_endpoint(staff_client, gift_card, mailoutbox):
    response = staff_client.post(f"/api/admin/gift-cards/{gift_card.pk}/send-email/")

    assert response.status_code == 200
    assert response.json()["is_emailed"] is True
    assert len(mailoutbox) == 1


def test_lookup_by_reference_hides_code_until_paid(db):
    payment, gift_card = _invoice_gift_card()
    client = APIClient()

    response = client.get("/api/gift-cards/by-reference/", {"reference": payment.payment_reference})
    assert response.status_code == 200
    body = response.json()
    assert body["code"] is None
    assert body["is_paid"] is False

    gift_card.is_paid = True
    gift_card.save()
    response = client.get("/api/gift-cards/by-reference/", {"reference": gift_card.code.lower()})
    assert response.json()["code"] == gift_card.code


def test_lookup_by_reference_errors(db):
    client = APIClient()

    assert client.get("/api/gift-cards/by-reference/").status_code == 400
    assert client.get("/api/gift-cards/by-reference/", {"reference": "GC-0000-0000-0000"}).status_code == 404
