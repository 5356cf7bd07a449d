from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.files.base import ContentFile
from django.utils import timezone

from core.services.documents import GiftCardDocument, render_gift_card_pdf
from core.services.emails import send_gift_card_email
from giftcards.models import GiftCard
from payments.services.references import generate_gift_card_code

logger = logging.getLogger(__name__)


class GiftCardBalanceError(Exception):
    pass


def create_gift_card(
    *,
    amount: Decimal,
    sender_name: str,
    sender_email: str,
    sender_phone: str = "",
    recipient_name: str = "",
    recipient_email: str = "",
    message: str = "",
    card_type: str = GiftCard.DIGITAL,
    payment=None,
    payment_method: str = "",
    is_paid: bool = False,
    invoice_number: str = "",
) -> GiftCard:
    now = timezone.now()
    gift_card = GiftCard.objects.create(
        code=generate_gift_card_code(),
        amount=amount,
        remaining_balance=amount,
        status=GiftCard.ACTIVE,
        type=card_type if card_type in dict(GiftCard.TYPES) else GiftCard.DIGITAL,
        sender_name=sender_name,
        sender_email=sender_email,
        sender_phone=sender_phone,
        recipient_name=recipient_name,
        recipient_email=recipient_email,
        message=message,
        payment=payment,
        payment_reference=payment.payment_reference if payment else "",
        invoice_number=invoice_number,
        payment_method=payment_method,
        payment_status="PAID" if is_paid else "CREATED",
        is_paid=is_paid,
        expires_at=now + timedelta(days=settings.GIFT_CARD_VALIDITY_DAYS),
    )
    logger.info("Created gift card %s for %s SEK (paid=%s)", gift_card.code, amount, is_paid)
    return gift_card


def update_balance(gift_card: GiftCard, new_balance: Decimal) -> GiftCard:
    """Set the remaining balance; a card emptied to zero is marked used."""

    new_balance = Decimal(new_balance)
    if new_balance < 0:
        raise GiftCardBalanceError("Balance cannot be negative.")
    if new_balance > gift_card.amount:
        raise GiftCardBalanceError("Balance cannot exceed the original amount.")

    gift_card.remaining_balance = new_balance
    update_fields = ["remaining_balance", "updated_at"]
    if new_balance == 0:
        gift_card.status = GiftCard.USED
        update_fields.append("status")
    elif gift_card.status == GiftCard.USED:
        gift_card.status = GiftCard.ACTIVE
        update_fields.append("status")
    gift_card.save(update_fields=update_fields)
    logger.info("Gift card %s balance set to %s", gift_card.code, new_balance)
    return gift_card


def redeem(gift_card: GiftCard, amount: Decimal) -> GiftCard:
    amount = Decimal(amount)
    if amount <= 0:
        raise GiftCardBalanceError("Redeemed amount must be positive.")
    if gift_card.effective_status != GiftCard.ACTIVE:
        raise GiftCardBalanceError(f"Gift card is {gift_card.effective_status}.")
    if not gift_card.is_paid:
        raise GiftCardBalanceError("Gift card has not been paid.")
    if amount > gift_card.remaining_balance:
        raise GiftCardBalanceError("Amount exceeds the remaining balance.")
    return update_balance(gift_card, gift_card.remaining_balance - amount)


def set_paid(gift_card: GiftCard, is_paid: bool) -> GiftCard:
    gift_card.is_paid = is_paid
    gift_card.payment_status = "PAID" if is_paid else "CREATED"
    gift_card.save(update_fields=["is_paid", "payment_status", "updated_at"])
    return gift_card


def cancel_gift_card(gift_card: GiftCard) -> GiftCard:
    gift_card.status = GiftCard.CANCELLED
    gift_card.save(update_fields=["status", "updated_at"])
    logger.info("Cancelled gift card %s", gift_card.code)
    return gift_card


def build_gift_card_document(gift_card: GiftCard) -> GiftCardDocument:
    return GiftCardDocument(
        code=gift_card.code,
        amount=gift_card.amount,
        valid_from=timezone.localtime(gift_card.created_at).date(),
        valid_until=timezone.localtime(gift_card.expires_at).date(),
        recipient_name=gift_card.recipient_name,
        sender_name=gift_card.sender_name,
        message=gift_card.message,
    )


def generate_gift_card_pdf(gift_card: GiftCard) -> bytes:
    """Render the card and keep a copy in storage."""

    content = render_gift_card_pdf(build_gift_card_document(gift_card))
    if gift_card.pdf:
        gift_card.pdf.delete(save=False)
    gift_card.pdf.save(f"{gift_card.code}.pdf", ContentFile(content), save=False)
    gift_card.save(update_fields=["pdf", "updated_at"])
    return content


def deliver_gift_card(gift_card: GiftCard) -> GiftCard:
    content = generate_gift_card_pdf(gift_card)
    send_gift_card_email(gift_card=gift_card, pdf=content)
    gift_card.is_emailed = True
    gift_card.save(update_fields=["is_emailed", "updated_at"])
    logger.info("Gift card %s emailed", gift_card.code)
    return gift_card
