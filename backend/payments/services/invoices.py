from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.core.files.base import ContentFile
from django.utils import timezone

from core.services.documents import InvoiceDocument, InvoiceLine, render_invoice_pdf
from core.services.emails import send_invoice_email
from giftcards.services.giftcards import generate_gift_card_pdf
from payments.models import Payment

logger = logging.getLogger(__name__)


def _line_description(payment: Payment) -> str:
    title = (payment.metadata or {}).get("title") or payment.get_product_type_display()
    if payment.product_type == Payment.COURSE:
        booking = payment.bookings.select_related("course").first()
        if booking:
            return f"{booking.course.title} {booking.course.start_date:%Y-%m-%d}"
    if payment.product_type == Payment.GIFT_CARD:
        return "Presentkort"
    return title


def build_invoice_document(payment: Payment) -> InvoiceDocument:
    invoice_date = timezone.localtime(payment.created_at).date()
    details = (payment.metadata or {}).get("invoice_details") or {}
    unit_price = payment.amount / payment.quantity if payment.quantity else payment.amount
    return InvoiceDocument(
        invoice_number=payment.invoice_number,
        invoice_date=invoice_date,
        due_date=invoice_date + timedelta(days=settings.INVOICE_DUE_DAYS),
        customer_name=payment.customer_name,
        customer_email=payment.customer_email,
        address=details.get("address", ""),
        postal_code=details.get("postal_code", ""),
        city=details.get("city", ""),
        reference=details.get("reference", ""),
        payment_reference=payment.payment_reference,
        lines=[
            InvoiceLine(
                description=_line_description(payment),
                quantity=payment.quantity,
                unit_price=unit_price,
            )
        ],
    )


def generate_invoice_pdf(payment: Payment, invoice: InvoiceDocument | None = None) -> bytes:
    content = render_invoice_pdf(invoice or build_invoice_document(payment))
    payment.invoice_pdf.save(f"{payment.invoice_number}.pdf", ContentFile(content), save=False)
    payment.save(update_fields=["invoice_pdf", "updated_at"])
    return content


def send_invoice(payment: Payment) -> dict:
    """Render the invoice (plus gift card, if bought) and email it to the customer."""

    if payment.payment_method != Payment.INVOICE:
        raise ValueError(f"Payment {payment.payment_reference} is not an invoice payment.")
    if payment.email_sent_at:
        logger.info("Invoice %s already sent at %s", payment.invoice_number, payment.email_sent_at)
        return {"already_sent": True, "invoice_number": payment.invoice_number}

    invoice = build_invoice_document(payment)
    invoice_pdf = generate_invoice_pdf(payment, invoice)

    gift_card_pdf = None
    gift_card = payment.gift_cards.first() if payment.product_type == Payment.GIFT_CARD else None
    if gift_card:
        gift_card_pdf = generate_gift_card_pdf(gift_card)

    send_invoice_email(
        recipient=payment.customer_email,
        customer_name=payment.customer_name,
        title=invoice.lines[0].description,
        invoice_number=payment.invoice_number,
        amount=payment.amount,
        due_date=invoice.due_date,
        invoice_pdf=invoice_pdf,
        gift_card_pdf=gift_card_pdf,
        gift_card_code=gift_card.code if gift_card else "",
    )

    payment.email_sent_at = timezone.now()
    payment.save(update_fields=["email_sent_at", "updated_at"])
    logger.info("Invoice %s emailed to customer", payment.invoice_number)
    return {"invoice_number": payment.invoice_number, "gift_card_pdf": gift_card_pdf is not None}
