from __future__ import annotations

import logging

from bookings.models import Booking
from core.services.documents import format_sek
from core.services.emails import (
    send_admin_notification_email,
    send_booking_confirmation_email,
    send_order_confirmation_email,
)
from giftcards.models import GiftCard
from giftcards.services.giftcards import deliver_gift_card
from jobs.models import BackgroundJob
from jobs.services.queue import register_handler
from payments.models import Payment
from payments.services.invoices import send_invoice
from shop.models import ShopOrder

logger = logging.getLogger(__name__)


@register_handler(BackgroundJob.INVOICE_EMAIL)
def handle_invoice_email(job_data: dict) -> dict:
    payment = Payment.objects.get(pk=job_data["payment_id"])
    return send_invoice(payment)


@register_handler(BackgroundJob.ORDER_CONFIRMATION)
def handle_order_confirmation(job_data: dict) -> dict:
    if job_data.get("booking_id"):
        booking = Booking.objects.select_related("course").get(pk=job_data["booking_id"])
        send_booking_confirmation_email(booking=booking)
        return {"booking_reference": booking.reference}

    if job_data.get("order_id"):
        order = ShopOrder.objects.select_related("product").get(pk=job_data["order_id"])
        send_order_confirmation_email(order=order)
        return {"order_reference": order.order_reference}

    raise ValueError("order_confirmation job needs a booking_id or order_id.")


@register_handler(BackgroundJob.GIFT_CARD_DELIVERY)
def handle_gift_card_delivery(job_data: dict) -> dict:
    gift_card = GiftCard.objects.get(pk=job_data["gift_card_id"])
    deliver_gift_card(gift_card)
    return {"gift_card_code": gift_card.code}


@register_handler(BackgroundJob.ADMIN_NOTIFICATION)
def handle_admin_notification(job_data: dict) -> dict:
    payment = Payment.objects.get(pk=job_data["payment_id"])
    info = payment.user_info or {}
    title = (payment.metadata or {}).get("title") or payment.get_product_type_display()
    lines = [
        f"Ny beställning: {title}",
        "",
        f"Kund: {payment.customer_name} <{payment.customer_email}>",
        f"Telefon: {info.get('phone') or payment.phone_number or '-'}",
        f"Antal: {payment.quantity}",
        f"Belopp: {format_sek(payment.amount)}",
        f"Betalsätt: {payment.get_payment_method_display()}",
        f"Referens: {payment.payment_reference}",
    ]
    if payment.invoice_number:
        lines.append(f"Fakturanummer: {payment.invoice_number}")
    send_admin_notification_email(subject=f"Ny beställning - {title}", lines=lines)
    return {"payment_reference": payment.payment_reference}
