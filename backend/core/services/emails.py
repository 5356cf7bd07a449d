from __future__ import annotations

from typing import Iterable

from django.conf import settings
from django.core.mail import EmailMessage

from core.services.documents import format_sek


def _format_from_email() -> str:
    default_from = settings.DEFAULT_FROM_EMAIL
    email_addr = default_from
    if '<' in default_from and default_from.endswith('>'):
        email_addr = default_from.split('<', 1)[1].rstrip('>')
    return f"{settings.STUDIO_NAME} <{email_addr}>"


def _signature() -> list[str]:
    return [
        "",
        "Varma hälsningar,",
        settings.STUDIO_NAME,
        f"{settings.STUDIO_ADDRESS}, {settings.STUDIO_POSTAL_CODE} {settings.STUDIO_CITY}",
        f"{settings.STUDIO_EMAIL} | {settings.STUDIO_PHONE}",
    ]


def _send(
    *,
    subject: str,
    body_lines: list[str],
    recipients: Iterable[str],
    attachments: Iterable[tuple[str, bytes, str]] = (),
) -> int:
    message = EmailMessage(
        subject=subject,
        body="\n".join(body_lines + _signature()),
        from_email=_format_from_email(),
        to=list(recipients),
        reply_to=[settings.STUDIO_EMAIL],
    )
    for filename, content, mimetype in attachments:
        message.attach(filename, content, mimetype)
    return message.send(fail_silently=False)


def send_invoice_email(
    *,
    recipient: str,
    customer_name: str,
    title: str,
    invoice_number: str,
    amount,
    due_date,
    invoice_pdf: bytes,
    gift_card_pdf: bytes | None = None,
    gift_card_code: str = "",
) -> int:
    body_lines = [
        f"Hej {customer_name},",
        "",
        f"Tack för din beställning av {title}.",
        f"Bifogat finns faktura {invoice_number} på {format_sek(amount)}.",
        f"Betala till bankgiro {settings.STUDIO_BANKGIRO} senast {due_date:%Y-%m-%d} "
        f"och ange {invoice_number} som referens.",
    ]
    attachments = [(f"faktura-{invoice_number}.pdf", invoice_pdf, "application/pdf")]
    if gift_card_pdf:
        body_lines += ["", "Presentkortet är bifogat och blir giltigt när fakturan är betald."]
        attachments.append((f"presentkort-{gift_card_code}.pdf", gift_card_pdf, "application/pdf"))

    return _send(
        subject=f"Faktura för {title} - {invoice_number}",
        body_lines=body_lines,
        recipients=[recipient],
        attachments=attachments,
    )


def send_booking_confirmation_email(*, booking) -> int:
    course = booking.course
    body_lines = [
        f"Hej {booking.customer_name},",
        "",
        f"Din bokning av {course.title} är bekräftad.",
        f"Datum: {course.start_date:%Y-%m-%d %H:%M}",
        f"Plats: {course.location or settings.STUDIO_ADDRESS}",
        f"Antal deltagare: {booking.number_of_participants}",
        f"Totalt: {format_sek(booking.total_price)}",
        f"Bokningsreferens: {booking.reference}",
    ]
    if booking.payment_method == "invoice":
        body_lines.append(f"Faktura {booking.invoice_number} skickas i ett separat mejl.")
    return _send(
        subject=f"Bokningsbekräftelse - {course.title}",
        body_lines=body_lines,
        recipients=[booking.customer_email],
    )


def send_order_confirmation_email(*, order) -> int:
    body_lines = [
        f"Hej {order.customer_name},",
        "",
        f"Tack för ditt köp av {order.product.title}.",
        f"Antal: {order.quantity}",
        f"Totalt: {format_sek(order.total_price)}",
        f"Ordernummer: {order.order_reference}",
        "",
        "Vi hör av oss när din beställning är redo att hämtas i studion.",
    ]
    return _send(
        subject=f"Orderbekräftelse - {order.order_reference}",
        body_lines=body_lines,
        recipients=[order.customer_email],
    )


def send_gift_card_email(*, gift_card, pdf: bytes) -> int:
    recipient = gift_card.recipient_email or gift_card.sender_email
    greeting = gift_card.recipient_name or gift_card.sender_name
    body_lines = [
        f"Hej {greeting},",
        "",
        f"Här kommer ett presentkort från {settings.STUDIO_NAME} på {format_sek(gift_card.amount)}.",
        f"Presentkortskod: {gift_card.code}",
        f"Giltigt till: {gift_card.expires_at:%Y-%m-%d}",
    ]
    if gift_card.recipient_email and gift_card.sender_name:
        body_lines.insert(2, f"{gift_card.sender_name} har skickat dig ett presentkort.")
    if gift_card.message:
        body_lines += ["", gift_card.message]
    return _send(
        subject=f"Presentkort från {settings.STUDIO_NAME}",
        body_lines=body_lines,
        recipients=[recipient],
        attachments=[(f"presentkort-{gift_card.code}.pdf", pdf, "application/pdf")],
    )


def send_admin_notification_email(*, subject: str, lines: list[str]) -> int:
    return _send(
        subject=subject,
        body_lines=lines,
        recipients=[settings.ADMIN_NOTIFICATION_EMAIL],
    )
