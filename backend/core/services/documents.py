"""PDF rendering for invoices and gift cards."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, A5, landscape
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

VAT_SHARE = Decimal("0.2")  # 25 % VAT included in the price is 20 % of the total


@dataclass
class InvoiceLine:
    description: str
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class InvoiceDocument:
    invoice_number: str
    invoice_date: date
    due_date: date
    customer_name: str
    customer_email: str
    address: str = ""
    postal_code: str = ""
    city: str = ""
    reference: str = ""
    payment_reference: str = ""
    lines: list[InvoiceLine] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal("0"))

    @property
    def vat(self) -> Decimal:
        return (self.total * VAT_SHARE).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @property
    def total_excluding_vat(self) -> Decimal:
        return self.total - self.vat


@dataclass
class GiftCardDocument:
    code: str
    amount: Decimal
    valid_from: date
    valid_until: date
    recipient_name: str = ""
    sender_name: str = ""
    message: str = ""


def format_sek(amount: Decimal) -> str:
    quantized = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole, _, cents = f"{quantized:,.2f}".partition(".")
    return f"{whole.replace(',', ' ')},{cents} kr"


def _studio_lines() -> list[str]:
    return [
        settings.STUDIO_NAME,
        settings.STUDIO_ADDRESS,
        f"{settings.STUDIO_POSTAL_CODE} {settings.STUDIO_CITY}",
        settings.STUDIO_EMAIL,
        settings.STUDIO_PHONE,
    ]


def _draw_lines(pdf: canvas.Canvas, x: float, y: float, lines: list[str], leading: float = 5 * mm) -> float:
    for line in lines:
        if line:
            pdf.drawString(x, y, line)
            y -= leading
    return y


def render_invoice_pdf(invoice: InvoiceDocument) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Faktura {invoice.invoice_number}")
    width, height = A4
    left = 20 * mm
    right = width - 20 * mm

    pdf.setFont("Helvetica-Bold", 22)
    pdf.drawString(left, height - 30 * mm, settings.STUDIO_NAME)
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawRightString(right, height - 30 * mm, "Faktura")

    pdf.setFont("Helvetica", 10)
    _draw_lines(pdf, left, height - 40 * mm, _studio_lines()[1:])

    meta = [
        ("Fakturanummer:", invoice.invoice_number),
        ("Fakturadatum:", f"{invoice.invoice_date:%Y-%m-%d}"),
        ("Förfallodatum:", f"{invoice.due_date:%Y-%m-%d}"),
    ]
    if invoice.reference:
        meta.append(("Er referens:", invoice.reference))
    y = height - 40 * mm
    for label, value in meta:
        pdf.drawString(right - 75 * mm, y, label)
        pdf.drawRightString(right, y, value)
        y -= 5 * mm

    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(left, height - 75 * mm, "Faktureras till")
    pdf.setFont("Helvetica", 10)
    _draw_lines(
        pdf,
        left,
        height - 81 * mm,
        [
            invoice.customer_name,
            invoice.address,
            f"{invoice.postal_code} {invoice.city}".strip(),
            invoice.customer_email,
        ],
    )

    y = height - 115 * mm
    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(left, y, "Beskrivning")
    pdf.drawRightString(right - 70 * mm, y, "Antal")
    pdf.drawRightString(right - 35 * mm, y, "À-pris")
    pdf.drawRightString(right, y, "Belopp")
    pdf.setStrokeColor(colors.grey)
    pdf.line(left, y - 2 * mm, right, y - 2 * mm)

    pdf.setFont("Helvetica", 10)
    y -= 8 * mm
    for line in invoice.lines:
        pdf.drawString(left, y, line.description[:60])
        pdf.drawRightString(right - 70 * mm, y, str(line.quantity))
        pdf.drawRightString(right - 35 * mm, y, format_sek(line.unit_price))
        pdf.drawRightString(right, y, format_sek(line.total))
        y -= 6 * mm

    pdf.line(left, y, right, y)
    y -= 7 * mm
    for label, value in (
        ("Summa exkl. moms:", invoice.total_excluding_vat),
        ("Moms (25%):", invoice.vat),
    ):
        pdf.drawString(right - 75 * mm, y, label)
        pdf.drawRightString(right, y, format_sek(value))
        y -= 6 * mm
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(right - 75 * mm, y, "Att betala:")
    pdf.drawRightString(right, y, format_sek(invoice.total))

    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(left, 55 * mm, "Betalningsinformation")
    pdf.setFont("Helvetica", 10)
    _draw_lines(
        pdf,
        left,
        49 * mm,
        [
            f"Bankgiro: {settings.STUDIO_BANKGIRO}",
            f"Ange fakturanummer {invoice.invoice_number} som referens vid betalning.",
            f"Betalas senast {invoice.due_date:%Y-%m-%d}.",
        ],
    )

    pdf.setFont("Helvetica", 8)
    pdf.setFillColor(colors.grey)
    pdf.drawCentredString(
        width / 2,
        15 * mm,
        f"{settings.STUDIO_NAME} | Org.nr {settings.STUDIO_ORG_NUMBER} | "
        f"Momsreg.nr {settings.STUDIO_VAT_NUMBER} | Bankgiro {settings.STUDIO_BANKGIRO}",
    )

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_gift_card_pdf(gift_card: GiftCardDocument) -> bytes:
    buffer = io.BytesIO()
    page = landscape(A5)
    pdf = canvas.Canvas(buffer, pagesize=page)
    pdf.setTitle(f"Presentkort {gift_card.code}")
    width, height = page

    pdf.setStrokeColor(colors.HexColor("#547264"))
    pdf.setLineWidth(2)
    pdf.rect(10 * mm, 10 * mm, width - 20 * mm, height - 20 * mm)

    pdf.setFont("Helvetica-Bold", 26)
    pdf.drawCentredString(width / 2, height - 30 * mm, settings.STUDIO_NAME)
    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawCentredString(width / 2, height - 42 * mm, "PRESENTKORT")

    pdf.setFont("Helvetica-Bold", 30)
    pdf.drawCentredString(width / 2, height - 62 * mm, format_sek(gift_card.amount))

    pdf.setFont("Helvetica", 12)
    pdf.drawCentredString(width / 2, height - 74 * mm, f"Kod: {gift_card.code}")
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(
        width / 2,
        height - 82 * mm,
        f"Giltigt från {gift_card.valid_from:%Y-%m-%d} till {gift_card.valid_until:%Y-%m-%d}",
    )

    y = height - 95 * mm
    if gift_card.recipient_name:
        pdf.drawString(25 * mm, y, f"Till: {gift_card.recipient_name}")
        y -= 6 * mm
    if gift_card.sender_name:
        pdf.drawString(25 * mm, y, f"Från: {gift_card.sender_name}")
        y -= 6 * mm
    if gift_card.message:
        pdf.setFont("Helvetica-Oblique", 10)
        pdf.drawString(25 * mm, y, gift_card.message[:90])

    pdf.setFont("Helvetica", 8)
    pdf.setFillColor(colors.grey)
    pdf.drawCentredString(
        width / 2,
        15 * mm,
        f"{settings.STUDIO_NAME}, {settings.STUDIO_ADDRESS}, {settings.STUDIO_POSTAL_CODE} {settings.STUDIO_CITY}",
    )

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
