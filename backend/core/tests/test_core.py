from datetime import date, timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone
from rest_framework.test import APIClient

from core.services.documents import (
    GiftCardDocument,
    InvoiceDocument,
    InvoiceLine,
    format_sek,
    render_gift_card_pdf,
    render_invoice_pdf,
)
from courses.models import Category, CourseInstance
from giftcards.services.giftcards import create_gift_card
from payments.models import Payment
from payments.services.checkout import create_invoice_payment
from payments.services.invoices import build_invoice_document
from shop.models import Product

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
def invoice():
    return InvoiceDocument(
        invoice_number="INV-2401-AB12",
        invoice_date=date(2024, 1, 10),
        due_date=date(2024, 1, 24),
        customer_name="Greta Gäst",
        customer_email="greta@example.com",
        address="Storgatan 1",
        postal_code="111 22",
        city="Stockholm",
        lines=[InvoiceLine(description="Drejning för nybörjare", quantity=2, unit_price=Decimal("3300"))],
    )


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("0"), "0,00 kr"),
        (Decimal("450"), "450,00 kr"),
        (Decimal("1234.5"), "1 234,50 kr"),
        (Decimal("1000000.005"), "1 000 000,01 kr"),
    ],
)
def test_format_sek(amount, expected):
    assert format_sek(amount) == expected


def test_invoice_totals_split_out_vat(invoice):
    assert invoice.total == Decimal("6600")
    assert invoice.vat == Decimal("1320.00")
    assert invoice.total_excluding_vat == Decimal("5280.00")


def test_render_invoice_pdf(invoice):
    content = render_invoice_pdf(invoice)

    assert content.startswith(b"%PDF")
    assert len(content) > 1000


def test_render_gift_card_pdf():
    content = render_gift_card_pdf(
        GiftCardDocument(
            code="GC-AAAA-BBBB-CCCC",
            amount=Decimal("500"),
            valid_from=date(2024, 1, 10),
            valid_until=date(2025, 1, 10),
            recipient_name="Frank Vän",
            sender_name="Greta Gäst",
            message="Grattis på födelsedagen! " * 10,
        )
    )

    assert content.startswith(b"%PDF")


def test_invoice_document_from_payment(db, settings):
    start = timezone.now() + timedelta(days=14)
    course = CourseInstance.objects.create(
        title="Glasyrkväll",
        start_date=start,
        price=Decimal("650"),
        max_participants=8,
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )
    payment, _ = create_invoice_payment(
        product_type=Payment.COURSE,
        product_id=str(course.pk),
        quantity=3,
        user_info={"first_name": "Greta", "last_name": "Gäst", "email": "greta@example.com"},
        invoice_details={"address": "Storgatan 1", "postal_code": "111 22", "city": "Stockholm", "reference": "Kalas"},
    )

    document = build_invoice_document(payment)

    assert document.invoice_number == payment.invoice_number
    assert document.due_date - document.invoice_date == timedelta(days=settings.INVOICE_DUE_DAYS)
    assert document.customer_name == "Greta Gäst"
    assert document.reference == "Kalas"
    assert document.total == Decimal("1950")
    assert document.lines[0].description.startswith("Glasyrkväll ")


def test_dashboard_counts(staff_client):
    start = timezone.now() + timedelta(days=3)
    CourseInstance.objects.create(
        title="Glasyrkväll",
        start_date=start,
        price=Decimal("650"),
        current_participants=2,
        status=CourseInstance.PUBLISHED,
        is_published=True,
    )
    Product.objects.create(title="Kopp", price=Decimal("320"), stock_quantity=1, is_published=True)
    create_gift_card(amount=Decimal("500"), sender_name="A", sender_email="a@example.com", is_paid=True)
    Payment.objects.create(
        payment_reference="SC-20240101-ABCDEF",
        product_type=Payment.GIFT_CARD,
        amount=Decimal("500"),
        payment_method=Payment.INVOICE,
    )

    response = staff_client.get("/api/admin/dashboard/")

    assert response.status_code == 200
    body = response.json()
    assert body["courses"]["upcoming"] == 1
    assert body["courses"]["next_30_days"] == 1
    assert body["courses"]["booked_participants"] == 2
    assert body["products"]["low_stock"] == 1
    assert body["gift_cards"]["active"] == 1
    assert Decimal(body["gift_cards"]["outstanding_balance"]) == Decimal("500")
    assert body["payments"]["pending_invoices"] == 1
    assert body["payments"]["by_status"] == {Payment.CREATED: 1}
    assert body["jobs"]["total"] == 0


def test_dashboard_requires_staff(db):
    assert APIClient().get("/api/admin/dashboard/").status_code in (401, 403)


def test_devseed_refuses_without_debug(db, settings):
    settings.DEBUG = False

    with pytest.raises(CommandError):
        call_command("devseed", stdout=StringIO())


def test_devseed_populates_studio(db, settings):
    settings.DEBUG = True
    out = StringIO()

    call_command("devseed", stdout=out)

    assert User.objects.filter(email="admin@studioclay.test", is_superuser=True).exists()
    assert CourseInstance.objects.filter(is_published=True).count() == 3
    assert list(Category.objects.values_list("name", flat=True)) == ["Drejning", "Handbyggnad"]
    assert Product.objects.count() == 3
    assert Payment.objects.filter(payment_method=Payment.INVOICE).count() == 2
    assert "Development seed data created." in out.getvalue()
