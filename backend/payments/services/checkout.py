from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction

from bookings.models import Booking
from bookings.services.bookings import create_booking
from courses.models import CourseInstance
from courses.services.participants import CourseFullError
from giftcards.services.giftcards import create_gift_card
from jobs.models import BackgroundJob
from jobs.services.queue import create_background_job
from payments.models import Payment
from payments.services.references import generate_invoice_number, generate_payment_reference
from payments.services.swish import (
    SwishError,
    build_callback_url,
    format_swish_phone_number,
    get_swish_client,
    mask_phone_number,
)
from shop.models import Product, ShopOrder
from shop.services.orders import InsufficientStockError, create_order

logger = logging.getLogger(__name__)

CONFIRMATION_PATHS = {
    Payment.COURSE: "/book-course/confirmation",
    Payment.GIFT_CARD: "/gift-card-flow/confirmation",
    Payment.ART_PRODUCT: "/shop/confirmation",
}


class CheckoutError(Exception):
    """The requested item cannot be bought as asked."""


@dataclass
class CheckoutItem:
    product_type: str
    product_id: str
    title: str
    unit_price: Decimal
    quantity: int
    target: Optional[object] = None

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity


def resolve_checkout_item(
    *,
    product_type: str,
    product_id: str = "",
    quantity: int = 1,
    amount: Optional[Decimal] = None,
) -> CheckoutItem:
    """Look up what is being bought and price it server-side."""

    if quantity < 1:
        raise CheckoutError("Quantity must be at least 1.")

    if product_type == Payment.COURSE:
        try:
            course = CourseInstance.objects.get(pk=product_id)
        except (CourseInstance.DoesNotExist, ValueError):
            raise CheckoutError("Course not found.") from None
        if not course.is_bookable:
            raise CheckoutError("Course is not open for booking.")
        if not course.has_room_for(quantity):
            raise CourseFullError(course, quantity)
        return CheckoutItem(
            product_type=product_type,
            product_id=str(course.pk),
            title=course.title,
            unit_price=Decimal(course.price),
            quantity=quantity,
            target=course,
        )

    if product_type == Payment.ART_PRODUCT:
        try:
            product = Product.objects.get(pk=product_id, is_published=True)
        except (Product.DoesNotExist, ValueError):
            raise CheckoutError("Product not found.") from None
        if product.stock_quantity < quantity:
            raise InsufficientStockError(product, quantity)
        return CheckoutItem(
            product_type=product_type,
            product_id=str(product.pk),
            title=product.title,
            unit_price=Decimal(product.price),
            quantity=quantity,
            target=product,
        )

    if product_type == Payment.GIFT_CARD:
        if amount is None or Decimal(amount) < 1:
            raise CheckoutError("Gift card amount must be at least 1 SEK.")
        return CheckoutItem(
            product_type=product_type,
            product_id="",
            title="Presentkort",
            unit_price=Decimal(amount),
            quantity=1,
        )

    raise CheckoutError(f"Unknown product type '{product_type}'.")


def build_confirmation_url(payment: Payment) -> str:
    path = CONFIRMATION_PATHS.get(payment.product_type, "/payment/confirmation")
    return f"{settings.FRONTEND_URL.rstrip('/')}{path}?reference={payment.payment_reference}"


def create_swish_payment(
    *,
    product_type: str,
    user_info: dict,
    phone_number: str,
    product_id: str = "",
    quantity: int = 1,
    amount: Optional[Decimal] = None,
    item_details: Optional[dict] = None,
    idempotency_key: Optional[str] = None,
) -> Payment:
    """
    Create a CREATED payment and ask Swish to send a payment request to the payer.

    Repeating a request with the same idempotency key returns the first payment
    without contacting Swish again. Fulfilment waits for the callback.
    """

    if idempotency_key:
        existing = Payment.objects.filter(idempotency_key=idempotency_key).first()
        if existing:
            logger.info("Idempotent replay for key %s, returning %s", idempotency_key, existing.payment_reference)
            return existing

    payer_alias = format_swish_phone_number(phone_number)
    item = resolve_checkout_item(
        product_type=product_type,
        product_id=product_id,
        quantity=quantity,
        amount=amount,
    )
    callback_url = build_callback_url()

    try:
        with transaction.atomic():
            payment = Payment.objects.create(
                payment_reference=generate_payment_reference(),
                product_type=item.product_type,
                product_id=item.product_id,
                amount=item.amount,
                quantity=item.quantity,
                payment_method=Payment.SWISH,
                status=Payment.CREATED,
                user_info=user_info,
                phone_number=payer_alias,
                idempotency_key=idempotency_key or None,
                swish_callback_url=callback_url,
                metadata={"item_details": item_details or {}, "title": item.title},
            )
    except IntegrityError:
        if not idempotency_key:
            raise
        return Payment.objects.get(idempotency_key=idempotency_key)

    client = get_swish_client()
    try:
        swish_request = client.create_payment_request(
            payee_payment_reference=payment.payment_reference,
            amount=item.amount,
            payer_alias=payer_alias,
            message=f"{settings.STUDIO_NAME}: {item.title}",
            callback_url=callback_url,
        )
    except SwishError as exc:
        logger.exception("Swish payment request failed for %s", payment.payment_reference)
        payment.status = Payment.ERROR
        payment.metadata = {
            **payment.metadata,
            "swish_error": {
                "message": str(exc),
                "status_code": getattr(exc, "status_code", None),
                "error_codes": getattr(exc, "error_codes", []),
            },
        }
        payment.save(update_fields=["status", "metadata", "updated_at"])
        raise

    payment.swish_payment_id = swish_request.id
    payment.metadata = {**payment.metadata, "swish_location": swish_request.location}
    payment.save(update_fields=["swish_payment_id", "metadata", "updated_at"])
    logger.info(
        "Swish payment %s created for %s SEK (payer %s, swish id %s)",
        payment.payment_reference,
        payment.amount,
        mask_phone_number(payer_alias),
        swish_request.id,
    )
    return payment


def _customer_name(user_info: dict) -> str:
    return f"{user_info.get('first_name', '')} {user_info.get('last_name', '')}".strip()


def _create_invoice_record(*, payment: Payment, item: CheckoutItem, user_info: dict, invoice_details: dict, item_details: dict):
    if item.product_type == Payment.COURSE:
        return create_booking(
            course=item.target,
            customer_name=_customer_name(user_info),
            customer_email=user_info["email"],
            customer_phone=user_info.get("phone", ""),
            number_of_participants=item.quantity,
            payment=payment,
            status=Booking.CONFIRMED,
            payment_status=Payment.CREATED,
            payment_method=Payment.INVOICE,
            invoice_number=payment.invoice_number,
            invoice_address=invoice_details.get("address", ""),
            invoice_postal_code=invoice_details.get("postal_code", ""),
            invoice_city=invoice_details.get("city", ""),
            invoice_reference=invoice_details.get("reference", ""),
            message=user_info.get("message", ""),
        )

    if item.product_type == Payment.GIFT_CARD:
        return create_gift_card(
            amount=item.amount,
            sender_name=_customer_name(user_info),
            sender_email=user_info["email"],
            sender_phone=user_info.get("phone", ""),
            recipient_name=item_details.get("recipient_name", ""),
            recipient_email=item_details.get("recipient_email", ""),
            message=item_details.get("message", ""),
            card_type=item_details.get("type", "digital"),
            payment=payment,
            payment_method=Payment.INVOICE,
            is_paid=False,
            invoice_number=payment.invoice_number,
        )

    return create_order(
        product=item.target,
        customer_name=_customer_name(user_info),
        customer_email=user_info["email"],
        customer_phone=user_info.get("phone", ""),
        quantity=item.quantity,
        payment=payment,
        status=ShopOrder.CONFIRMED,
        payment_status=Payment.CREATED,
        payment_method=Payment.INVOICE,
        invoice_number=payment.invoice_number,
    )


def create_invoice_payment(
    *,
    product_type: str,
    user_info: dict,
    invoice_details: dict,
    product_id: str = "",
    quantity: int = 1,
    amount: Optional[Decimal] = None,
    item_details: Optional[dict] = None,
):
    """
    Record an invoice purchase.

    The booking, gift card or order is created straight away with an unpaid
    payment status. Rendering and emailing the invoice happens in a background
    job. Returns ``(payment, record)``.
    """

    item_details = item_details or {}
    item = resolve_checkout_item(
        product_type=product_type,
        product_id=product_id,
        quantity=quantity,
        amount=amount,
    )

    with transaction.atomic():
        payment = Payment.objects.create(
            payment_reference=generate_payment_reference(),
            invoice_number=generate_invoice_number(),
            product_type=item.product_type,
            product_id=item.product_id,
            amount=item.amount,
            quantity=item.quantity,
            payment_method=Payment.INVOICE,
            status=Payment.CREATED,
            user_info=user_info,
            phone_number=user_info.get("phone", ""),
            metadata={
                "item_details": item_details,
                "invoice_details": invoice_details,
                "title": item.title,
            },
        )
        record = _create_invoice_record(
            payment=payment,
            item=item,
            user_info=user_info,
            invoice_details=invoice_details,
            item_details=item_details,
        )
        if item.product_type == Payment.GIFT_CARD:
            payment.product_id = str(record.pk)
            payment.save(update_fields=["product_id", "updated_at"])

        create_background_job(BackgroundJob.INVOICE_EMAIL, {"payment_id": payment.pk})
        create_background_job(BackgroundJob.ADMIN_NOTIFICATION, {"payment_id": payment.pk})

    logger.info(
        "Invoice payment %s (%s) created for %s SEK",
        payment.payment_reference,
        payment.invoice_number,
        payment.amount,
    )
    return payment, record


def get_payment_status(reference: str) -> dict:
    payment = Payment.objects.get(payment_reference=reference)
    summary = {
        "payment_reference": payment.payment_reference,
        "status": payment.status,
        "payment_method": payment.payment_method,
        "product_type": payment.product_type,
        "amount": str(payment.amount),
        "currency": payment.currency,
        "invoice_number": payment.invoice_number or None,
        "created_at": payment.created_at.isoformat(),
        "paid_at": payment.paid_at.isoformat() if payment.paid_at else None,
        "booking": None,
        "gift_card": None,
        "order": None,
    }

    booking = payment.bookings.select_related("course").first()
    if booking:
        summary["booking"] = {
            "reference": booking.reference,
            "status": booking.status,
            "course_title": booking.course.title,
            "start_date": booking.course.start_date.isoformat(),
            "number_of_participants": booking.number_of_participants,
        }
    gift_card = payment.gift_cards.first()
    if gift_card:
        summary["gift_card"] = {
            "code": gift_card.code if gift_card.is_paid else None,
            "amount": str(gift_card.amount),
            "expires_at": gift_card.expires_at.isoformat(),
            "is_paid": gift_card.is_paid,
        }
    order = payment.orders.select_related("product").first()
    if order:
        summary["order"] = {
            "order_reference": order.order_reference,
            "status": order.status,
            "product_title": order.product.title,
            "quantity": order.quantity,
        }
    return summary
