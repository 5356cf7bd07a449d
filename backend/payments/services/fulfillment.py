from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from bookings.services.bookings import cancel_booking, create_booking
from courses.models import CourseInstance
from giftcards.models import GiftCard
from giftcards.services.giftcards import cancel_gift_card, create_gift_card, set_paid
from jobs.models import BackgroundJob
from jobs.services.queue import create_background_job
from payments.models import Payment
from payments.services.swish import get_swish_client, mask_phone_number
from shop.models import Product, ShopOrder
from shop.services.orders import cancel_order, create_order

logger = logging.getLogger(__name__)

STATUS_ALIASES = {
    "CREATED": Payment.CREATED,
    "PAID": Payment.PAID,
    "DECLINED": Payment.DECLINED,
    "CANCELLED": Payment.DECLINED,
    "ERROR": Payment.ERROR,
}


class InvalidTransitionError(Exception):
    pass


def normalize_status(value: Optional[str]) -> str:
    status = STATUS_ALIASES.get((value or "").strip().upper())
    if status is None:
        logger.warning("Unknown payment status %r, treating as CREATED", value)
        return Payment.CREATED
    return status


def transition_payment(
    payment: Payment,
    new_status: str,
    *,
    metadata: Optional[dict] = None,
    strict: bool = False,
) -> Payment:
    """
    Move a payment along CREATED -> PAID | DECLINED | ERROR.

    Terminal payments never change status again. Provider updates for them are
    recorded in metadata and otherwise ignored; with ``strict`` the attempt
    raises InvalidTransitionError instead. Becoming PAID fulfils the purchase
    exactly once; DECLINED and ERROR release anything reserved for it.
    """

    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment.pk)
        if metadata:
            payment.metadata = {**(payment.metadata or {}), **metadata}

        if new_status == payment.status or payment.is_terminal or new_status == Payment.CREATED:
            if new_status == payment.status == Payment.PAID and "fulfilment_error" in (payment.metadata or {}):
                _fulfil_in_savepoint(payment)
            if new_status != payment.status:
                if strict:
                    raise InvalidTransitionError(
                        f"Cannot move payment {payment.payment_reference} from {payment.status} to {new_status}."
                    )
                logger.warning(
                    "Ignoring %s update for payment %s already %s",
                    new_status,
                    payment.payment_reference,
                    payment.status,
                )
            payment.save(update_fields=["metadata", "updated_at"])
            return payment

        previous = payment.status
        payment.status = new_status
        update_fields = ["status", "metadata", "updated_at"]
        if new_status == Payment.PAID:
            payment.paid_at = timezone.now()
            update_fields.append("paid_at")
        payment.save(update_fields=update_fields)
        logger.info("Payment %s moved %s -> %s", payment.payment_reference, previous, new_status)

        if new_status == Payment.PAID:
            _fulfil_in_savepoint(payment)
        else:
            release_payment(payment)
    return payment


def _fulfil_in_savepoint(payment: Payment) -> bool:
    """
    Fulfil a payment whose PAID status must survive even if fulfilment fails.

    A failure rolls back only the fulfilment and is kept in
    ``metadata["fulfilment_error"]``. Another PAID update (a repeated callback
    or an admin setting PAID again) retries it.
    """

    try:
        with transaction.atomic():
            fulfil_payment(payment)
    except Exception as exc:
        logger.exception("Fulfilment failed for payment %s", payment.payment_reference)
        payment.metadata = {
            **(payment.metadata or {}),
            "fulfilment_error": {"error": str(exc), "failed_at": timezone.now().isoformat()},
        }
        payment.save(update_fields=["metadata", "updated_at"])
        return False

    if "fulfilment_error" in (payment.metadata or {}):
        payment.metadata = {key: value for key, value in payment.metadata.items() if key != "fulfilment_error"}
        payment.save(update_fields=["metadata", "updated_at"])
    return True


def handle_swish_callback(payload: dict) -> Payment:
    """Apply a Swish callback. Raises Payment.DoesNotExist for unknown references."""

    reference = payload.get("payeePaymentReference")
    swish_id = payload.get("id")
    if reference:
        payment = Payment.objects.get(payment_reference=reference)
    elif swish_id:
        payment = Payment.objects.get(swish_payment_id=swish_id)
    else:
        raise Payment.DoesNotExist("Callback did not include a payment reference.")

    callback = dict(payload)
    if callback.get("payerAlias"):
        callback["payerAlias"] = mask_phone_number(callback["payerAlias"])
    metadata = {"swish_callback": callback, "swish_callback_received_at": timezone.now().isoformat()}
    if payload.get("errorCode"):
        metadata["swish_error"] = {
            "error_code": payload.get("errorCode"),
            "error_message": payload.get("errorMessage", ""),
        }

    new_status = normalize_status(payload.get("status"))
    logger.info("Swish callback for %s with status %s", payment.payment_reference, new_status)
    return transition_payment(payment, new_status, metadata=metadata)


def update_payment_status(reference: str, new_status: str) -> Payment:
    payment = Payment.objects.get(payment_reference=reference)
    return transition_payment(
        payment,
        normalize_status(new_status),
        metadata={"status_set_by_admin_at": timezone.now().isoformat()},
        strict=True,
    )


def cancel_swish_payment(reference: str) -> Payment:
    payment = Payment.objects.get(payment_reference=reference)
    if payment.payment_method != Payment.SWISH or payment.status != Payment.CREATED:
        raise InvalidTransitionError("Only pending Swish payments can be cancelled.")

    if payment.swish_payment_id:
        get_swish_client().cancel_payment_request(payment.swish_payment_id)
    return transition_payment(
        payment,
        Payment.DECLINED,
        metadata={"cancelled_at": timezone.now().isoformat()},
    )


def _customer(payment: Payment) -> dict:
    info = payment.user_info or {}
    return {
        "customer_name": payment.customer_name,
        "customer_email": info.get("email", ""),
        "customer_phone": info.get("phone", "") or payment.phone_number,
    }


def _fulfil_course(payment: Payment):
    existing = payment.bookings.first()
    if existing:
        return existing
    course = CourseInstance.objects.get(pk=payment.product_id)
    booking = create_booking(
        course=course,
        number_of_participants=payment.quantity,
        payment=payment,
        status=Booking.CONFIRMED,
        payment_status=Payment.PAID,
        payment_method=payment.payment_method,
        message=(payment.user_info or {}).get("message", ""),
        enforce_capacity=False,
        **_customer(payment),
    )
    create_background_job(BackgroundJob.ORDER_CONFIRMATION, {"booking_id": booking.pk})
    create_background_job(BackgroundJob.ADMIN_NOTIFICATION, {"payment_id": payment.pk})
    return booking


def _fulfil_gift_card(payment: Payment):
    existing = payment.gift_cards.first()
    if existing:
        return existing
    details = (payment.metadata or {}).get("item_details") or {}
    customer = _customer(payment)
    gift_card = create_gift_card(
        amount=payment.amount,
        sender_name=customer["customer_name"],
        sender_email=customer["customer_email"],
        sender_phone=customer["customer_phone"],
        recipient_name=details.get("recipient_name", ""),
        recipient_email=details.get("recipient_email", ""),
        message=details.get("message", ""),
        card_type=details.get("type", GiftCard.DIGITAL),
        payment=payment,
        payment_method=payment.payment_method,
        is_paid=True,
    )
    payment.product_id = str(gift_card.pk)
    payment.save(update_fields=["product_id", "updated_at"])
    create_background_job(BackgroundJob.GIFT_CARD_DELIVERY, {"gift_card_id": gift_card.pk})
    return gift_card


def _fulfil_art_product(payment: Payment):
    existing = payment.orders.first()
    if existing:
        return existing
    product = Product.objects.get(pk=payment.product_id)
    order = create_order(
        product=product,
        quantity=payment.quantity,
        payment=payment,
        status=ShopOrder.CONFIRMED,
        payment_status=Payment.PAID,
        payment_method=payment.payment_method,
        enforce_stock=False,
        **_customer(payment),
    )
    create_background_job(BackgroundJob.ORDER_CONFIRMATION, {"order_id": order.pk})
    create_background_job(BackgroundJob.ADMIN_NOTIFICATION, {"payment_id": payment.pk})
    return order


FULFILMENT_HANDLERS = {
    Payment.COURSE: _fulfil_course,
    Payment.GIFT_CARD: _fulfil_gift_card,
    Payment.ART_PRODUCT: _fulfil_art_product,
}


def _settle_invoice_records(payment: Payment):
    payment.bookings.update(payment_status=Payment.PAID, updated_at=timezone.now())
    payment.orders.update(payment_status=Payment.PAID, updated_at=timezone.now())
    for gift_card in payment.gift_cards.all():
        set_paid(gift_card, True)
    logger.info("Invoice %s settled", payment.invoice_number)


def fulfil_payment(payment: Payment):
    """Create (or, for invoices, mark paid) whatever the payment bought. Safe to call twice."""

    if payment.payment_method == Payment.INVOICE:
        return _settle_invoice_records(payment)

    handler = FULFILMENT_HANDLERS.get(payment.product_type)
    if handler is None:
        logger.error("No fulfilment for product type %s on %s", payment.product_type, payment.payment_reference)
        return None
    record = handler(payment)
    logger.info("Fulfilled payment %s with %s", payment.payment_reference, record)
    return record


def release_payment(payment: Payment) -> None:
    """Undo reservations held for a payment that will not be paid."""

    for booking in payment.bookings.exclude(status=Booking.CANCELLED):
        cancel_booking(booking)
    payment.bookings.update(payment_status=payment.status)

    for order in payment.orders.exclude(status=ShopOrder.CANCELLED):
        cancel_order(order)
    payment.orders.update(payment_status=payment.status)

    for gift_card in payment.gift_cards.exclude(status=GiftCard.CANCELLED):
        cancel_gift_card(gift_card)
    payment.gift_cards.update(payment_status=payment.status)
