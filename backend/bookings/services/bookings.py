from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from bookings.models import Booking
from courses.models import CourseInstance
from courses.services.participants import release_spots, reserve_spots
from payments.services.references import generate_booking_reference

logger = logging.getLogger(__name__)


def create_booking(
    *,
    course: CourseInstance,
    customer_name: str,
    customer_email: str,
    customer_phone: str = "",
    number_of_participants: int = 1,
    payment=None,
    status: str = Booking.CONFIRMED,
    payment_status: str = "CREATED",
    payment_method: str = "",
    invoice_number: str = "",
    invoice_address: str = "",
    invoice_postal_code: str = "",
    invoice_city: str = "",
    invoice_reference: str = "",
    message: str = "",
    enforce_capacity: bool = True,
) -> Booking:
    """Reserve seats on the course and record the booking in one transaction."""

    with transaction.atomic():
        reserve_spots(course.pk, number_of_participants, enforce_capacity=enforce_capacity)
        unit_price = Decimal(course.price)
        booking = Booking.objects.create(
            course=course,
            payment=payment,
            reference=generate_booking_reference(),
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            number_of_participants=number_of_participants,
            unit_price=unit_price,
            total_price=unit_price * number_of_participants,
            currency=course.currency,
            status=status,
            payment_status=payment_status,
            payment_method=payment_method,
            invoice_number=invoice_number,
            invoice_address=invoice_address,
            invoice_postal_code=invoice_postal_code,
            invoice_city=invoice_city,
            invoice_reference=invoice_reference,
            message=message,
        )
    logger.info(
        "Created booking %s on course %s for %s participants",
        booking.reference,
        course.pk,
        number_of_participants,
    )
    return booking


def participant_delta(
    *,
    was_active: bool,
    is_active: bool,
    old_participants: int,
    new_participants: int,
) -> int:
    """How much the course count moves when a booking changes."""

    if was_active and is_active:
        return new_participants - old_participants
    if was_active:
        return -old_participants
    if is_active:
        return new_participants
    return 0


def update_booking(booking: Booking, changes: dict) -> Booking:
    """Apply admin edits and keep the course participant count in step."""

    with transaction.atomic():
        booking = Booking.objects.select_for_update().get(pk=booking.pk)
        was_active = booking.is_active
        old_participants = booking.number_of_participants

        for field, value in changes.items():
            setattr(booking, field, value)
        if "number_of_participants" in changes:
            booking.total_price = booking.unit_price * booking.number_of_participants

        delta = participant_delta(
            was_active=was_active,
            is_active=booking.is_active,
            old_participants=old_participants,
            new_participants=booking.number_of_participants,
        )
        if delta > 0:
            reserve_spots(booking.course_id, delta, enforce_capacity=False)
        elif delta < 0:
            release_spots(booking.course_id, -delta)

        booking.save()
    logger.info("Updated booking %s (participant delta %s)", booking.reference, delta)
    return booking


def cancel_booking(booking: Booking) -> Booking:
    if booking.status == Booking.CANCELLED:
        return booking
    return update_booking(booking, {"status": Booking.CANCELLED})
