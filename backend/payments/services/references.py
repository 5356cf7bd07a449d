"""Human-readable identifiers for payments, invoices, orders, bookings and gift cards.

Swish limits ``payeePaymentReference`` to 35 alphanumeric characters; the
``SC-`` payment reference stays well inside that.
"""

from __future__ import annotations

import re
from uuid import uuid4

from django.utils import timezone

PATTERNS = {
    "payment": re.compile(r"SC-\d{8}-[0-9A-F]{6}"),
    "invoice": re.compile(r"INV-\d{4}-[0-9A-F]{4}"),
    "order": re.compile(r"ORD-\d{8}-[0-9A-F]{6}"),
    "booking": re.compile(r"BK-\d{8}-[0-9A-F]{6}"),
    "gift_card": re.compile(r"GC-[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}"),
}


def _random_chunk(length: int) -> str:
    return uuid4().hex[:length].upper()


def _dated(prefix: str, length: int = 6) -> str:
    return f"{prefix}-{timezone.localdate():%Y%m%d}-{_random_chunk(length)}"


def generate_payment_reference() -> str:
    return _dated("SC")


def generate_order_reference() -> str:
    return _dated("ORD")


def generate_booking_reference() -> str:
    return _dated("BK")


def generate_invoice_number() -> str:
    return f"INV-{timezone.localdate():%y%m}-{_random_chunk(4)}"


def generate_gift_card_code() -> str:
    raw = _random_chunk(12)
    return f"GC-{raw[0:4]}-{raw[4:8]}-{raw[8:12]}"


def is_valid_reference(reference: str, kind: str) -> bool:
    try:
        pattern = PATTERNS[kind]
    except KeyError:
        raise ValueError(f"Unknown reference kind: {kind}") from None
    return bool(pattern.fullmatch(reference or ""))
