from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class GiftCard(models.Model):
    """Prepaid value redeemable at the studio."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    STATUSES = [
        (ACTIVE, "Active"),
        (USED, "Used"),
        (EXPIRED, "Expired"),
        (CANCELLED, "Cancelled"),
    ]

    DIGITAL = "digital"
    PHYSICAL = "physical"
    TYPES = [
        (DIGITAL, "Digital"),
        (PHYSICAL, "Physical"),
    ]

    code = models.CharField(max_length=32, unique=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("1"))])
    remaining_balance = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="SEK")
    status = models.CharField(max_length=12, choices=STATUSES, default=ACTIVE)
    type = models.CharField(max_length=12, choices=TYPES, default=DIGITAL)
    sender_name = models.CharField(max_length=200)
    sender_email = models.EmailField()
    sender_phone = models.CharField(max_length=30, blank=True)
    recipient_name = models.CharField(max_length=200, blank=True)
    recipient_email = models.EmailField(blank=True)
    message = models.TextField(blank=True)
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="gift_cards",
    )
    payment_reference = models.CharField(max_length=32, blank=True)
    invoice_number = models.CharField(max_length=32, blank=True)
    payment_method = models.CharField(max_length=12, blank=True)
    payment_status = models.CharField(max_length=12, default="CREATED")
    is_paid = models.BooleanField(default=False)
    is_emailed = models.BooleanField(default=False)
    is_printed = models.BooleanField(default=False)
    pdf = models.FileField(upload_to="gift-cards/", blank=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.code} ({self.remaining_balance} {self.currency})"

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at < timezone.now()

    @property
    def effective_status(self) -> str:
        if self.status == self.ACTIVE and self.is_expired:
            return self.EXPIRED
        return self.status
