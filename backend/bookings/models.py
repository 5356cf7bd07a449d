from django.core.validators import MinValueValidator
from django.db import models


class Booking(models.Model):
    """A customer's seat reservation on a course instance."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
    ]
    ACTIVE_STATUSES = (PENDING, CONFIRMED)

    course = models.ForeignKey("courses.CourseInstance", on_delete=models.PROTECT, related_name="bookings")
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    reference = models.CharField(max_length=32, unique=True)
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30, blank=True)
    number_of_participants = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="SEK")
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    payment_status = models.CharField(max_length=12, default="CREATED")
    payment_method = models.CharField(max_length=12, blank=True)
    invoice_number = models.CharField(max_length=32, blank=True)
    invoice_address = models.CharField(max_length=200, blank=True)
    invoice_postal_code = models.CharField(max_length=20, blank=True)
    invoice_city = models.CharField(max_length=100, blank=True)
    invoice_reference = models.CharField(max_length=100, blank=True)
    message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "id"]

    def __str__(self):
        return f"{self.reference} {self.customer_name} ({self.number_of_participants})"

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES


class WaitlistEntry(models.Model):
    """Someone who wants a seat on a full course."""

    course = models.ForeignKey("courses.CourseInstance", on_delete=models.CASCADE, related_name="waitlist")
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=30, blank=True)
    number_of_participants = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = "waitlist entries"

    def __str__(self):
        return f"{self.customer_email} waiting for {self.course}"
