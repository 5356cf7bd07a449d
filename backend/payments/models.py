from django.db import models


class Payment(models.Model):
    """One checkout attempt, paid by Swish or invoice."""

    CREATED = "CREATED"
    PAID = "PAID"
    DECLINED = "DECLINED"
    ERROR = "ERROR"
    STATUSES = [
        (CREATED, "Created"),
        (PAID, "Paid"),
        (DECLINED, "Declined"),
        (ERROR, "Error"),
    ]
    TERMINAL_STATUSES = (PAID, DECLINED, ERROR)

    SWISH = "swish"
    INVOICE = "invoice"
    METHODS = [
        (SWISH, "Swish"),
        (INVOICE, "Invoice"),
    ]

    COURSE = "course"
    GIFT_CARD = "gift_card"
    ART_PRODUCT = "art_product"
    PRODUCT_TYPES = [
        (COURSE, "Course"),
        (GIFT_CARD, "Gift card"),
        (ART_PRODUCT, "Art product"),
    ]

    payment_reference = models.CharField(max_length=35, unique=True)
    product_type = models.CharField(max_length=20, choices=PRODUCT_TYPES)
    product_id = models.CharField(max_length=64, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="SEK")
    quantity = models.PositiveIntegerField(default=1)
    payment_method = models.CharField(max_length=12, choices=METHODS)
    status = models.CharField(max_length=12, choices=STATUSES, default=CREATED)
    user_info = models.JSONField(default=dict, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    idempotency_key = models.CharField(max_length=128, unique=True, null=True, blank=True)
    swish_payment_id = models.CharField(max_length=64, blank=True, db_index=True)
    swish_callback_url = models.URLField(blank=True)
    invoice_number = models.CharField(max_length=32, blank=True, db_index=True)
    invoice_pdf = models.FileField(upload_to="invoices/", blank=True)
    email_sent_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.payment_reference} {self.amount} {self.currency} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def customer_name(self) -> str:
        info = self.user_info or {}
        return f"{info.get('first_name', '')} {info.get('last_name', '')}".strip()

    @property
    def customer_email(self) -> str:
        return (self.user_info or {}).get("email", "")
