import uuid

from django.db import models
from django.utils import timezone


class BackgroundJob(models.Model):
    """Deferred work picked up by the cron-driven job processor."""

    INVOICE_EMAIL = "invoice_email"
    ORDER_CONFIRMATION = "order_confirmation"
    GIFT_CARD_DELIVERY = "gift_card_delivery"
    ADMIN_NOTIFICATION = "admin_notification"
    JOB_TYPES = [
        (INVOICE_EMAIL, "Invoice email"),
        (ORDER_CONFIRMATION, "Order confirmation"),
        (GIFT_CARD_DELIVERY, "Gift card delivery"),
        (ADMIN_NOTIFICATION, "Admin notification"),
    ]

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    STATUSES = [
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    job_type = models.CharField(max_length=40, choices=JOB_TYPES)
    job_data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING, db_index=True)
    attempts = models.PositiveIntegerField(default=0)
    result = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.job_type} {self.id} ({self.status})"

    def mark_processing(self):
        self.status = self.PROCESSING
        self.started_at = timezone.now()
        self.attempts += 1
        self.save(update_fields=["status", "started_at", "attempts"])

    def mark_completed(self, result: dict):
        self.status = self.COMPLETED
        self.completed_at = timezone.now()
        self.result = result
        self.save(update_fields=["status", "completed_at", "result"])

    def mark_failed(self, error: str):
        self.status = self.FAILED
        self.completed_at = timezone.now()
        self.result = {"success": False, "error": error}
        self.save(update_fields=["status", "completed_at", "result"])
