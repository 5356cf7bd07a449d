from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("payment_reference", "product_type", "amount", "payment_method", "status", "invoice_number", "created_at")
    list_filter = ("status", "payment_method", "product_type")
    search_fields = ("payment_reference", "invoice_number", "swish_payment_id")
    readonly_fields = ("payment_reference", "idempotency_key", "swish_payment_id", "metadata", "paid_at", "email_sent_at")
