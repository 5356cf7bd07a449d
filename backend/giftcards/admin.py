from django.contrib import admin

from .models import GiftCard


@admin.register(GiftCard)
class GiftCardAdmin(admin.ModelAdmin):
    list_display = ("code", "amount", "remaining_balance", "status", "is_paid", "is_emailed", "is_printed", "expires_at")
    list_filter = ("status", "is_paid", "type", "payment_method")
    search_fields = ("code", "sender_email", "recipient_email", "payment_reference", "invoice_number")
    readonly_fields = ("code", "payment")
