from django.contrib import admin

from .models import Booking, WaitlistEntry


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("reference", "course", "customer_name", "number_of_participants", "status", "payment_status", "payment_method")
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("reference", "customer_name", "customer_email", "course__title")
    readonly_fields = ("reference", "payment")


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    list_display = ("course", "customer_name", "customer_email", "number_of_participants", "created_at")
    search_fields = ("customer_name", "customer_email", "course__title")
