from django.contrib import admin

from .models import BackgroundJob


@admin.register(BackgroundJob)
class BackgroundJobAdmin(admin.ModelAdmin):
    list_display = ("id", "job_type", "status", "attempts", "created_at", "completed_at")
    list_filter = ("status", "job_type")
    readonly_fields = ("created_at", "started_at", "completed_at", "result")
