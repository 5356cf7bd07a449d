from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class StudioUserAdmin(UserAdmin):
    list_display = ("email", "display_name", "is_staff", "is_active", "last_login")
    search_fields = ("email", "first_name", "last_name", "display_name")
    fieldsets = UserAdmin.fieldsets + (("Studio", {"fields": ("display_name",)}),)
