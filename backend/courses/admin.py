from django.contrib import admin

from .models import Category, CourseInstance, CourseTemplate


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(CourseTemplate)
class CourseTemplateAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "price", "max_participants", "is_active")
    list_filter = ("is_active", "category")
    search_fields = ("title",)


@admin.register(CourseInstance)
class CourseInstanceAdmin(admin.ModelAdmin):
    list_display = ("title", "start_date", "current_participants", "max_participants", "status", "is_published")
    list_filter = ("status", "is_published")
    search_fields = ("title", "location")
    ordering = ("-start_date",)
