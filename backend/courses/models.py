from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class CourseTemplate(models.Model):
    """Reusable definition of a class: what it is, what it costs, how many fit."""

    category = models.ForeignKey(
        "Category",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="templates",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    currency = models.CharField(max_length=3, default="SEK")
    max_participants = models.PositiveIntegerField(default=10)
    location = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["title"]

    def __str__(self):
        return self.title


class CourseInstance(models.Model):
    """A scheduled, bookable occurrence of a course."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    STATUSES = [
        (DRAFT, "Draft"),
        (PUBLISHED, "Published"),
        (CANCELLED, "Cancelled"),
    ]

    template = models.ForeignKey(
        "CourseTemplate",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="instances",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField(null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])
    currency = models.CharField(max_length=3, default="SEK")
    max_participants = models.PositiveIntegerField(default=10)
    current_participants = models.PositiveIntegerField(default=0)
    location = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=12, choices=STATUSES, default=DRAFT)
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_date", "id"]

    def __str__(self):
        return f"{self.title} ({self.start_date:%Y-%m-%d})"

    @property
    def available_spots(self) -> int:
        return max(self.max_participants - self.current_participants, 0)

    @property
    def is_full(self) -> bool:
        return self.available_spots == 0

    @property
    def is_bookable(self) -> bool:
        return (
            self.is_published
            and self.status == self.PUBLISHED
            and self.start_date > timezone.now()
        )

    def has_room_for(self, participants: int) -> bool:
        return self.current_participants + participants <= self.max_participants

    def clean(self):
        super().clean()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": "End time must be after the start time."})

    def apply_template(self, template: CourseTemplate):
        self.template = template
        self.title = self.title or template.title
        self.description = self.description or template.description
        if self.price is None:
            self.price = template.price
        self.currency = template.currency
        self.max_participants = template.max_participants
        self.location = self.location or template.location
