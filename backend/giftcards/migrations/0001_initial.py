from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="GiftCard",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=32, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("1"))])),
                ("remaining_balance", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="SEK", max_length=3)),
                ("status", models.CharField(choices=[("active", "Active"), ("used", "Used"), ("expired", "Expired"), ("cancelled", "Cancelled")], default="active", max_length=12)),
                ("type", models.CharField(choices=[("digital", "Digital"), ("physical", "Physical")], default="digital", max_length=12)),
                ("sender_name", models.CharField(max_length=200)),
                ("sender_email", models.EmailField(max_length=254)),
                ("sender_phone", models.CharField(blank=True, max_length=30)),
                ("recipient_name", models.CharField(blank=True, max_length=200)),
                ("recipient_email", models.EmailField(blank=True, max_length=254)),
                ("message", models.TextField(blank=True)),
                ("payment_reference", models.CharField(blank=True, max_length=32)),
                ("invoice_number", models.CharField(blank=True, max_length=32)),
                ("payment_method", models.CharField(blank=True, max_length=12)),
                ("payment_status", models.CharField(default="CREATED", max_length=12)),
                ("is_paid", models.BooleanField(default=False)),
                ("is_emailed", models.BooleanField(default=False)),
                ("is_printed", models.BooleanField(default=False)),
                ("pdf", models.FileField(blank=True, upload_to="gift-cards/")),
                ("expires_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="gift_cards", to="payments.payment")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
