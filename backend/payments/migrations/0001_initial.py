from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_reference", models.CharField(max_length=35, unique=True)),
                ("product_type", models.CharField(choices=[("course", "Course"), ("gift_card", "Gift card"), ("art_product", "Art product")], max_length=20)),
                ("product_id", models.CharField(blank=True, max_length=64)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("currency", models.CharField(default="SEK", max_length=3)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("payment_method", models.CharField(choices=[("swish", "Swish"), ("invoice", "Invoice")], max_length=12)),
                ("status", models.CharField(choices=[("CREATED", "Created"), ("PAID", "Paid"), ("DECLINED", "Declined"), ("ERROR", "Error")], default="CREATED", max_length=12)),
                ("user_info", models.JSONField(blank=True, default=dict)),
                ("phone_number", models.CharField(blank=True, max_length=20)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("idempotency_key", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("swish_payment_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("swish_callback_url", models.URLField(blank=True)),
                ("invoice_number", models.CharField(blank=True, db_index=True, max_length=32)),
                ("invoice_pdf", models.FileField(blank=True, upload_to="invoices/")),
                ("email_sent_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
