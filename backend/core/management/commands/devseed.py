from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from courses.models import Category, CourseInstance, CourseTemplate
from giftcards.services.giftcards import create_gift_card
from payments.services.checkout import create_invoice_payment
from shop.models import Product


SUPERUSER_EMAIL = "admin@studioclay.test"
SUPERUSER_PASSWORD = "StudioClay123!"
STAFF_EMAIL = "eva@studioclay.test"
STAFF_PASSWORD = "Keramik123!"


class Command(BaseCommand):
    help = "Populate the local development database with sample data."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Ensuring staff accounts"))
            self._ensure_user(
                email=SUPERUSER_EMAIL,
                password=SUPERUSER_PASSWORD,
                first_name="Admin",
                last_name="User",
                is_superuser=True,
            )
            self._ensure_user(
                email=STAFF_EMAIL,
                password=STAFF_PASSWORD,
                first_name="Eva",
                last_name="Studio",
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating course templates & courses"))
            wheel = self._ensure_template(
                title="Drejning för nybörjare",
                description="Lär dig grunderna i drejning under fyra kvällar.",
                price=Decimal("3300"),
                max_participants=8,
                duration_minutes=180,
                category="Drejning",
            )
            handbuilding = self._ensure_template(
                title="Handbyggnad helgkurs",
                description="Tumteknik, ringlar och plattor under en helg.",
                price=Decimal("1950"),
                max_participants=10,
                duration_minutes=360,
                category="Handbyggnad",
            )
            now = timezone.now().replace(hour=18, minute=0, second=0, microsecond=0)
            courses = [
                self._create_course(wheel, start=now + timedelta(days=7)),
                self._create_course(wheel, start=now + timedelta(days=35)),
                self._create_course(handbuilding, start=now + timedelta(days=14), hours=6),
            ]

            self.stdout.write(self.style.MIGRATE_HEADING("Creating shop products"))
            products = [
                self._ensure_product("Skål i stengods", Decimal("450"), stock=4),
                self._ensure_product("Kopp med öra", Decimal("320"), stock=0),
                self._ensure_product("Vas, blå glasyr", Decimal("890"), stock=1),
            ]

            self.stdout.write(self.style.MIGRATE_HEADING("Creating sample purchases"))
            create_invoice_payment(
                product_type="course",
                product_id=str(courses[0].pk),
                quantity=2,
                user_info={
                    "first_name": "Greta",
                    "last_name": "Gäst",
                    "email": "greta@example.test",
                    "phone": "0701234567",
                    "number_of_participants": 2,
                },
                invoice_details={
                    "address": "Storgatan 1",
                    "postal_code": "111 22",
                    "city": "Stockholm",
                },
            )
            create_invoice_payment(
                product_type="art_product",
                product_id=str(products[0].pk),
                user_info={
                    "first_name": "Frank",
                    "last_name": "Vän",
                    "email": "frank@example.test",
                    "phone": "0707654321",
                },
                invoice_details={
                    "address": "Lillgatan 2",
                    "postal_code": "113 45",
                    "city": "Stockholm",
                },
            )
            create_gift_card(
                amount=Decimal("500"),
                sender_name="Greta Gäst",
                sender_email="greta@example.test",
                recipient_name="Frank Vän",
                recipient_email="frank@example.test",
                message="Grattis på födelsedagen!",
                payment_method="swish",
                is_paid=True,
            )

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Studio staff {STAFF_EMAIL} password: {STAFF_PASSWORD}"))
        self.stdout.write(self.style.NOTICE("Run `manage.py process_jobs` to send the queued invoice emails."))

    def _ensure_user(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        is_superuser: bool = False,
    ) -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": f"{first_name} {last_name}",
                "is_staff": True,
                "is_superuser": is_superuser,
            },
        )
        flag_updates = {}
        if not user.is_staff:
            flag_updates["is_staff"] = True
        if is_superuser and not user.is_superuser:
            flag_updates["is_superuser"] = True
        if flag_updates:
            for attr, value in flag_updates.items():
                setattr(user, attr, value)
            user.save(update_fields=list(flag_updates.keys()))
        if created or not user.has_usable_password():
            user.set_password(password)
            user.save(update_fields=["password"])
        return user

    def _ensure_template(
        self,
        *,
        title: str,
        description: str,
        price: Decimal,
        max_participants: int,
        duration_minutes: int,
        category: str,
    ) -> CourseTemplate:
        course_category, _ = Category.objects.get_or_create(name=category)
        template, _ = CourseTemplate.objects.update_or_create(
            title=title,
            defaults={
                "category": course_category,
                "description": description,
                "price": price,
                "max_participants": max_participants,
                "duration_minutes": duration_minutes,
                "location": f"{settings.STUDIO_ADDRESS}, {settings.STUDIO_CITY}",
            },
        )
        return template

    def _create_course(self, template: CourseTemplate, *, start, hours: int = 3) -> CourseInstance:
        course = CourseInstance(
            start_date=start,
            end_date=start + timedelta(hours=hours),
            status=CourseInstance.PUBLISHED,
            is_published=True,
        )
        course.apply_template(template)
        course.save()
        self.stdout.write(self.style.NOTICE(f"Scheduled {course}"))
        return course

    def _ensure_product(self, title: str, price: Decimal, *, stock: int) -> Product:
        product, _ = Product.objects.update_or_create(
            title=title,
            defaults={
                "description": f"Handgjord i studion: {title.lower()}.",
                "price": price,
                "stock_quantity": stock,
                "is_published": True,
            },
        )
        return product
