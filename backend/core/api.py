from datetime import timedelta

from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.models import Booking
from courses.models import CourseInstance
from giftcards.models import GiftCard
from jobs.services.queue import get_job_stats
from payments.models import Payment
from shop.models import Product

LOW_STOCK_THRESHOLD = 2


class DashboardView(APIView):
    """Headline numbers for the admin dashboard."""

    def get(self, request, *args, **kwargs):
        now = timezone.now()
        upcoming = CourseInstance.objects.filter(
            start_date__gte=now,
        ).exclude(status=CourseInstance.CANCELLED)

        active_cards = GiftCard.objects.filter(status=GiftCard.ACTIVE, is_paid=True, expires_at__gt=now)
        pending_invoices = Payment.objects.filter(payment_method=Payment.INVOICE, status=Payment.CREATED)
        payments_by_status = {
            row["status"]: row["total"]
            for row in Payment.objects.values("status").annotate(total=Count("id"))
        }

        return Response(
            {
                "courses": {
                    "upcoming": upcoming.count(),
                    "next_30_days": upcoming.filter(start_date__lte=now + timedelta(days=30)).count(),
                    "booked_participants": upcoming.aggregate(total=Sum("current_participants"))["total"] or 0,
                },
                "bookings": {
                    "confirmed": Booking.objects.filter(status=Booking.CONFIRMED).count(),
                    "pending": Booking.objects.filter(status=Booking.PENDING).count(),
                    "unpaid_invoices": Booking.objects.filter(
                        payment_method=Payment.INVOICE,
                        payment_status=Payment.CREATED,
                    ).exclude(status=Booking.CANCELLED).count(),
                },
                "payments": {
                    "by_status": payments_by_status,
                    "pending_invoices": pending_invoices.count(),
                    "pending_invoice_amount": str(pending_invoices.aggregate(total=Sum("amount"))["total"] or 0),
                },
                "gift_cards": {
                    "active": active_cards.count(),
                    "outstanding_balance": str(active_cards.aggregate(total=Sum("remaining_balance"))["total"] or 0),
                    "unprinted_physical": GiftCard.objects.filter(
                        type=GiftCard.PHYSICAL,
                        is_paid=True,
                        is_printed=False,
                    ).count(),
                },
                "products": {
                    "published": Product.objects.filter(is_published=True).count(),
                    "low_stock": Product.objects.filter(
                        is_published=True,
                        stock_quantity__lte=LOW_STOCK_THRESHOLD,
                    ).count(),
                },
                "jobs": get_job_stats(),
            }
        )
