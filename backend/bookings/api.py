import logging

from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.models import Booking, WaitlistEntry
from bookings.serializers import (
    BookingConfirmationSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    WaitlistEntrySerializer,
)
from bookings.services.bookings import cancel_booking, update_booking
from payments.services.fulfillment import InvalidTransitionError, update_payment_status

logger = logging.getLogger(__name__)


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = Booking.objects.all().select_related("course", "payment")
    filterset_fields = ["course", "status", "payment_status", "payment_method"]
    search_fields = ["reference", "customer_name", "customer_email", "invoice_number"]
    ordering_fields = ["created_at", "course__start_date"]

    def update(self, request, *args, **kwargs):
        booking = self.get_object()
        serializer = BookingUpdateSerializer(booking, data=request.data, partial=kwargs.get("partial", False))
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)

        new_payment_status = changes.get("payment_status")
        if new_payment_status and booking.payment_id and new_payment_status != booking.payment_status:
            try:
                update_payment_status(booking.payment.payment_reference, new_payment_status)
            except InvalidTransitionError as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
            booking.refresh_from_db()

        booking = update_booking(booking, changes)
        return Response(BookingSerializer(booking).data)

    def destroy(self, request, *args, **kwargs):
        # Bookings are cancelled rather than deleted so counts and invoices stay traceable.
        booking = cancel_booking(self.get_object())
        return Response(BookingSerializer(booking).data)


class BookingByReferenceView(APIView):
    permission_classes: list = []
    authentication_classes: list = []

    def get(self, request, reference, *args, **kwargs):
        booking = get_object_or_404(Booking.objects.select_related("course"), reference=reference)
        return Response(BookingConfirmationSerializer(booking).data)


class WaitlistEntryViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = WaitlistEntrySerializer
    queryset = WaitlistEntry.objects.all().select_related("course")
    filterset_fields = ["course"]

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        return [permissions.IsAdminUser()]

    def perform_create(self, serializer):
        entry = serializer.save()
        logger.info("Waitlist entry %s added for course %s", entry.pk, entry.course_id)
