import logging

from django.db.models import Q
from django.http import FileResponse
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from giftcards.models import GiftCard
from giftcards.serializers import (
    GiftCardBalanceSerializer,
    GiftCardFlagSerializer,
    GiftCardSerializer,
    GiftCardStatusSerializer,
    GiftCardSummarySerializer,
)
from giftcards.services.giftcards import (
    GiftCardBalanceError,
    deliver_gift_card,
    generate_gift_card_pdf,
    redeem,
    set_paid,
    update_balance,
)
from payments.models import Payment
from payments.services.fulfillment import InvalidTransitionError, update_payment_status

logger = logging.getLogger(__name__)


class GiftCardViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = GiftCardSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = GiftCard.objects.all().select_related("payment")
    filterset_fields = ["status", "is_paid", "is_emailed", "is_printed", "type", "payment_method"]
    search_fields = ["code", "sender_name", "sender_email", "recipient_name", "recipient_email", "invoice_number"]
    ordering_fields = ["created_at", "expires_at", "amount"]

    @action(detail=True, methods=["post"], url_path="update-status")
    def set_status(self, request, pk=None):
        gift_card = self.get_object()
        serializer = GiftCardStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        gift_card.status = serializer.validated_data["status"]
        gift_card.save(update_fields=["status", "updated_at"])
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["post"], url_path="update-balance")
    def set_balance(self, request, pk=None):
        gift_card = self.get_object()
        serializer = GiftCardBalanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            if "redeem_amount" in serializer.validated_data:
                redeem(gift_card, serializer.validated_data["redeem_amount"])
            else:
                update_balance(gift_card, serializer.validated_data["remaining_balance"])
        except GiftCardBalanceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["post"], url_path="print-status")
    def set_print_status(self, request, pk=None):
        gift_card = self.get_object()
        serializer = GiftCardFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        gift_card.is_printed = serializer.validated_data["value"]
        gift_card.save(update_fields=["is_printed", "updated_at"])
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["post"], url_path="payment")
    def set_payment(self, request, pk=None):
        gift_card = self.get_object()
        serializer = GiftCardFlagSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_paid = serializer.validated_data["value"]

        if gift_card.payment_id and is_paid and gift_card.payment.status == Payment.CREATED:
            try:
                update_payment_status(gift_card.payment.payment_reference, Payment.PAID)
            except InvalidTransitionError as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
            gift_card.refresh_from_db()
        else:
            set_paid(gift_card, is_paid)
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["post"], url_path="generate-pdf")
    def generate_pdf(self, request, pk=None):
        gift_card = self.get_object()
        generate_gift_card_pdf(gift_card)
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["post"], url_path="send-email")
    def send_email(self, request, pk=None):
        gift_card = self.get_object()
        deliver_gift_card(gift_card)
        return Response(GiftCardSerializer(gift_card).data)

    @action(detail=True, methods=["get"], url_path="pdf")
    def pdf(self, request, pk=None):
        gift_card = self.get_object()
        if not gift_card.pdf:
            generate_gift_card_pdf(gift_card)
        return FileResponse(
            gift_card.pdf.open("rb"),
            as_attachment=True,
            filename=f"presentkort-{gift_card.code}.pdf",
            content_type="application/pdf",
        )


class GiftCardByReferenceView(APIView):
    """Look up a gift card by its payment reference or code."""

    permission_classes: list = []
    authentication_classes: list = []

    def get(self, request, *args, **kwargs):
        reference = request.query_params.get("reference", "").strip()
        if not reference:
            return Response({"detail": "reference is required."}, status=status.HTTP_400_BAD_REQUEST)

        gift_card = (
            GiftCard.objects.filter(Q(payment_reference=reference) | Q(code=reference.upper()))
            .order_by("-created_at")
            .first()
        )
        if gift_card is None:
            return Response({"detail": "Gift card not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(GiftCardSummarySerializer(gift_card).data)
