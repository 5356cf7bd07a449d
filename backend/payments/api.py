import logging

from django.conf import settings
from rest_framework import permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from courses.services.participants import CourseFullError
from payments.models import Payment
from payments.serializers import (
    InvoicePaymentCreateSerializer,
    PaymentSerializer,
    PaymentStatusUpdateSerializer,
    SwishCallbackSerializer,
    SwishPaymentCreateSerializer,
)
from payments.services.checkout import (
    CheckoutError,
    build_confirmation_url,
    create_invoice_payment,
    create_swish_payment,
    get_payment_status,
)
from payments.services.fulfillment import (
    InvalidTransitionError,
    cancel_swish_payment,
    handle_swish_callback,
    update_payment_status,
)
from payments.services.swish import SwishError, SwishValidationError
from shop.services.orders import InsufficientStockError

logger = logging.getLogger(__name__)


def _checkout_error_response(exc: Exception) -> Response:
    if isinstance(exc, (CourseFullError, InsufficientStockError)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, (CheckoutError, SwishValidationError)):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(
        {"detail": "Payment provider error. Please try again."},
        status=status.HTTP_502_BAD_GATEWAY,
    )


def _client_ip(request) -> str:
    """
    The address Swish called from.

    Only the last ``SWISH_TRUSTED_PROXY_COUNT`` entries of X-Forwarded-For were
    written by our own proxies; anything left of them is client supplied.
    """

    proxies = getattr(settings, "SWISH_TRUSTED_PROXY_COUNT", 0)
    if proxies:
        forwarded = [part.strip() for part in request.META.get("HTTP_X_FORWARDED_FOR", "").split(",") if part.strip()]
        if len(forwarded) >= proxies:
            return forwarded[-proxies]
    return request.META.get("REMOTE_ADDR", "")


class SwishPaymentCreateView(APIView):
    """Start a Swish checkout for a course, gift card or shop item."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = SwishPaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            payment = create_swish_payment(
                product_type=data["product_type"],
                product_id=data["product_id"],
                quantity=data["quantity"],
                amount=data.get("amount"),
                user_info=dict(data["user_info"]),
                phone_number=data["phone_number"],
                item_details=dict(data["item_details"]),
                idempotency_key=request.headers.get("Idempotency-Key") or None,
            )
        except (CheckoutError, CourseFullError, InsufficientStockError, SwishError) as exc:
            return _checkout_error_response(exc)

        return Response(
            {
                "success": True,
                "payment_reference": payment.payment_reference,
                "swish_payment_id": payment.swish_payment_id,
                "status": payment.status,
                "amount": str(payment.amount),
                "confirmation_url": build_confirmation_url(payment),
            },
            status=status.HTTP_201_CREATED,
        )


class SwishCallbackView(APIView):
    """Receive payment results from Swish."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        allowlist = getattr(settings, "SWISH_CALLBACK_IP_ALLOWLIST", [])
        if allowlist and _client_ip(request) not in allowlist:
            logger.warning("Rejected Swish callback from %s", _client_ip(request))
            return Response(status=status.HTTP_403_FORBIDDEN)

        serializer = SwishCallbackSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Invalid Swish callback payload: %s", serializer.errors)
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            payment = handle_swish_callback(dict(request.data))
        except Payment.DoesNotExist:
            logger.warning("Swish callback for unknown payment %s", serializer.validated_data)
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)
        except Exception:
            # Nothing was saved; a 5xx makes Swish deliver the callback again.
            logger.exception("Error processing Swish callback %s", serializer.validated_data)
            return Response({"received": False}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        processed = "fulfilment_error" not in (payment.metadata or {})
        return Response({"received": True, "processed": processed, "status": payment.status})


class SwishCancelView(APIView):
    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, reference, *args, **kwargs):
        try:
            payment = cancel_swish_payment(reference)
        except Payment.DoesNotExist:
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransitionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except SwishError as exc:
            logger.exception("Could not cancel Swish payment %s: %s", reference, exc)
            return _checkout_error_response(exc)
        return Response({"success": True, "payment_reference": payment.payment_reference, "status": payment.status})


class PaymentStatusView(APIView):
    """Public status lookup polled by the confirmation page."""

    permission_classes: list = []
    authentication_classes: list = []

    def get(self, request, reference, *args, **kwargs):
        try:
            summary = get_payment_status(reference)
        except Payment.DoesNotExist:
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(summary)


class InvoicePaymentCreateView(APIView):
    """Book or buy on invoice. The invoice PDF and email follow from a background job."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        serializer = InvoicePaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            payment, record = create_invoice_payment(
                product_type=data["product_type"],
                product_id=data["product_id"],
                quantity=data["quantity"],
                amount=data.get("amount"),
                user_info=dict(data["user_info"]),
                invoice_details=dict(data["invoice_details"]),
                item_details=dict(data["item_details"]),
            )
        except (CheckoutError, CourseFullError, InsufficientStockError) as exc:
            return _checkout_error_response(exc)

        body = {
            "success": True,
            "payment_reference": payment.payment_reference,
            "invoice_number": payment.invoice_number,
            "status": payment.status,
            "amount": str(payment.amount),
            "redirect_url": build_confirmation_url(payment),
        }
        if payment.product_type == Payment.COURSE:
            body["booking_reference"] = record.reference
        elif payment.product_type == Payment.ART_PRODUCT:
            body["order_reference"] = record.order_reference
        return Response(body, status=status.HTTP_201_CREATED)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = Payment.objects.all().order_by("-created_at")
    filterset_fields = ["status", "payment_method", "product_type"]
    search_fields = ["payment_reference", "invoice_number", "user_info__email", "user_info__last_name"]
    ordering_fields = ["created_at", "amount"]
    lookup_field = "payment_reference"


class AdminPaymentStatusUpdateView(APIView):
    """Mark an invoice paid (or declined) from the dashboard."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request, *args, **kwargs):
        serializer = PaymentStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payment = update_payment_status(
                serializer.validated_data["payment_reference"],
                serializer.validated_data["status"],
            )
        except Payment.DoesNotExist:
            return Response({"detail": "Payment not found."}, status=status.HTTP_404_NOT_FOUND)
        except InvalidTransitionError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(PaymentSerializer(payment).data)
