from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response

from payments.services.fulfillment import InvalidTransitionError, update_payment_status
from shop.models import Product, ShopOrder
from shop.serializers import (
    ProductSerializer,
    PublicProductSerializer,
    ShopOrderSerializer,
    ShopOrderUpdateSerializer,
)
from shop.services.orders import cancel_order


class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = Product.objects.all()
    filterset_fields = ["is_published", "in_stock"]
    search_fields = ["title", "description"]
    ordering_fields = ["title", "price", "created_at"]

    def perform_destroy(self, instance):
        if instance.orders.exists():
            instance.is_published = False
            instance.save(update_fields=["is_published", "updated_at"])
            return
        instance.delete()


class PublicProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PublicProductSerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []
    queryset = Product.objects.filter(is_published=True)
    search_fields = ["title", "description"]


class ShopOrderViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ShopOrderSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = ShopOrder.objects.all().select_related("product", "payment")
    filterset_fields = ["status", "payment_status", "payment_method", "product"]
    search_fields = ["order_reference", "customer_name", "customer_email", "invoice_number"]

    def update(self, request, *args, **kwargs):
        order = self.get_object()
        serializer = ShopOrderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        changes = serializer.validated_data

        new_payment_status = changes.get("payment_status")
        if new_payment_status and new_payment_status != order.payment_status:
            if order.payment_id:
                try:
                    update_payment_status(order.payment.payment_reference, new_payment_status)
                except InvalidTransitionError as exc:
                    return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
                order.refresh_from_db()
            else:
                order.payment_status = new_payment_status
                order.save(update_fields=["payment_status", "updated_at"])

        new_status = changes.get("status")
        if new_status == ShopOrder.CANCELLED:
            cancel_order(order)
        elif new_status and new_status != order.status:
            order.status = new_status
            order.save(update_fields=["status", "updated_at"])
        return Response(ShopOrderSerializer(order).data)
