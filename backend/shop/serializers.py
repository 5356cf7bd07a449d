from rest_framework import serializers

from payments.models import Payment
from shop.models import Product, ShopOrder


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "description",
            "price",
            "original_price",
            "currency",
            "stock_quantity",
            "in_stock",
            "image",
            "is_published",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "in_stock", "created_at", "updated_at"]


class PublicProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "title", "description", "price", "original_price", "currency", "in_stock", "image"]
        read_only_fields = fields


class ShopOrderSerializer(serializers.ModelSerializer):
    product_title = serializers.CharField(source="product.title", read_only=True)
    payment_reference = serializers.CharField(source="payment.payment_reference", read_only=True, default=None)

    class Meta:
        model = ShopOrder
        fields = [
            "id",
            "order_reference",
            "product",
            "product_title",
            "payment_reference",
            "customer_name",
            "customer_email",
            "customer_phone",
            "quantity",
            "stock_reserved",
            "unit_price",
            "total_price",
            "currency",
            "status",
            "payment_status",
            "payment_method",
            "invoice_number",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ShopOrderUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ShopOrder.STATUSES, required=False)
    payment_status = serializers.ChoiceField(choices=Payment.STATUSES, required=False)
