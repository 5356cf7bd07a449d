from rest_framework import serializers

from giftcards.models import GiftCard
from payments.models import Payment


class UserInfoSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    number_of_participants = serializers.IntegerField(min_value=1, required=False, default=1)
    message = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_email(self, value: str) -> str:
        return value.lower()


class ItemDetailsSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=GiftCard.TYPES, required=False, default=GiftCard.DIGITAL)
    recipient_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    recipient_email = serializers.EmailField(required=False, allow_blank=True, default="")
    message = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class InvoiceDetailsSerializer(serializers.Serializer):
    address = serializers.CharField(max_length=200)
    postal_code = serializers.CharField(max_length=20)
    city = serializers.CharField(max_length=100)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")


class CheckoutSerializer(serializers.Serializer):
    product_type = serializers.ChoiceField(choices=Payment.PRODUCT_TYPES)
    product_id = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    user_info = UserInfoSerializer()
    item_details = ItemDetailsSerializer(required=False)

    def validate(self, attrs):
        product_type = attrs["product_type"]
        if product_type in (Payment.COURSE, Payment.ART_PRODUCT) and not attrs.get("product_id"):
            raise serializers.ValidationError({"product_id": "This field is required."})
        if product_type == Payment.GIFT_CARD and attrs.get("amount") is None:
            raise serializers.ValidationError({"amount": "This field is required for gift cards."})
        if product_type == Payment.COURSE:
            attrs["quantity"] = attrs["user_info"]["number_of_participants"]
        attrs.setdefault("item_details", {})
        return attrs


class SwishPaymentCreateSerializer(CheckoutSerializer):
    phone_number = serializers.CharField(max_length=30)


class InvoicePaymentCreateSerializer(CheckoutSerializer):
    invoice_details = InvoiceDetailsSerializer()


class PaymentSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(read_only=True)
    customer_email = serializers.CharField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "payment_reference",
            "product_type",
            "product_id",
            "amount",
            "currency",
            "quantity",
            "payment_method",
            "status",
            "customer_name",
            "customer_email",
            "user_info",
            "phone_number",
            "metadata",
            "swish_payment_id",
            "invoice_number",
            "invoice_pdf",
            "email_sent_at",
            "paid_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PaymentStatusUpdateSerializer(serializers.Serializer):
    payment_reference = serializers.CharField(max_length=35)
    status = serializers.ChoiceField(choices=Payment.STATUSES)


class SwishCallbackSerializer(serializers.Serializer):
    """Only the fields the workflow depends on; the full payload is kept as-is."""

    id = serializers.CharField(required=False, allow_blank=True)
    payeePaymentReference = serializers.CharField(required=False, allow_blank=True)
    status = serializers.CharField()

    def validate(self, attrs):
        if not attrs.get("id") and not attrs.get("payeePaymentReference"):
            raise serializers.ValidationError("Callback must include id or payeePaymentReference.")
        return attrs
