from rest_framework import serializers

from giftcards.models import GiftCard


class GiftCardSerializer(serializers.ModelSerializer):
    effective_status = serializers.CharField(read_only=True)

    class Meta:
        model = GiftCard
        fields = [
            "id",
            "code",
            "amount",
            "remaining_balance",
            "currency",
            "status",
            "effective_status",
            "type",
            "sender_name",
            "sender_email",
            "sender_phone",
            "recipient_name",
            "recipient_email",
            "message",
            "payment_reference",
            "invoice_number",
            "payment_method",
            "payment_status",
            "is_paid",
            "is_emailed",
            "is_printed",
            "pdf",
            "expires_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class GiftCardSummarySerializer(serializers.ModelSerializer):
    """Public view returned after checkout; the code is only shown once paid."""

    code = serializers.SerializerMethodField()
    effective_status = serializers.CharField(read_only=True)

    class Meta:
        model = GiftCard
        fields = [
            "code",
            "amount",
            "remaining_balance",
            "currency",
            "effective_status",
            "type",
            "recipient_name",
            "payment_reference",
            "payment_method",
            "is_paid",
            "expires_at",
        ]
        read_only_fields = fields

    def get_code(self, obj) -> str | None:
        return obj.code if obj.is_paid else None


class GiftCardStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=GiftCard.STATUSES)


class GiftCardBalanceSerializer(serializers.Serializer):
    remaining_balance = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    redeem_amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)

    def validate(self, attrs):
        if ("remaining_balance" in attrs) == ("redeem_amount" in attrs):
            raise serializers.ValidationError("Provide either remaining_balance or redeem_amount.")
        return attrs


class GiftCardFlagSerializer(serializers.Serializer):
    value = serializers.BooleanField()
