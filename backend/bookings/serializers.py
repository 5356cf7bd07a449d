from rest_framework import serializers

from bookings.models import Booking, WaitlistEntry
from courses.models import CourseInstance


class BookingSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source="course.title", read_only=True)
    course_start_date = serializers.DateTimeField(source="course.start_date", read_only=True)
    payment_reference = serializers.CharField(source="payment.payment_reference", read_only=True, default=None)

    class Meta:
        model = Booking
        fields = [
            "id",
            "reference",
            "course",
            "course_title",
            "course_start_date",
            "payment_reference",
            "customer_name",
            "customer_email",
            "customer_phone",
            "number_of_participants",
            "unit_price",
            "total_price",
            "currency",
            "status",
            "payment_status",
            "payment_method",
            "invoice_number",
            "invoice_address",
            "invoice_postal_code",
            "invoice_city",
            "invoice_reference",
            "message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = [
            "customer_name",
            "customer_email",
            "customer_phone",
            "number_of_participants",
            "status",
            "payment_status",
            "invoice_address",
            "invoice_postal_code",
            "invoice_city",
            "invoice_reference",
            "message",
        ]

    def validate_payment_status(self, value):
        from payments.models import Payment

        if value not in dict(Payment.STATUSES):
            raise serializers.ValidationError("Unknown payment status.")
        return value


class BookingConfirmationSerializer(serializers.ModelSerializer):
    """What the customer sees on the confirmation page."""

    course_title = serializers.CharField(source="course.title", read_only=True)
    start_date = serializers.DateTimeField(source="course.start_date", read_only=True)
    end_date = serializers.DateTimeField(source="course.end_date", read_only=True)
    location = serializers.CharField(source="course.location", read_only=True)

    class Meta:
        model = Booking
        fields = [
            "reference",
            "course_title",
            "start_date",
            "end_date",
            "location",
            "customer_name",
            "number_of_participants",
            "total_price",
            "currency",
            "status",
            "payment_status",
            "payment_method",
            "invoice_number",
        ]
        read_only_fields = fields


class WaitlistEntrySerializer(serializers.ModelSerializer):
    course = serializers.PrimaryKeyRelatedField(queryset=CourseInstance.objects.all())

    class Meta:
        model = WaitlistEntry
        fields = [
            "id",
            "course",
            "customer_name",
            "customer_email",
            "customer_phone",
            "number_of_participants",
            "message",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]
