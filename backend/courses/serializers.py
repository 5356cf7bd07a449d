from rest_framework import serializers

from courses.models import Category, CourseInstance, CourseTemplate


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "description", "created_at"]
        read_only_fields = ["id", "created_at"]


class CourseTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = CourseTemplate
        fields = [
            "id",
            "category",
            "title",
            "description",
            "duration_minutes",
            "price",
            "currency",
            "max_participants",
            "location",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class CourseInstanceSerializer(serializers.ModelSerializer):
    available_spots = serializers.IntegerField(read_only=True)
    is_full = serializers.BooleanField(read_only=True)
    template = serializers.PrimaryKeyRelatedField(
        queryset=CourseTemplate.objects.all(),
        required=False,
        allow_null=True,
    )
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)

    class Meta:
        model = CourseInstance
        fields = [
            "id",
            "template",
            "title",
            "description",
            "start_date",
            "end_date",
            "price",
            "currency",
            "max_participants",
            "current_participants",
            "available_spots",
            "is_full",
            "location",
            "status",
            "is_published",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "current_participants", "created_at", "updated_at"]

    def validate(self, attrs):
        template = attrs.get("template")
        if self.instance is None:
            if template is None and (not attrs.get("title") or attrs.get("price") is None):
                raise serializers.ValidationError("Provide a template or both title and price.")
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end_date": "End time must be after the start time."})
        max_participants = attrs.get("max_participants")
        if self.instance is not None and max_participants is not None:
            if max_participants < self.instance.current_participants:
                raise serializers.ValidationError(
                    {"max_participants": "Cannot be lower than the number of booked participants."}
                )
        return attrs

    def create(self, validated_data):
        template = validated_data.pop("template", None)
        course = CourseInstance(**validated_data)
        if template is not None:
            explicit_max = validated_data.get("max_participants")
            course.apply_template(template)
            if explicit_max is not None:
                course.max_participants = explicit_max
        course.save()
        return course


class PublicCourseSerializer(serializers.ModelSerializer):
    available_spots = serializers.IntegerField(read_only=True)
    is_full = serializers.BooleanField(read_only=True)
    category = serializers.CharField(source="template.category.name", read_only=True, default=None)

    class Meta:
        model = CourseInstance
        fields = [
            "id",
            "category",
            "title",
            "description",
            "start_date",
            "end_date",
            "price",
            "currency",
            "max_participants",
            "available_spots",
            "is_full",
            "location",
        ]
        read_only_fields = fields
