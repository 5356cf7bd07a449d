from django.utils import timezone
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from bookings.serializers import BookingSerializer, WaitlistEntrySerializer
from courses.models import Category, CourseInstance, CourseTemplate
from courses.serializers import (
    CategorySerializer,
    CourseInstanceSerializer,
    CourseTemplateSerializer,
    PublicCourseSerializer,
)
from courses.services.participants import recalculate_participants


class CategoryViewSet(viewsets.ModelViewSet):
    serializer_class = CategorySerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = Category.objects.all()
    search_fields = ["name"]


class PublicCategoryViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CategorySerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []
    queryset = Category.objects.all()


class CourseTemplateViewSet(viewsets.ModelViewSet):
    serializer_class = CourseTemplateSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = CourseTemplate.objects.all().select_related("category")
    filterset_fields = ["is_active", "category"]
    search_fields = ["title", "description"]


class CourseInstanceViewSet(viewsets.ModelViewSet):
    serializer_class = CourseInstanceSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = CourseInstance.objects.all().select_related("template")
    filterset_fields = ["status", "is_published", "template"]
    search_fields = ["title", "description", "location"]
    ordering_fields = ["start_date", "created_at"]

    def perform_destroy(self, instance):
        if instance.bookings.exclude(status="cancelled").exists():
            instance.status = CourseInstance.CANCELLED
            instance.is_published = False
            instance.save(update_fields=["status", "is_published", "updated_at"])
            return
        instance.delete()

    @action(detail=True, methods=["get"], url_path="bookings")
    def bookings(self, request, pk=None):
        course = self.get_object()
        queryset = course.bookings.all().order_by("created_at")
        return Response(BookingSerializer(queryset, many=True).data)

    @action(detail=True, methods=["get"], url_path="waitlist")
    def waitlist(self, request, pk=None):
        course = self.get_object()
        return Response(WaitlistEntrySerializer(course.waitlist.all(), many=True).data)

    @action(detail=True, methods=["post"], url_path="recalculate")
    def recalculate(self, request, pk=None):
        course = self.get_object()
        recalculate_participants(course)
        course.refresh_from_db()
        return Response(self.get_serializer(course).data)


class PublicCourseViewSet(viewsets.ReadOnlyModelViewSet):
    """Published, upcoming courses for the public site."""

    serializer_class = PublicCourseSerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []
    search_fields = ["title", "description"]

    def get_queryset(self):
        queryset = CourseInstance.objects.filter(
            is_published=True,
            status=CourseInstance.PUBLISHED,
            start_date__gte=timezone.now(),
        ).select_related("template__category")
        category = self.request.query_params.get("category")
        if category and category.isdigit():
            queryset = queryset.filter(template__category_id=category)
        return queryset.order_by("start_date")
