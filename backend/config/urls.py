from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounts.api import LoginView, LogoutView, MeView, RefreshView, SessionView
from bookings.api import BookingByReferenceView, BookingViewSet, WaitlistEntryViewSet
from core.api import DashboardView
from courses.api import (
    CategoryViewSet,
    CourseInstanceViewSet,
    CourseTemplateViewSet,
    PublicCategoryViewSet,
    PublicCourseViewSet,
)
from giftcards.api import GiftCardByReferenceView, GiftCardViewSet
from jobs.api import BackgroundJobViewSet, CronJobProcessorView, JobProcessView
from payments.api import (
    AdminPaymentStatusUpdateView,
    InvoicePaymentCreateView,
    PaymentStatusView,
    PaymentViewSet,
    SwishCallbackView,
    SwishCancelView,
    SwishPaymentCreateView,
)
from shop.api import ProductViewSet, PublicProductViewSet, ShopOrderViewSet

router = DefaultRouter()
router.register(r"public/courses", PublicCourseViewSet, basename="public-course")
router.register(r"public/products", PublicProductViewSet, basename="public-product")
router.register(r"public/categories", PublicCategoryViewSet, basename="public-category")
router.register(r"waitlist", WaitlistEntryViewSet, basename="waitlist")
router.register(r"admin/categories", CategoryViewSet, basename="category")
router.register(r"admin/course-templates", CourseTemplateViewSet, basename="course-template")
router.register(r"admin/courses", CourseInstanceViewSet, basename="course")
router.register(r"admin/bookings", BookingViewSet, basename="booking")
router.register(r"admin/gift-cards", GiftCardViewSet, basename="gift-card")
router.register(r"admin/products", ProductViewSet, basename="product")
router.register(r"admin/orders", ShopOrderViewSet, basename="order")
router.register(r"admin/payments", PaymentViewSet, basename="payment")
router.register(r"admin/jobs", BackgroundJobViewSet, basename="job")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/logout/", LogoutView.as_view(), name="auth-logout"),
    path("api/auth/refresh/", RefreshView.as_view(), name="auth-refresh"),
    path("api/auth/session/", SessionView.as_view(), name="auth-session"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path("api/payments/swish/create/", SwishPaymentCreateView.as_view(), name="swish-create"),
    path("api/payments/swish/callback/", SwishCallbackView.as_view(), name="swish-callback"),
    path(
        "api/payments/swish/<str:reference>/cancel/",
        SwishCancelView.as_view(),
        name="swish-cancel",
    ),
    path("api/payments/invoice/create/", InvoicePaymentCreateView.as_view(), name="invoice-create"),
    path(
        "api/payments/status/<str:reference>/",
        PaymentStatusView.as_view(),
        name="payment-status",
    ),
    path(
        "api/bookings/by-reference/<str:reference>/",
        BookingByReferenceView.as_view(),
        name="booking-by-reference",
    ),
    path("api/gift-cards/by-reference/", GiftCardByReferenceView.as_view(), name="gift-card-by-reference"),
    path("api/jobs/process/", JobProcessView.as_view(), name="jobs-process"),
    path("api/cron/job-processor/", CronJobProcessorView.as_view(), name="cron-job-processor"),
    path("api/admin/dashboard/", DashboardView.as_view(), name="admin-dashboard"),
    path(
        "api/admin/payments/update-status/",
        AdminPaymentStatusUpdateView.as_view(),
        name="admin-payment-update-status",
    ),
    path("api/", include(router.urls)),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
