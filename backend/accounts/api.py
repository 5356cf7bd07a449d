import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .authentication import CookieJWTAuthentication
from .serializers import EmailTokenObtainPairSerializer, UserSerializer

logger = logging.getLogger(__name__)

REFRESH_COOKIE_PATH = "/api/auth/"


def _set_session_cookie(response: Response, access_token: str) -> None:
    lifetime = settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]
    response.set_cookie(
        settings.ADMIN_SESSION_COOKIE,
        access_token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.ADMIN_SESSION_COOKIE_SECURE,
        samesite="Lax",
        path="/",
    )


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    lifetime = settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"]
    response.set_cookie(
        settings.ADMIN_REFRESH_COOKIE,
        refresh_token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.ADMIN_SESSION_COOKIE_SECURE,
        samesite="Lax",
        path=REFRESH_COOKIE_PATH,
    )


class LoginView(TokenObtainPairView):
    """Authenticate a staff user via email + password and open an admin session."""

    serializer_class = EmailTokenObtainPairSerializer
    authentication_classes: list = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        response = super().post(request, *args, **kwargs)
        if response.status_code == status.HTTP_200_OK:
            _set_session_cookie(response, response.data["access"])
            _set_refresh_cookie(response, response.data.pop("refresh"))
            logger.info("Admin session opened for %s", response.data["user"]["email"])
        return response


class LogoutView(APIView):
    authentication_classes: list = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        response = Response({"success": True})
        response.delete_cookie(settings.ADMIN_SESSION_COOKIE, path="/")
        response.delete_cookie(settings.ADMIN_REFRESH_COOKIE, path=REFRESH_COOKIE_PATH)
        return response


class SessionView(APIView):
    """Report whether the current request carries a valid admin session."""

    authentication_classes: list = []
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        try:
            result = CookieJWTAuthentication().authenticate(request)
        except (AuthenticationFailed, TokenError):
            result = None

        if result is None or not result[0].is_staff:
            return Response({"authenticated": False, "user": None})
        return Response({"authenticated": True, "user": UserSerializer(result[0]).data})


class MeView(APIView):
    """Return the serialized profile for the signed-in staff user."""

    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data)


class RefreshView(TokenRefreshView):
    """Extend the admin session using the refresh cookie set at login."""

    authentication_classes: list = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        refresh_token = request.COOKIES.get(settings.ADMIN_REFRESH_COOKIE)
        if not refresh_token:
            raise AuthenticationFailed("No admin session to refresh.")

        serializer = self.get_serializer(data={"refresh": refresh_token})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc

        data = dict(serializer.validated_data)
        response = Response({"access": data["access"]})
        _set_session_cookie(response, data["access"])
        if "refresh" in data:
            _set_refresh_cookie(response, data["refresh"])
        return response
