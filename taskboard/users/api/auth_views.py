from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from datetime import timedelta

from dj_rest_auth.views import LoginView
from dj_rest_auth.views import LogoutView
from django.conf import settings
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from .serializers import SignupSerializer
from .serializers import UserSerializer

AUTH_THROTTLE_SCOPE = "auth"


def _set_cookie(
    response: Response,
    name: str,
    value: str,
    max_age: int | None,
) -> None:
    if not value:
        return
    cookie_kwargs = {
        "httponly": True,
        "secure": getattr(settings, "JWT_AUTH_COOKIE_SECURE", not settings.DEBUG),
        "samesite": getattr(settings, "JWT_AUTH_COOKIE_SAMESITE", "Lax"),
        "path": "/",
    }
    if max_age is not None:
        cookie_kwargs["max_age"] = max_age
    response.set_cookie(name, value, **cookie_kwargs)


def _set_jwt_cookies(
    response: Response, access: str | None, refresh: str | None
) -> None:
    access_lifetime: timedelta = settings.SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"]
    refresh_lifetime: timedelta = settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"]

    access_cookie = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
    refresh_cookie = getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token")

    if access:
        _set_cookie(
            response, access_cookie, access, int(access_lifetime.total_seconds())
        )
    if refresh:
        _set_cookie(
            response, refresh_cookie, refresh, int(refresh_lifetime.total_seconds())
        )


@extend_schema(tags=["Authentication"], request=SignupSerializer)
class SignupView(APIView):
    """Create an account and log it in straight away (HttpOnly JWT cookies)."""

    permission_classes = [AllowAny]
    authentication_classes = ()
    throttle_scope = AUTH_THROTTLE_SCOPE
    serializer_class = SignupSerializer

    def post(self, request, *args, **kwargs):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        refresh = RefreshToken.for_user(user)
        response = Response(
            {
                "message": "Signup successful",
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_201_CREATED,
        )
        _set_jwt_cookies(response, str(refresh.access_token), str(refresh))
        return response


@extend_schema(tags=["Authentication"])
class CookieOnlyLoginView(LoginView):
    """Login that sets HttpOnly JWT cookies and scrubs tokens from JSON body."""

    authentication_classes = ()
    throttle_scope = AUTH_THROTTLE_SCOPE

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        response: Response = super().post(request, *args, **kwargs)
        if isinstance(response.data, dict):
            access = response.data.get("access")
            refresh = response.data.get("refresh")
            if access or refresh:
                _set_jwt_cookies(response, access, refresh)
                response.data = {"user": UserSerializer(self.user).data}
        return response


@extend_schema(tags=["Authentication"])
class CookieLogoutView(LogoutView):
    """Clear the JWT cookies; works even when the access cookie has expired."""

    authentication_classes = ()
    throttle_scope = AUTH_THROTTLE_SCOPE


@extend_schema(tags=["Authentication"])
class CookieOnlyJWTRefreshView(TokenRefreshView):
    """Refresh that reads the refresh cookie, sets HttpOnly JWT cookies and
    scrubs tokens from JSON body."""

    throttle_scope = AUTH_THROTTLE_SCOPE

    def post(self, request, *args, **kwargs):  # type: ignore[override]
        refresh_cookie = getattr(settings, "JWT_AUTH_REFRESH_COOKIE", "refresh_token")
        raw = request.data.get("refresh") or request.COOKIES.get(refresh_cookie, "")
        serializer = self.get_serializer(data={"refresh": raw})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            raise InvalidToken(exc.args[0]) from exc

        response = Response({"detail": "refresh successful"})
        _set_jwt_cookies(
            response,
            serializer.validated_data.get("access"),
            serializer.validated_data.get("refresh"),
        )
        return response
