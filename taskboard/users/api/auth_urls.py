from django.urls import path

from .auth_views import CookieLogoutView
from .auth_views import CookieOnlyJWTRefreshView
from .auth_views import CookieOnlyLoginView
from .auth_views import SignupView

# Cookie-only auth: tokens travel as HttpOnly cookies, never in JSON bodies.
urlpatterns = [
    path("signup/", SignupView.as_view(), name="signup"),
    path("login/", CookieOnlyLoginView.as_view(), name="login"),
    path("logout/", CookieLogoutView.as_view(), name="logout"),
    path("jwt/refresh/", CookieOnlyJWTRefreshView.as_view(), name="jwt-refresh"),
]
