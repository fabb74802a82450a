import pytest
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework.throttling import ScopedRateThrottle

from taskboard.users.models import User
from tests.factories import DEFAULT_PASSWORD
from tests.factories import create_user

pytestmark = pytest.mark.django_db

SIGNUP_URL = "/api/v1/auth/signup/"
LOGIN_URL = "/api/v1/auth/login/"
LOGOUT_URL = "/api/v1/auth/logout/"
REFRESH_URL = "/api/v1/auth/jwt/refresh/"

STRONG_PASSWORD = "Corr3ct-Horse-Battery"  # noqa: S105


def signup(client, **overrides):
    payload = {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "password": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return client.post(SIGNUP_URL, payload, format="json")


class TestSignup:
    def test_creates_user_and_sets_cookies(self):
        client = APIClient()
        r = signup(client)
        assert r.status_code == status.HTTP_201_CREATED, r.content
        assert r.data["message"] == "Signup successful"
        assert r.data["user"]["email"] == "ada@example.com"
        assert r.data["user"]["name"] == "Ada Lovelace"
        assert "access" not in r.data
        assert r.cookies["access_token"]["httponly"]
        assert r.cookies["refresh_token"].value

        user = User.objects.get(email="ada@example.com")
        assert user.check_password(STRONG_PASSWORD)

    def test_duplicate_email_is_rejected(self):
        create_user("ada@example.com")
        r = signup(APIClient(), email="ADA@example.com")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert r.data["email"] == ["User already exists"]

    def test_weak_password_is_rejected(self):
        r = signup(APIClient(), password="123")  # noqa: S106
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email="ada@example.com").exists()

    def test_blank_name_is_rejected(self):
        r = signup(APIClient(), name="   ")
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "name" in r.data

    def test_signup_cookie_authenticates_requests(self):
        client = APIClient()
        signup(client)
        me = client.get("/api/v1/users/me/")
        assert me.status_code == status.HTTP_200_OK
        assert me.data["email"] == "ada@example.com"


class TestLogin:
    def setup_method(self):
        self.user = create_user("grace@example.com", name="Grace Hopper")

    def test_login_sets_cookies_and_scrubs_tokens(self):
        client = APIClient()
        r = client.post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": DEFAULT_PASSWORD},
            format="json",
        )
        assert r.status_code == status.HTTP_200_OK, r.content
        assert r.data == {
            "user": {
                "id": self.user.id,
                "name": "Grace Hopper",
                "email": "grace@example.com",
                "created_at": r.data["user"]["created_at"],
            }
        }
        assert r.cookies["access_token"].value
        assert r.cookies["refresh_token"].value

    def test_bad_credentials(self):
        r = APIClient().post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": "nope"},
            format="json",
        )
        assert r.status_code == status.HTTP_400_BAD_REQUEST
        assert "access_token" not in r.cookies

    def test_logout_clears_cookies(self):
        client = APIClient()
        client.post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": DEFAULT_PASSWORD},
            format="json",
        )
        r = client.post(LOGOUT_URL)
        assert r.status_code == status.HTTP_200_OK
        assert r.cookies["access_token"].value == ""

        me = client.get("/api/v1/users/me/")
        assert me.status_code in {
            status.HTTP_401_UNAUTHORIZED,
            status.HTTP_403_FORBIDDEN,
        }

    def test_refresh_reads_refresh_cookie(self):
        client = APIClient()
        client.post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": DEFAULT_PASSWORD},
            format="json",
        )
        r = client.post(REFRESH_URL, {}, format="json")
        assert r.status_code == status.HTTP_200_OK, r.content
        assert r.data == {"detail": "refresh successful"}
        assert r.cookies["access_token"].value

    def test_refresh_with_garbage_token(self):
        r = APIClient().post(REFRESH_URL, {"refresh": "garbage"}, format="json")
        assert r.status_code == status.HTTP_401_UNAUTHORIZED

    def test_bearer_header_is_accepted(self):
        client = APIClient()
        client.post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": DEFAULT_PASSWORD},
            format="json",
        )
        access = client.cookies["access_token"].value

        other = APIClient()
        other.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        r = other.get("/api/v1/users/me/")
        assert r.status_code == status.HTTP_200_OK
        assert r.data["id"] == self.user.id


def test_login_is_throttled(monkeypatch):
    monkeypatch.setattr(
        ScopedRateThrottle,
        "THROTTLE_RATES",
        {"auth": "2/min", "user": "10000/min"},
    )
    create_user("grace@example.com")
    client = APIClient()
    codes = [
        client.post(
            LOGIN_URL,
            {"email": "grace@example.com", "password": "wrong"},
            format="json",
        ).status_code
        for _ in range(3)
    ]
    assert codes == [
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_429_TOO_MANY_REQUESTS,
    ]
