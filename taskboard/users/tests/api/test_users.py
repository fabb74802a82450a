import pytest
from django.urls import resolve
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from tests.factories import create_user

pytestmark = pytest.mark.django_db


def test_user_urls():
    assert reverse("api_v1:user-list") == "/api/v1/users/"
    assert resolve("/api/v1/users/").view_name == "api_v1:user-list"
    assert reverse("api_v1:user-me") == "/api/v1/users/me/"
    assert resolve("/api/v1/users/me/").view_name == "api_v1:user-me"


def test_list_requires_authentication():
    r = APIClient().get("/api/v1/users/")
    assert r.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_list_is_ordered_by_name(auth_client, user):
    create_user("zed@example.com", name="Zed")
    create_user("bob@example.com", name="Bob")
    inactive = create_user("gone@example.com", name="Aaron")
    inactive.is_active = False
    inactive.save(update_fields=["is_active"])

    r = auth_client.get("/api/v1/users/")
    assert r.status_code == status.HTTP_200_OK
    assert [u["name"] for u in r.data] == ["Ada Lovelace", "Bob", "Zed"]
    assert set(r.data[0]) == {"id", "name", "email", "created_at"}


def test_me_returns_current_user(auth_client, user):
    r = auth_client.get("/api/v1/users/me/")
    assert r.status_code == status.HTTP_200_OK
    assert r.data["id"] == user.id
    assert r.data["email"] == user.email


def test_me_patch_trims_name(auth_client, user):
    r = auth_client.patch("/api/v1/users/me/", {"name": "  Countess  "}, format="json")
    assert r.status_code == status.HTTP_200_OK
    assert r.data["name"] == "Countess"
    user.refresh_from_db()
    assert user.name == "Countess"


def test_me_patch_rejects_blank_name(auth_client):
    r = auth_client.patch("/api/v1/users/me/", {"name": "   "}, format="json")
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.data["name"] == ["Name is required"]


def test_me_patch_cannot_change_email(auth_client, user):
    r = auth_client.patch(
        "/api/v1/users/me/", {"email": "hijack@example.com"}, format="json"
    )
    assert r.status_code == status.HTTP_200_OK
    user.refresh_from_db()
    assert user.email == "ada@example.com"
