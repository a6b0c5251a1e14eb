"""
Integration tests: login, token refresh and the current-user profile.

Endpoints under test:
    POST  /api/users/auth/login/          users:login
    POST  /api/users/auth/token/refresh/  users:token-refresh
    GET   /api/users/me/                  users:me
    PATCH /api/users/me/                  users:me
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

pytestmark = pytest.mark.django_db

_PASSWORD = "Str0ng!Pass99"


@pytest.fixture()
def manager(create_user):
    return create_user(
        username="login_manager",
        password=_PASSWORD,
        email="Login.Manager@example.com",
        permissions=["reports.create", "reports.submit"],
    )


def _login(api_client, identifier, password=_PASSWORD):
    return api_client.post(
        reverse("users:login"),
        {"identifier": identifier, "password": password},
        format="json",
    )


def test_login_with_username_returns_tokens_and_permissions(api_client, manager):
    resp = _login(api_client, "login_manager")

    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["access"] and resp.data["refresh"]
    assert resp.data["user"]["username"] == "login_manager"
    assert resp.data["user"]["permissions"] == ["reports.create", "reports.submit"]


def test_login_with_email_is_case_insensitive(api_client, manager):
    resp = _login(api_client, "login.manager@EXAMPLE.com")
    assert resp.status_code == status.HTTP_200_OK


@pytest.mark.parametrize("identifier, password", [
    ("login_manager", "wrong-password"),
    ("nobody", _PASSWORD),
])
def test_login_failures(api_client, manager, identifier, password):
    resp = _login(api_client, identifier, password)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST


def test_inactive_user_cannot_log_in(api_client, create_user):
    create_user(username="dormant", password=_PASSWORD, is_active=False)
    assert _login(api_client, "dormant").status_code == status.HTTP_400_BAD_REQUEST


def test_refresh_issues_a_new_access_token(api_client, manager):
    refresh = _login(api_client, "login_manager").data["refresh"]
    resp = api_client.post(reverse("users:token-refresh"), {"refresh": refresh}, format="json")
    assert resp.status_code == status.HTTP_200_OK
    assert "access" in resp.data


def test_me_requires_authentication(api_client):
    assert api_client.get(reverse("users:me")).status_code == status.HTTP_401_UNAUTHORIZED


def test_me_returns_role_and_tokens(api_client, auth_header):
    header = auth_header(username="me_user", permissions=["reports.view"])
    api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])

    resp = api_client.get(reverse("users:me"))

    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["username"] == "me_user"
    assert resp.data["role_detail"]["name"] == "role-for-me_user"
    assert resp.data["permissions"] == ["reports.view"]


def test_me_update_rejects_taken_email(api_client, create_user, manager):
    user = create_user(username="renamer")
    api_client.force_authenticate(user)

    resp = api_client.patch(reverse("users:me"), {"email": "login.manager@example.com"}, format="json")
    assert resp.status_code == status.HTTP_400_BAD_REQUEST

    resp = api_client.patch(reverse("users:me"), {"first_name": "Rene"}, format="json")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["first_name"] == "Rene"
