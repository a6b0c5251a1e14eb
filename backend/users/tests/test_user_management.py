"""
Integration tests: user listing and role assignment.

Endpoints under test:
    GET   /api/users/accounts/                    users:user-list
    PATCH /api/users/accounts/{id}/assign-role/   users:user-assign-role
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

pytestmark = pytest.mark.django_db


@pytest.fixture()
def admin_user(create_user):
    return create_user(username="rbac_admin", permissions=["users.view", "users.manage"])


def test_listing_users_needs_the_view_token(api_client, create_user, admin_user):
    api_client.force_authenticate(create_user(username="plain"))
    assert api_client.get(reverse("users:user-list")).status_code == status.HTTP_403_FORBIDDEN

    api_client.force_authenticate(admin_user)
    resp = api_client.get(reverse("users:user-list"), {"search": "rbac"})
    assert resp.status_code == status.HTTP_200_OK
    assert [u["username"] for u in resp.data] == ["rbac_admin"]


def test_assign_and_clear_role(api_client, create_user, make_role, admin_user):
    surveyor_role = make_role("Quality Surveyor", ["reports.review"], hierarchy_level=50)
    target = create_user(username="future_qs")
    url = reverse("users:user-assign-role", kwargs={"pk": target.pk})
    api_client.force_authenticate(admin_user)

    resp = api_client.patch(url, {"role_id": surveyor_role.pk}, format="json")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["role_detail"]["name"] == "Quality Surveyor"
    assert resp.data["permissions"] == ["reports.review"]

    resp = api_client.patch(url, {"role_id": None}, format="json")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["role"] is None
    assert resp.data["permissions"] == []


def test_assign_role_errors(api_client, create_user, admin_user):
    target = create_user(username="target")
    url = reverse("users:user-assign-role", kwargs={"pk": target.pk})

    api_client.force_authenticate(target)
    resp = api_client.patch(url, {"role_id": None}, format="json")
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.data["required_permission"] == "users.manage"

    api_client.force_authenticate(admin_user)
    assert api_client.patch(url, {"role_id": 999999}, format="json").status_code == status.HTTP_404_NOT_FOUND
    missing = reverse("users:user-assign-role", kwargs={"pk": 999999})
    assert api_client.patch(missing, {"role_id": None}, format="json").status_code == status.HTTP_404_NOT_FOUND
