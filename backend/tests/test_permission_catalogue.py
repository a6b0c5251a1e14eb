"""
Tests for the permission catalogue in ``core.permissions_constants``
and its agreement with the permissions Django actually registers.
"""

from __future__ import annotations

import pytest
from django.contrib.auth.models import Permission

from core.permissions_constants import (
    PERMISSION_REGISTRY,
    all_tokens,
    has,
    split_token,
    token_for,
)


def test_registry_covers_every_resource():
    assert set(PERMISSION_REGISTRY) == {"reports", "clients", "users"}
    assert set(PERMISSION_REGISTRY["reports"]) == {
        "view", "create", "edit", "delete", "submit", "review", "approve",
    }
    assert set(PERMISSION_REGISTRY["clients"]) == {"view", "create", "edit", "delete"}
    assert set(PERMISSION_REGISTRY["users"]) == {"view", "manage"}


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        PERMISSION_REGISTRY["reports"]["publish"] = "reports.publish"
    with pytest.raises(TypeError):
        PERMISSION_REGISTRY["invoices"] = {}


def test_token_lookup():
    assert token_for("reports", "submit") == "reports.submit"
    with pytest.raises(KeyError):
        token_for("reports", "publish")
    assert split_token("clients.view") == ("clients", "view")


def test_membership_is_exact():
    held = frozenset({"reports.approve"})
    assert has(held, "reports.approve")
    assert not has(held, "reports.review")
    assert not has(frozenset({"reports.*"}), "reports.view")


@pytest.mark.django_db
def test_every_token_is_a_registered_permission():
    registered = {
        f"{p.content_type.app_label}.{p.codename}"
        for p in Permission.objects.select_related("content_type")
    }
    missing = set(all_tokens()) - registered
    assert not missing, f"Tokens without a Permission row: {sorted(missing)}"


@pytest.mark.django_db
def test_superuser_holds_every_token(create_user):
    root = create_user(username="root", is_superuser=True, is_staff=True)
    assert set(all_tokens()) <= root.get_all_permissions()
