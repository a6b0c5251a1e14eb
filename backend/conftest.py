"""
Root conftest.py: shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``make_role`` factory fixture for roles granted catalogue tokens.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _media_root(settings, tmp_path):
    """Keep uploaded files out of the source tree."""
    settings.MEDIA_ROOT = tmp_path / "media"


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def make_role(db):
    """
    Factory fixture that creates a ``Role`` granted the given tokens.

    Usage::

        def test_something(make_role):
            role = make_role("Report Manager", ["reports.create", "reports.submit"])
    """
    from django.contrib.auth.models import Permission

    from core.permissions_constants import split_token
    from users.models import Role

    def _factory(name: str, tokens=(), hierarchy_level: int = 0) -> Role:
        role, _ = Role.objects.get_or_create(
            name=name,
            defaults={
                "description": f"Test role: {name}",
                "hierarchy_level": hierarchy_level,
            },
        )
        for token in tokens:
            app_label, codename = split_token(token)
            role.permissions.add(
                Permission.objects.get(content_type__app_label=app_label, codename=codename)
            )
        return role

    return _factory


@pytest.fixture()
def create_user(db, make_role):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            # or holding catalogue tokens through a throwaway role:
            user = create_user(
                username="bob",
                permissions=["reports.review", "reports.approve"],
            )
    """
    from users.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        role=None,
        permissions=None,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"
        if role is None and permissions is not None:
            role = make_role(f"role-for-{username}", permissions)

        user = User.objects.create_user(
            username=username,
            password=password,
            email=email,
            is_active=is_active,
            **kwargs,
        )
        if role is not None:
            user.role = role
            user.save(update_fields=["role"])
        return user

    return _factory


@pytest.fixture()
def auth_header(create_user, api_client):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(username="alice", permissions=["reports.view"])
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/reports/")
            assert resp.status_code != 401

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(
        *,
        username: str | None = None,
        role=None,
        **user_kwargs,
    ) -> dict[str, str]:
        user = create_user(username=username, role=role, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make
