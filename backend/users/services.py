"""
Users app services: **Service Layer**.

Profile updates for the current user and admin-level user management.
Views stay thin and delegate here.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q, QuerySet

from core.domain.access import require_permission
from core.domain.exceptions import NotFound
from core.permissions_constants import UsersPerms, token_for

from .models import Role

User = get_user_model()

logger = logging.getLogger(__name__)


class CurrentUserService:
    """Read and update the authenticated user's own profile."""

    @staticmethod
    def get_profile(user: User) -> User:
        return User.objects.select_related("role").get(pk=user.pk)

    @staticmethod
    def update_profile(user: User, validated_data: dict[str, Any]) -> User:
        for field, value in validated_data.items():
            setattr(user, field, value)
        user.save(update_fields=list(validated_data.keys()))
        return user


class UserManagementService:
    """
    Listing users and assigning roles.

    Listing needs ``users.view``; assigning a role needs ``users.manage``.
    """

    @staticmethod
    def list_users(requesting_user: User, *, search: str | None = None) -> QuerySet[User]:
        require_permission(requesting_user, token_for("users", UsersPerms.VIEW))
        qs = User.objects.select_related("role").order_by("username")
        if search:
            qs = qs.filter(Q(username__icontains=search) | Q(email__icontains=search))
        return qs

    @staticmethod
    @transaction.atomic
    def assign_role(*, user_id: int, role_id: int | None, performed_by: User) -> User:
        """
        Assign (or clear) a user's role.

        Raises
        ------
        PermissionDenied
            If ``performed_by`` lacks ``users.manage``.
        NotFound
            If the user or the role does not exist.
        """
        require_permission(performed_by, token_for("users", UsersPerms.MANAGE))

        try:
            target_user = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise NotFound(f"User with id {user_id} not found.")

        new_role = None
        if role_id is not None:
            try:
                new_role = Role.objects.get(pk=role_id)
            except Role.DoesNotExist:
                raise NotFound(f"Role with id {role_id} not found.")

        target_user.role = new_role
        target_user.save(update_fields=["role"])
        target_user.clear_permission_cache()

        logger.info(
            "Role of user=%s set to %s by %s",
            target_user.username,
            new_role.name if new_role else None,
            performed_by.username,
        )
        return target_user
