"""
core.domain.access: Permission helpers shared by every service layer.

╔══════════════════════════════════════════════════════════════════╗
║  Per-app scoping logic does NOT live here.                      ║
║  Each app's ``services.py`` owns its own scope-rules list.      ║
║  This module provides:                                          ║
║    1) ``actor_permissions``: the actor's token set.            ║
║    2) ``require_permission``: guard raising PermissionDenied.  ║
║    3) ``apply_permission_scope``: ordered permission dispatch. ║
╚══════════════════════════════════════════════════════════════════╝

Every check funnels through ``core.permissions_constants.has`` so the
membership rule (exact match, no wildcards) lives in one place.

Usage in an app's service layer::

    from core.domain.access import apply_permission_scope, require_permission

    REPORT_SCOPE_RULES = [
        ("reports.review", lambda qs, u: qs.exclude(status="draft")),
        ("reports.view",   lambda qs, u: qs.filter(created_by=u)),
    ]

    require_permission(user, "reports.create")
    qs = apply_permission_scope(Report.objects.all(), user, scope_rules=REPORT_SCOPE_RULES)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from django.db.models import QuerySet

from core.domain.exceptions import PermissionDenied
from core.permissions_constants import has

if TYPE_CHECKING:
    from users.models import User

# Takes (queryset, user) and returns a filtered queryset.
ScopeFilter = Callable[[QuerySet, "User"], QuerySet]

# A single scope rule: (dotted permission token, filter_fn).
ScopeRule = tuple[str, ScopeFilter]


def actor_permissions(user: User) -> frozenset[str]:
    """
    Return the immutable set of dotted tokens the user currently holds.

    Inactive or anonymous users hold nothing.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        return frozenset()
    return frozenset(user.get_all_permissions())


def require_permission(user: User, *tokens: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user lacks **all** of
    the given tokens (OR-logic: having any one is sufficient).

    Example::

        require_permission(user, "reports.create")
    """
    held = actor_permissions(user)
    for token in tokens:
        if has(held, token):
            return
    raise PermissionDenied(
        message or f"Missing required permission: {', '.join(tokens)}.",
        required=tokens[0] if len(tokens) == 1 else None,
    )


def apply_permission_scope(
    queryset: QuerySet,
    user: User,
    *,
    scope_rules: list[ScopeRule],
    default: str = "none",
) -> QuerySet:
    """
    Apply the first matching permission-based scope rule.

    Rules are checked **in order**: first permission match wins.
    Order rules from broadest to narrowest.

    Args:
        queryset:     Base (unfiltered) queryset.
        user:         The authenticated user.
        scope_rules:  Ordered list of ``(token, filter_fn)`` tuples.
        default:      ``"none"`` (default) → empty queryset when nothing
                      matches; ``"all"`` → return unfiltered.
    """
    held = actor_permissions(user)
    for token, filter_fn in scope_rules:
        if has(held, token):
            return filter_fn(queryset, user)

    if default == "none":
        return queryset.none()
    return queryset
