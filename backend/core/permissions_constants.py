"""
Permissions Constants: **Single Source of Truth**

Every permission referenced in code (services, ``setup_rbac``, model
``Meta.permissions``) MUST use one of the constants defined here.

Organisation
------------
- Each resource has a ``<Resource>Perms`` class holding the **codename**
  of every action (no ``app_label.`` prefix).  The codenames are
  registered via the owning model's ``Meta.permissions`` tuple, and the
  app label of that model is the resource name, so Django's
  ``app_label.codename`` string *is* the dotted catalogue token
  (``reports.submit``, ``clients.view`` ...).

- ``PERMISSION_REGISTRY`` is the read-only catalogue consulted by the
  workflow authorizer: ``resource → action → token``.  It is built once
  at import time and wrapped in ``MappingProxyType``; there is no
  mutation API.

Adding a new permission requires:
    1. Add the constant to the resource class below.
    2. Add ``(codename, description)`` to the model's ``Meta.permissions``.
    3. Add the constant to the appropriate role lists in ``setup_rbac``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import AbstractSet, Iterator, Mapping


# ════════════════════════════════════════════════════════════════════
#  REPORTS APP
# ════════════════════════════════════════════════════════════════════

class ReportsPerms:
    """Capabilities on site-inspection reports."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"

    # ── Workflow permissions ────────────────────────────────────────
    SUBMIT = "submit"
    """Report manager sends a draft (or a revised report) for QS review."""

    APPROVE = "approve"
    """Final decision: approve or reject a report under review."""

    REVIEW = "review"
    """Quality surveyor picks up, reviews, schedules visits, asks for revisions."""


# ════════════════════════════════════════════════════════════════════
#  CLIENTS APP
# ════════════════════════════════════════════════════════════════════

class ClientsPerms:
    """Capabilities on client records."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


# ════════════════════════════════════════════════════════════════════
#  USERS APP
# ════════════════════════════════════════════════════════════════════

class UsersPerms:
    """Capabilities on user accounts."""

    VIEW = "view"
    MANAGE = "manage"
    """Admin-level user management (activate, deactivate, assign roles)."""


# ════════════════════════════════════════════════════════════════════
#  Catalogue
# ════════════════════════════════════════════════════════════════════

_RESOURCES: dict[str, type] = {
    "reports": ReportsPerms,
    "clients": ClientsPerms,
    "users": UsersPerms,
}


def _actions_of(perms_class: type) -> dict[str, str]:
    return {
        value: value
        for name, value in vars(perms_class).items()
        if name.isupper() and isinstance(value, str)
    }


PERMISSION_REGISTRY: Mapping[str, Mapping[str, str]] = MappingProxyType({
    resource: MappingProxyType({
        action: f"{resource}.{codename}"
        for action, codename in _actions_of(perms_class).items()
    })
    for resource, perms_class in _RESOURCES.items()
})


def token_for(resource: str, action: str) -> str:
    """
    Return the dotted token for ``resource.action``.

    Raises ``KeyError`` for anything outside the catalogue.
    """
    return PERMISSION_REGISTRY[resource][action]


def all_tokens() -> Iterator[str]:
    """Yield every catalogue token, grouped by resource."""
    for actions in PERMISSION_REGISTRY.values():
        yield from actions.values()


def split_token(token: str) -> tuple[str, str]:
    """Split ``reports.submit`` into ``("reports", "submit")``."""
    app_label, _, codename = token.partition(".")
    return app_label, codename


def has(actor_permissions: AbstractSet[str], required: str) -> bool:
    """
    Exact-match membership check.

    No hierarchy and no wildcards: ``reports.*`` is not a token and
    holding ``reports.approve`` does not imply ``reports.review``.
    """
    return required in actor_permissions
