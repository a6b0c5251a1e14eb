"""
core.domain.exceptions: Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  The global DRF exception handler in
``core.domain.exception_handler`` maps them to HTTP responses.

Mapping cheatsheet
------------------
┌───────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception      │ Meaning                      │ Code │
├───────────────────────┼──────────────────────────────┼──────┤
│ DomainError           │ generic business-rule breach │ 400  │
│ FieldValidationError  │ field → message map          │ 400  │
│ PermissionDenied      │ actor lacks the token        │ 403  │
│ NotFound              │ missing / invisible resource │ 404  │
│ Conflict              │ clashes with current state   │ 409  │
│ InvalidTransition     │ edge not in the table        │ 409  │
│ StatusChangeForbidden │ status written off-workflow  │ 409  │
└───────────────────────┴──────────────────────────────┴──────┘

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if (current, target) not in ALLOWED_TRANSITIONS:
        raise InvalidTransition(current=current, target=target)
"""

from __future__ import annotations

from typing import Mapping


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class FieldValidationError(DomainError):
    """
    One or more fields are missing or malformed.

    Always carries the *complete* ``field → message`` map so the client
    can render every error at once.  Recoverable by re-submitting
    corrected data.
    """

    def __init__(
        self,
        errors: Mapping[str, str],
        message: str = "One or more fields are invalid.",
    ) -> None:
        super().__init__(message)
        self.errors = dict(errors)


class PermissionDenied(DomainError):
    """
    The authenticated user does not hold the permission token required
    for this operation.  Not retried automatically.

    Maps to HTTP 403.
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action.",
        *,
        required: str | None = None,
    ) -> None:
        super().__init__(message)
        self.required = required


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user).

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine edge that does not exist in the transition table.

    Always a caller bug or stale client state; kept distinct from
    ``PermissionDenied`` so the client refreshes state instead of
    re-prompting for permissions.

    Example::

        raise InvalidTransition(
            current="approved",
            target="draft",
            reason="Approved reports are final.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class StatusChangeForbidden(Conflict):
    """
    A model's status field was assigned directly instead of going
    through its workflow service.
    """

    def __init__(
        self,
        message: str = "Status may only change through the workflow service.",
    ) -> None:
        super().__init__(message)
