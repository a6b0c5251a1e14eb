"""
core.domain.exception_handler: turns domain errors into API responses.

Services raise the framework-free exceptions of ``core.domain.exceptions``;
this handler gives each one its status code and a body the client can act
on.  Wired up in ``settings.REST_FRAMEWORK["EXCEPTION_HANDLER"]``.

Response bodies
---------------
400  ``{"detail", "errors": {field: message, ...}}``   FieldValidationError
403  ``{"detail", "required_permission"}``             PermissionDenied
404  ``{"detail"}``                                    NotFound
409  ``{"detail", "current", "target"}``               InvalidTransition
409  ``{"detail"}``                                    Conflict
"""

from __future__ import annotations

import logging
from typing import Any

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    FieldValidationError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases.
_STATUS_MAP: dict[type, int] = {
    FieldValidationError: 400,
    PermissionDenied:     403,
    NotFound:             404,
    InvalidTransition:    409,
    Conflict:             409,
    DomainError:          400,
}


def _body_for(exc: DomainError) -> dict[str, Any]:
    body: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, FieldValidationError):
        body["errors"] = exc.errors
    elif isinstance(exc, InvalidTransition):
        body["current"] = exc.current
        body["target"] = exc.target
    elif isinstance(exc, PermissionDenied) and exc.required:
        body["required_permission"] = exc.required
    return body


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF's own exceptions keep DRF's handling; domain errors are mapped
    through ``_STATUS_MAP``.  Anything else returns ``None`` and becomes
    a 500.
    """
    response = drf_default_handler(exc, context)
    if response is not None:
        return response

    status_code = next(
        (code for exc_class, code in _STATUS_MAP.items() if isinstance(exc, exc_class)),
        None,
    )
    if status_code is None:
        return None

    logger.warning(
        "%s raised in %s: %s",
        type(exc).__name__,
        type(context.get("view")).__name__ if context.get("view") else "unknown view",
        exc,
    )
    return Response(_body_for(exc), status=status_code)
