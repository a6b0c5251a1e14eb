"""
reports.validators: Field-completeness rules for reports.

``validate_report`` is pure: it never raises, never touches the
database, and reports every missing field in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

REQUIRED_FIELD_MESSAGES: dict[str, str] = {
    "title": "Report title is required",
    "client_id": "Client is required",
    "visit_date": "Visit date is required",
    "site_address": "Site address is required",
}


@dataclass(frozen=True)
class ReportValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


def _is_blank_text(value: Any) -> bool:
    return value is None or not str(value).strip()


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def validate_report(fields: Mapping[str, Any]) -> ReportValidationResult:
    """
    Check that a report carries everything it needs to leave draft.

    ``title`` and ``site_address`` must be non-blank after trimming;
    ``client_id`` and ``visit_date`` must be present.
    """
    errors: dict[str, str] = {}

    if _is_blank_text(fields.get("title")):
        errors["title"] = REQUIRED_FIELD_MESSAGES["title"]
    if _is_missing(fields.get("client_id")):
        errors["client_id"] = REQUIRED_FIELD_MESSAGES["client_id"]
    if _is_missing(fields.get("visit_date")):
        errors["visit_date"] = REQUIRED_FIELD_MESSAGES["visit_date"]
    if _is_blank_text(fields.get("site_address")):
        errors["site_address"] = REQUIRED_FIELD_MESSAGES["site_address"]

    return ReportValidationResult(is_valid=not errors, errors=errors)
