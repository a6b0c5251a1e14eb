"""
reports.status: Report status enumeration and its wire codec.

Internally a status is always one of the snake_case ``ReportStatus``
tokens.  The API clients speak PascalCase enum names (``PendingQsReview``)
and older clients send compact variants (``pendingqsreview``).  All
string handling is confined to this module:

``to_wire``        canonical → PascalCase (lenient, case-insensitive).
``to_canonical``   PascalCase → canonical (lenient, never raises).
``status_equals``  equivalence across the two forms.
``parse_status``   string → ``ReportStatus`` member or ``None``.

``to_canonical(to_wire(s)) == s`` holds for every member.
"""

from __future__ import annotations

from django.db import models


class ReportStatus(models.TextChoices):
    """Closed set of lifecycle states of a site-inspection report."""

    DRAFT = "draft", "Draft"
    PENDING_QS_REVIEW = "pending_qs_review", "Pending QS Review"
    UNDER_REVIEW = "under_review", "Under Review"
    REVISION_REQUESTED = "revision_requested", "Revision Requested"
    SITE_VISIT_SCHEDULED = "site_visit_scheduled", "Site Visit Scheduled"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    ARCHIVED = "archived", "Archived"


_WIRE_NAMES: dict[str, str] = {
    ReportStatus.DRAFT: "Draft",
    ReportStatus.PENDING_QS_REVIEW: "PendingQsReview",
    ReportStatus.UNDER_REVIEW: "UnderReview",
    ReportStatus.REVISION_REQUESTED: "RevisionRequested",
    ReportStatus.SITE_VISIT_SCHEDULED: "SiteVisitScheduled",
    ReportStatus.APPROVED: "Approved",
    ReportStatus.REJECTED: "Rejected",
    ReportStatus.ARCHIVED: "Archived",
}

_FROM_WIRE: dict[str, str] = {wire: canonical for canonical, wire in _WIRE_NAMES.items()}

# Lower-cased spellings older clients send, folded to the canonical token.
_ALIASES: dict[str, str] = {
    "pendingqsreview": ReportStatus.PENDING_QS_REVIEW,
    "pendingqs_review": ReportStatus.PENDING_QS_REVIEW,
    "pending_qsreview": ReportStatus.PENDING_QS_REVIEW,
    "underreview": ReportStatus.UNDER_REVIEW,
    "revisionrequested": ReportStatus.REVISION_REQUESTED,
    "sitevisitscheduled": ReportStatus.SITE_VISIT_SCHEDULED,
}


def _fold(lowered: str) -> str:
    if lowered in _WIRE_NAMES:
        return lowered
    return _ALIASES.get(lowered, lowered)


def to_wire(status: str | None) -> str | None:
    """
    Return the PascalCase wire name of ``status``.

    Matching is case-insensitive and accepts the compact aliases.
    Empty or unrecognised input is returned unchanged.
    """
    if not status:
        return status
    canonical = _fold(str(status).lower())
    return _WIRE_NAMES.get(canonical, status)


def to_canonical(wire: str | None) -> str | None:
    """
    Return the canonical snake_case token for a wire value.

    Exact PascalCase names map directly; anything else is lower-cased
    and, when it is a known compact alias, folded.  Unknown values come
    back lower-cased.  Empty input is returned unchanged.
    """
    if not wire:
        return wire
    value = str(wire)
    if value in _FROM_WIRE:
        return _FROM_WIRE[value]
    return _fold(value.lower())


def status_equals(actual: str | None, expected: str | None) -> bool:
    """True when both values denote the same status in either form."""
    if not actual or not expected:
        return False
    if str(actual).lower() == str(expected).lower():
        return True
    return to_canonical(actual) == to_canonical(expected)


def parse_status(value: str | None) -> ReportStatus | None:
    """Canonicalise ``value`` and return the matching member, if any."""
    canonical = to_canonical(value)
    if canonical in ReportStatus.values:
        return ReportStatus(canonical)
    return None
