"""
Reports app Service Layer.

This module is the **single source of truth** for all business logic
in the ``reports`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in
a DRF ``Response``.

Architecture
------------
- ``ReportQueryService``: Permission-scoped listing and lookup.
- ``ReportCreationService``: Draft creation.
- ``ReportEditService``: Field edits while the author holds the report.
- ``ReportWorkflowService``: State-machine transitions.
- ``ReportAttachmentService``: Photo and document uploads.

Workflow State-Machine Overview
--------------------------------
  DRAFT ──submit──► PENDING_QS_REVIEW ──start review──► UNDER_REVIEW
    │                      ▲                              │
    │                      └──── resubmit ◄── REVISION_REQUESTED ◄─┤
    ▼                                                     │
  ARCHIVED ◄── archive ── REVISION_REQUESTED              ├─► SITE_VISIT_SCHEDULED
                                                          │       │ (back to review,
                                                          │       │  or decide directly)
                                                          ├─► APPROVED
                                                          └─► REJECTED

  APPROVED, REJECTED and ARCHIVED are final.

Permission tokens used here (from ``core.permissions_constants.ReportsPerms``):
  - reports.submit   → Report manager sends a report to the QS queue
  - reports.review   → QS picks up, schedules visits, asks for revisions
  - reports.approve  → Final approve / reject
  - reports.delete   → Archive a draft or returned report
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from clients.models import Client
from core.domain.access import actor_permissions, apply_permission_scope, require_permission
from core.domain.exceptions import (
    Conflict,
    FieldValidationError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.transactions import defer_until_commit, lock_for_update
from core.permissions_constants import ReportsPerms, has, token_for

from .conf import reports_setting
from .events import ReportTransitioned, publish_transition
from .files import get_file_type, validate_file_size, validate_file_type
from .geotag import extract_geotag_within, group_by_location
from .models import Attachment, GeotaggedPhoto, Report, ReportStatus, ReportStatusLog
from .status import parse_status
from .validators import validate_report

logger = logging.getLogger(__name__)

VIEW = token_for("reports", ReportsPerms.VIEW)
CREATE = token_for("reports", ReportsPerms.CREATE)
EDIT = token_for("reports", ReportsPerms.EDIT)
DELETE = token_for("reports", ReportsPerms.DELETE)
SUBMIT = token_for("reports", ReportsPerms.SUBMIT)
REVIEW = token_for("reports", ReportsPerms.REVIEW)
APPROVE = token_for("reports", ReportsPerms.APPROVE)


# ═══════════════════════════════════════════════════════════════════
#  Valid transition map
# ═══════════════════════════════════════════════════════════════════

#: Maps (from_status, to_status) → the permission token that allows the
#: transition.  Pairs not present here are illegal.
ALLOWED_TRANSITIONS: Mapping[tuple[str, str], str] = {
    # ── Author side ─────────────────────────────────────────────────
    (ReportStatus.DRAFT, ReportStatus.PENDING_QS_REVIEW): SUBMIT,
    (ReportStatus.DRAFT, ReportStatus.ARCHIVED): DELETE,
    (ReportStatus.REVISION_REQUESTED, ReportStatus.PENDING_QS_REVIEW): SUBMIT,
    (ReportStatus.REVISION_REQUESTED, ReportStatus.ARCHIVED): DELETE,
    # ── QS review ───────────────────────────────────────────────────
    (ReportStatus.PENDING_QS_REVIEW, ReportStatus.UNDER_REVIEW): REVIEW,
    (ReportStatus.UNDER_REVIEW, ReportStatus.REVISION_REQUESTED): REVIEW,
    (ReportStatus.UNDER_REVIEW, ReportStatus.SITE_VISIT_SCHEDULED): REVIEW,
    (ReportStatus.SITE_VISIT_SCHEDULED, ReportStatus.UNDER_REVIEW): REVIEW,
    # ── Final decision ──────────────────────────────────────────────
    (ReportStatus.UNDER_REVIEW, ReportStatus.APPROVED): APPROVE,
    (ReportStatus.UNDER_REVIEW, ReportStatus.REJECTED): APPROVE,
    (ReportStatus.SITE_VISIT_SCHEDULED, ReportStatus.APPROVED): APPROVE,
    (ReportStatus.SITE_VISIT_SCHEDULED, ReportStatus.REJECTED): APPROVE,
}

#: Leaving draft for any status needs every required field filled in.
FIELD_GATED_STATUSES: frozenset[str] = frozenset(set(ReportStatus.values) - {ReportStatus.DRAFT})

#: QS decision → target status.
DECISION_TARGETS: Mapping[str, str] = {
    "approve": ReportStatus.APPROVED,
    "reject": ReportStatus.REJECTED,
    "revision": ReportStatus.REVISION_REQUESTED,
    "site_visit": ReportStatus.SITE_VISIT_SCHEDULED,
}

#: Decisions that must explain themselves to the author.
COMMENT_REQUIRED_DECISIONS = frozenset({"reject", "revision"})

#: Fields a report manager may edit.
EDITABLE_FIELDS = ("title", "description", "client_id", "visit_date", "site_address")


def outgoing_transitions(status: str) -> dict[str, str]:
    """Targets reachable from ``status`` and the token each one needs."""
    return {to: token for (frm, to), token in ALLOWED_TRANSITIONS.items() if frm == status}


def report_fields(report: Report) -> dict[str, Any]:
    """The fields ``validate_report`` inspects, read off a model instance."""
    return {
        "title": report.title,
        "client_id": report.client_id,
        "visit_date": report.visit_date,
        "site_address": report.site_address,
    }


def _resolve_client(client_id: Any) -> Client | None:
    if client_id in (None, ""):
        return None
    try:
        return Client.objects.get(pk=client_id)
    except (Client.DoesNotExist, ValueError):
        raise FieldValidationError({"client_id": "Client not found"})


# ═══════════════════════════════════════════════════════════════════
#  Report Query Service
# ═══════════════════════════════════════════════════════════════════

#: Reviewers and approvers see every report that has left draft plus
#: their own; holders of ``reports.view`` see only their own reports.
REPORT_SCOPE_RULES = [
    (REVIEW, lambda qs, u: qs.filter(~Q(status=ReportStatus.DRAFT) | Q(created_by=u))),
    (APPROVE, lambda qs, u: qs.filter(~Q(status=ReportStatus.DRAFT) | Q(created_by=u))),
    (VIEW, lambda qs, u: qs.filter(created_by=u)),
]


class ReportQueryService:
    """
    Constructs permission-scoped, filtered querysets of reports.
    """

    @staticmethod
    def get_filtered_queryset(
        requesting_user: Any,
        filters: Mapping[str, Any] | None = None,
    ) -> QuerySet[Report]:
        """
        Build a scoped, filtered queryset of ``Report`` objects.

        Parameters
        ----------
        requesting_user : User
            From ``request.user``; decides the visible set.
        filters : dict
            Optional keys:
            - ``status``  : str  (canonical or wire form)
            - ``client``  : int  (client PK)
            - ``mine``    : bool (only reports the user created)
            - ``search``  : str  (title / site address / client name)

        Raises
        ------
        FieldValidationError
            If ``status`` names no known status.
        """
        filters = filters or {}
        qs = apply_permission_scope(
            Report.objects.select_related("client", "created_by", "last_modified_by"),
            requesting_user,
            scope_rules=REPORT_SCOPE_RULES,
        )

        raw_status = filters.get("status")
        if raw_status:
            status = parse_status(raw_status)
            if status is None:
                raise FieldValidationError({"status": f"Unknown status '{raw_status}'"})
            qs = qs.filter(status=status)

        if filters.get("client"):
            qs = qs.filter(client_id=filters["client"])

        if filters.get("mine"):
            qs = qs.filter(created_by=requesting_user)

        search = (filters.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(title__icontains=search)
                | Q(site_address__icontains=search)
                | Q(client__name__icontains=search)
            )

        return qs

    @staticmethod
    def get_report(report_id: Any, requesting_user: Any) -> Report:
        """
        Fetch one report visible to ``requesting_user``.

        Reports outside the user's scope are reported as missing.
        """
        qs = ReportQueryService.get_filtered_queryset(requesting_user)
        try:
            return qs.get(pk=report_id)
        except (Report.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound(f"Report with id {report_id} not found.")

    @staticmethod
    def get_status_log(report_id: Any, requesting_user: Any) -> QuerySet[ReportStatusLog]:
        report = ReportQueryService.get_report(report_id, requesting_user)
        return report.status_logs.select_related("changed_by").order_by("created_at", "id")


# ═══════════════════════════════════════════════════════════════════
#  Report Creation / Edit Services
# ═══════════════════════════════════════════════════════════════════


class ReportCreationService:

    @staticmethod
    @transaction.atomic
    def create_report(validated_data: Mapping[str, Any], requesting_user: Any) -> Report:
        """
        Create a new report in ``draft``.

        Required fields are not enforced here: a draft may be saved
        incomplete and is validated when it leaves ``draft``.  No audit
        entry is written; the trail starts with the first transition.
        """
        require_permission(requesting_user, CREATE)

        data = {key: validated_data[key] for key in EDITABLE_FIELDS if key in validated_data}
        client = _resolve_client(data.pop("client_id", None))
        now = timezone.now()

        report = Report.objects.create(
            client=client,
            created_by=requesting_user,
            last_modified_by=requesting_user,
            last_modified_at=now,
            **data,
        )

        logger.info("Report %s created by %s", report.pk, requesting_user)
        return report


class ReportEditService:

    @staticmethod
    @transaction.atomic
    def update_report(
        report_id: Any,
        validated_data: Mapping[str, Any],
        requesting_user: Any,
    ) -> Report:
        """
        Change report fields while the report is ``draft`` or
        ``revision_requested``.

        Raises
        ------
        PermissionDenied
            Without ``reports.edit``.
        Conflict
            When the report is in any other status.
        """
        require_permission(requesting_user, EDIT)
        ReportQueryService.get_report(report_id, requesting_user)
        report = lock_for_update(Report, report_id)

        if not report.is_editable:
            raise Conflict(
                f"Report can only be edited in draft or revision_requested status "
                f"(current: {report.status})."
            )

        for key in EDITABLE_FIELDS:
            if key not in validated_data:
                continue
            if key == "client_id":
                report.client = _resolve_client(validated_data[key])
            else:
                setattr(report, key, validated_data[key])

        report.last_modified_by = requesting_user
        report.last_modified_at = timezone.now()
        report.save()
        return report


# ═══════════════════════════════════════════════════════════════════
#  Report Workflow Service
# ═══════════════════════════════════════════════════════════════════


class ReportWorkflowService:
    """
    Manages **all** status transitions in the report lifecycle.

    ``transition_state`` is the single validated gateway through the
    state machine defined by ``ALLOWED_TRANSITIONS``; the convenience
    commands (``submit_report``, ``start_review``, ``process_decision``,
    ``archive_report``) delegate to it.

    Checks run in a fixed order so the caller always gets the most
    actionable error:

    1. the edge exists                → else ``InvalidTransition`` (409)
    2. the actor holds the edge token → else ``PermissionDenied``  (403)
    3. required fields are complete   → else ``FieldValidationError`` (400)
    """

    @staticmethod
    @transaction.atomic
    def transition_state(
        report: Report,
        target_status: str,
        requesting_user: Any,
        message: str = "",
        *,
        changes: Mapping[str, Any] | None = None,
        extra_errors: Mapping[str, str] | None = None,
    ) -> Report:
        """
        **The central state-machine gateway.**

        Parameters
        ----------
        report : Report
            The report to move.  It is re-read under a row lock, so a
            stale instance is harmless.
        target_status : str
            Desired status in canonical or wire form.
        requesting_user : User
            The actor.
        message : str
            Comment stored on the audit entry and in the event.
        changes : dict, optional
            Extra field values written together with the new status
            (e.g. ``scheduled_visit_at``).
        extra_errors : dict, optional
            Command-specific field errors, reported together with the
            field-completeness errors after authorization.

        Returns
        -------
        Report
            The locked, updated instance.
        """
        locked = lock_for_update(Report, report.pk)
        current = locked.status
        target = parse_status(target_status)

        if target is None or (current, target) not in ALLOWED_TRANSITIONS:
            reason = None
            if not outgoing_transitions(current):
                reason = f"'{current}' is a final status"
            elif target is None:
                reason = "unknown target status"
            raise InvalidTransition(
                current=current,
                target=str(target or target_status or ""),
                reason=reason,
            )

        required = ALLOWED_TRANSITIONS[(current, target)]
        if not has(actor_permissions(requesting_user), required):
            raise PermissionDenied(
                f"Moving a report from '{current}' to '{target}' requires '{required}'.",
                required=required,
            )

        errors: dict[str, str] = {}
        if target in FIELD_GATED_STATUSES:
            errors.update(validate_report(report_fields(locked)).errors)
        if extra_errors:
            errors.update(extra_errors)
        if errors:
            raise FieldValidationError(errors)

        for field, value in (changes or {}).items():
            setattr(locked, field, value)

        now = timezone.now()
        locked.stage_status_change(target)
        locked.last_modified_by = requesting_user
        locked.last_modified_at = now
        locked.save()

        ReportStatusLog.objects.create(
            report=locked,
            from_status=current,
            to_status=target,
            changed_by=requesting_user,
            message=message or "",
        )

        defer_until_commit(
            publish_transition,
            ReportTransitioned(
                report_id=str(locked.pk),
                from_status=str(current),
                to_status=str(target),
                actor_id=requesting_user.pk,
                timestamp=now,
                message=message or "",
            ),
        )

        logger.info(
            "Report %s: %s → %s by %s",
            locked.pk,
            current,
            target,
            requesting_user,
        )
        return locked

    @staticmethod
    def submit_report(report: Report, requesting_user: Any, message: str = "") -> Report:
        """Send a draft (or a revised report) to the QS review queue."""
        return ReportWorkflowService.transition_state(
            report,
            ReportStatus.PENDING_QS_REVIEW,
            requesting_user,
            message or "Submitted for QS review",
        )

    @staticmethod
    def start_review(report: Report, requesting_user: Any) -> Report:
        """QS picks a report up from the queue."""
        return ReportWorkflowService.transition_state(
            report,
            ReportStatus.UNDER_REVIEW,
            requesting_user,
            "Review started",
        )

    @staticmethod
    def archive_report(report: Report, requesting_user: Any, message: str = "") -> Report:
        return ReportWorkflowService.transition_state(
            report,
            ReportStatus.ARCHIVED,
            requesting_user,
            message,
        )

    @staticmethod
    def process_decision(
        report: Report,
        decision: str,
        comment: str,
        requesting_user: Any,
        scheduled_date: datetime | None = None,
    ) -> Report:
        """
        **QS decision on a report under review.**

        ``approve``    → ``approved``
        ``reject``     → ``rejected``            (comment required)
        ``revision``   → ``revision_requested``  (comment required)
        ``site_visit`` → ``site_visit_scheduled`` (``scheduled_date`` required,
                         stored on ``Report.scheduled_visit_at``)

        Raises
        ------
        FieldValidationError
            For an unknown decision, or a missing comment / date.
        """
        key = (decision or "").strip().lower().replace("-", "_")
        target = DECISION_TARGETS.get(key)
        if target is None:
            raise FieldValidationError(
                {"decision": f"Unknown decision '{decision}'. Expected one of: {', '.join(DECISION_TARGETS)}."}
            )

        comment = (comment or "").strip()
        extra_errors: dict[str, str] = {}
        if key in COMMENT_REQUIRED_DECISIONS and not comment:
            extra_errors["comment"] = "A comment is required for this decision"

        changes: dict[str, Any] = {}
        if key == "site_visit":
            if scheduled_date is None:
                extra_errors["scheduled_date"] = "A visit date is required to schedule a site visit"
            else:
                changes["scheduled_visit_at"] = scheduled_date

        return ReportWorkflowService.transition_state(
            report,
            target,
            requesting_user,
            comment,
            changes=changes,
            extra_errors=extra_errors,
        )

    @staticmethod
    def available_transitions(report: Report, requesting_user: Any) -> list[str]:
        """Targets the user could move ``report`` to right now (permission-wise)."""
        held = actor_permissions(requesting_user)
        return [
            target
            for target, token in outgoing_transitions(report.status).items()
            if has(held, token)
        ]


# ═══════════════════════════════════════════════════════════════════
#  Report Attachment Service
# ═══════════════════════════════════════════════════════════════════


class ReportAttachmentService:
    """
    Uploads of site photos and supporting documents.

    Files can be added only while the report is editable.  Photos get
    their GPS location read from EXIF on the way in; a photo without
    usable GPS data is still stored.
    """

    @staticmethod
    def _editable_report(report_id: Any, requesting_user: Any) -> Report:
        require_permission(requesting_user, EDIT)
        report = ReportQueryService.get_report(report_id, requesting_user)
        if not report.is_editable:
            raise Conflict(
                f"Files can only be added in draft or revision_requested status "
                f"(current: {report.status})."
            )
        return report

    @staticmethod
    def _check_file(file: Any, *, max_size_mb: float, allowed_types: list[str]) -> None:
        if not validate_file_size(file, max_size_mb):
            raise FieldValidationError({"file": f"File exceeds the {max_size_mb} MB limit"})
        if not validate_file_type(file, allowed_types):
            raise FieldValidationError(
                {"file": f"File type '{get_file_type(file) or 'unknown'}' is not allowed"}
            )

    @staticmethod
    @transaction.atomic
    def upload_photo(
        report_id: Any,
        file: Any,
        requesting_user: Any,
        caption: str = "",
    ) -> GeotaggedPhoto:
        report = ReportAttachmentService._editable_report(report_id, requesting_user)
        ReportAttachmentService._check_file(
            file,
            max_size_mb=reports_setting("PHOTO_MAX_SIZE_MB"),
            allowed_types=reports_setting("PHOTO_ALLOWED_TYPES"),
        )

        geotag = extract_geotag_within(file, reports_setting("GEOTAG_EXTRACTION_TIMEOUT"))

        photo = GeotaggedPhoto(
            report=report,
            file=file,
            caption=caption or "",
            uploaded_by=requesting_user,
        )
        photo.apply_geotag(geotag)
        photo.save()

        logger.info(
            "Photo %s uploaded to report %s by %s (geotag=%s)",
            photo.pk,
            report.pk,
            requesting_user,
            "yes" if geotag else "no",
        )
        return photo

    @staticmethod
    @transaction.atomic
    def upload_attachment(report_id: Any, file: Any, requesting_user: Any) -> Attachment:
        report = ReportAttachmentService._editable_report(report_id, requesting_user)
        ReportAttachmentService._check_file(
            file,
            max_size_mb=reports_setting("ATTACHMENT_MAX_SIZE_MB"),
            allowed_types=reports_setting("ATTACHMENT_ALLOWED_TYPES"),
        )

        attachment = Attachment.objects.create(
            report=report,
            file=file,
            file_name=getattr(file, "name", "") or "attachment",
            file_type=get_file_type(file),
            file_size=file.size,
            uploaded_by=requesting_user,
        )
        logger.info(
            "Attachment %s (%s, %d bytes) uploaded to report %s by %s",
            attachment.pk,
            attachment.file_type,
            attachment.file_size,
            report.pk,
            requesting_user,
        )
        return attachment

    @staticmethod
    def list_photos(report_id: Any, requesting_user: Any) -> QuerySet[GeotaggedPhoto]:
        report = ReportQueryService.get_report(report_id, requesting_user)
        return report.photos.all()

    @staticmethod
    def photo_location_groups(
        photos: Iterable[GeotaggedPhoto],
        max_distance: float = 100.0,
    ) -> dict[int, int]:
        """
        Number the clusters of photos taken within ``max_distance`` metres
        of each other, keyed by photo pk.  Photos without a geotag are
        left out.
        """
        tagged = []
        for photo in photos:
            geotag = photo.geotag
            if geotag is not None:
                tagged.append((photo.pk, geotag))
        return {
            photo_id: index
            for index, group in enumerate(group_by_location(tagged, max_distance))
            for photo_id in group
        }

    @staticmethod
    def list_attachments(report_id: Any, requesting_user: Any) -> QuerySet[Attachment]:
        report = ReportQueryService.get_report(report_id, requesting_user)
        return report.attachments.all()
