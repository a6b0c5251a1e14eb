"""
reports.notifications: Turns committed transitions into notifications.

Connected to ``reports.events.report_transitioned`` in
``ReportsConfig.ready``.

Recipients
----------
* ``pending_qs_review`` → every active user holding ``reports.review``
  (the QS queue), except the submitter.
* any other status     → the report's creator, unless they made the
  change themselves.
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db.models import Q

from core.domain.notifications import NotificationService
from core.permissions_constants import ReportsPerms, split_token, token_for

from .events import ReportTransitioned
from .models import Report
from .status import ReportStatus

logger = logging.getLogger(__name__)

EVENT_BY_STATUS: dict[str, str] = {
    ReportStatus.PENDING_QS_REVIEW: "report_submitted",
    ReportStatus.UNDER_REVIEW: "report_review_started",
    ReportStatus.REVISION_REQUESTED: "report_revision_requested",
    ReportStatus.SITE_VISIT_SCHEDULED: "report_site_visit_scheduled",
    ReportStatus.APPROVED: "report_approved",
    ReportStatus.REJECTED: "report_rejected",
    ReportStatus.ARCHIVED: "report_archived",
}


def reviewers():
    """Active users whose role grants ``reports.review`` (superusers included)."""
    app_label, codename = split_token(token_for("reports", ReportsPerms.REVIEW))
    User = get_user_model()
    return User.objects.filter(is_active=True).filter(
        Q(is_superuser=True)
        | Q(
            role__permissions__content_type__app_label=app_label,
            role__permissions__codename=codename,
        )
    ).distinct()


def _recipients_for(report: Report, event: ReportTransitioned) -> list:
    if event.to_status == ReportStatus.PENDING_QS_REVIEW:
        return [user for user in reviewers() if user.pk != event.actor_id]
    if report.created_by_id == event.actor_id:
        return []
    return [report.created_by]


def notify_report_transition(sender, event: ReportTransitioned, **kwargs) -> None:
    event_type = EVENT_BY_STATUS.get(event.to_status)
    if event_type is None:
        return

    report = Report.objects.select_related("created_by").get(pk=event.report_id)
    recipients = _recipients_for(report, event)
    if not recipients:
        logger.debug("No one to notify about report %s → %s", event.report_id, event.to_status)
        return

    actor = None
    if event.actor_id is not None:
        actor = get_user_model().objects.filter(pk=event.actor_id).first()

    NotificationService.create(
        actor=actor,
        recipients=recipients,
        event_type=event_type,
        payload=event.as_payload(),
        related_object=report,
        link=f"/reports/{report.pk}",
    )
