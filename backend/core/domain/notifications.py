"""
core.domain.notifications: Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Synchronous**: all DB writes happen in the calling thread.  Workflow
  services never call this inside their own transaction; they defer the
  call with ``core.domain.transactions.defer_until_commit`` so a failure
  here cannot undo a committed state change.
* **Supports multiple recipients**: pass a single ``User`` or an
  iterable of ``User`` instances.
* **Generic relation**: ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=report.created_by,
        event_type="report_approved",
        payload={"report_id": str(report.pk)},
        related_object=report,
        link=f"/reports/{report.pk}",
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

from core.models import NotificationType

if TYPE_CHECKING:
    from core.models import Notification
    from users.models import User

logger = logging.getLogger(__name__)

# ── Event-type → (title, message, type) templates ───────────────────
_EVENT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "report_submitted":          ("Report Submitted for Review", "A site-inspection report is waiting in the QS review queue.", NotificationType.INFO),
    "report_review_started":     ("Report Under Review",         "A quality surveyor has started reviewing your report.",        NotificationType.INFO),
    "report_revision_requested": ("Revision Requested",          "Your report has been returned for revision.",                  NotificationType.WARNING),
    "report_site_visit_scheduled": ("Site Visit Scheduled",      "A site visit has been scheduled for your report.",             NotificationType.INFO),
    "report_approved":           ("Report Approved",             "Your site-inspection report has been approved.",               NotificationType.SUCCESS),
    "report_rejected":           ("Report Rejected",             "Your site-inspection report has been rejected.",               NotificationType.ERROR),
    "report_archived":           ("Report Archived",             "A report you created has been archived.",                      NotificationType.INFO),
}


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods: no instance state is needed.
    """

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User],
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
        link: str = "",
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action (logged only).
            recipients:     A single ``User`` or iterable of ``User``
                            instances.
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Arbitrary context dict, persisted on each
                            notification.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.
            link:           Optional deep link for the client.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # lazy import: avoids circular deps

        if isinstance(recipients, models.Model):
            recipients = [recipients]
        else:
            recipients = list(recipients)

        if not recipients:
            logger.warning(
                "NotificationService.create called with empty recipients "
                "for event_type=%s by actor=%s",
                event_type,
                actor,
            )
            return []

        title, message, notification_type = _EVENT_TEMPLATES.get(
            event_type,
            (event_type.replace("_", " ").title(), f"Event: {event_type}", NotificationType.INFO),
        )

        content_type = None
        object_id = ""
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = str(related_object.pk)

        notifications = Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                title=title,
                message=message,
                notification_type=notification_type,
                link=link,
                payload=payload,
                content_type=content_type,
                object_id=object_id,
            )
            for recipient in recipients
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
