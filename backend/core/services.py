"""
Core app services: **Service Layer**.

Notification inbox operations for the authenticated user.  Creation of
notifications is not exposed here: it happens only through
``core.domain.notifications.NotificationService`` in response to domain
events.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db.models import QuerySet

from core.domain.exceptions import NotFound
from core.models import Notification

if TYPE_CHECKING:
    from users.models import User

logger = logging.getLogger(__name__)


class NotificationInboxService:
    """
    Handles listing and marking notifications as read for a given user.
    """

    def __init__(self, user: User) -> None:
        self.user = user

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet[Notification]:
        """Return notifications for ``self.user``, most recent first."""
        qs = (
            Notification.objects
            .filter(recipient=self.user)
            .select_related("content_type")
            .order_by("-created_at")
        )
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs

    def unread_count(self) -> int:
        return Notification.objects.filter(recipient=self.user, is_read=False).count()

    def mark_as_read(self, notification_id: int) -> Notification:
        """
        Mark a single notification as read.

        The read flag is the only mutable field; other users' notifications
        are reported as missing.
        """
        try:
            notification = Notification.objects.get(
                pk=notification_id,
                recipient=self.user,
            )
        except (Notification.DoesNotExist, ValueError):
            raise NotFound(f"Notification with id {notification_id} not found.")

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
        return notification

    def mark_all_as_read(self) -> int:
        updated = (
            Notification.objects
            .filter(recipient=self.user, is_read=False)
            .update(is_read=True)
        )
        logger.info("Marked %d notification(s) read for user=%s", updated, self.user)
        return updated
