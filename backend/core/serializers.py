"""
Core app serializers: the notification inbox.

Notifications are read-only to API clients; the only write is the
read flag, which goes through ``NotificationInboxService``.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """
    One inbox entry.

    ``type`` is the visual severity (info / success / warning / error);
    ``link`` is the client route to open, e.g. ``/reports/<uuid>``;
    ``payload`` is the transition event the entry was built from.
    """

    type = serializers.CharField(source="notification_type", read_only=True)
    content_type = serializers.SlugRelatedField(slug_field="model", read_only=True)

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "type",
            "is_read",
            "link",
            "payload",
            "content_type",
            "object_id",
            "created_at",
        ]
        read_only_fields = fields


class MarkAllReadResponseSerializer(serializers.Serializer):
    updated = serializers.IntegerField(read_only=True, help_text="Entries flipped to read.")
