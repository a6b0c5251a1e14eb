"""
Core app views: the notification inbox.

Every request is scoped to ``request.user`` by ``NotificationInboxService``;
there is no way to see or touch another user's notifications.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import MarkAllReadResponseSerializer, NotificationSerializer
from .services import NotificationInboxService

_TRUTHY = ("1", "true", "yes")


class NotificationViewSet(viewsets.ViewSet):
    """
    GET  /api/core/notifications/            → inbox, newest first (``?unread=true`` to filter)
    POST /api/core/notifications/{id}/read/  → flag one entry as read
    POST /api/core/notifications/read-all/   → flag the whole inbox as read
    """

    permission_classes = [IsAuthenticated]

    def _inbox(self) -> NotificationInboxService:
        return NotificationInboxService(user=self.request.user)

    @extend_schema(
        summary="Notification inbox",
        parameters=[
            OpenApiParameter(name="unread", type=bool, required=False, description="Only unread entries."),
        ],
        responses={200: NotificationSerializer(many=True)},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in _TRUTHY
        notifications = self._inbox().list_notifications(unread_only=unread_only)
        return Response(NotificationSerializer(notifications, many=True).data)

    @action(detail=True, methods=["post"], url_path="read")
    @extend_schema(
        summary="Mark one notification read",
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="No such notification in the caller's inbox."),
        },
        tags=["Notifications"],
    )
    def mark_as_read(self, request: Request, pk: str = None) -> Response:
        notification = self._inbox().mark_as_read(notification_id=pk)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark every notification read",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications"],
    )
    def mark_all_as_read(self, request: Request) -> Response:
        updated = self._inbox().mark_all_as_read()
        return Response({"updated": updated}, status=status.HTTP_200_OK)
