"""
Reports app serializers.

Contains all Request and Response serializers for the Reports API.
Serializers handle field definitions and shape only.  **No workflow
rules live here**: required-field gating, decision comments and
transition legality are enforced by ``services.py`` so that every
client gets the same answer.

Structure
---------
1. Filter / query-param serializers
2. Report read serializers (list, detail)
3. Report write serializers (create, update)
4. Workflow action serializers (transition, submit, decision)
5. Sub-resource serializers (status log, photos, attachments)
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from .geotag import assess_geotag
from .models import Attachment, GeotaggedPhoto, Report, ReportStatusLog
from .services import ReportWorkflowService
from .status import to_wire


def _full_name(user) -> str | None:
    if user is None:
        return None
    return (f"{user.first_name} {user.last_name}").strip() or user.username


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportFilterSerializer(serializers.Serializer):
    """
    Query-parameter filters for ``GET /api/reports/``.

    ``status`` may be given in canonical (``pending_qs_review``) or wire
    (``PendingQsReview``) form.
    """

    status = serializers.CharField(required=False, allow_blank=True)
    client = serializers.IntegerField(required=False, min_value=1)
    mine = serializers.BooleanField(required=False, default=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=200)


# ═══════════════════════════════════════════════════════════════════
#  2. Report Read Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportListSerializer(serializers.ModelSerializer):
    """Compact representation for the list endpoint."""

    status_wire = serializers.CharField(read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True, default=None)
    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            "id",
            "title",
            "client",
            "client_name",
            "visit_date",
            "site_address",
            "status",
            "status_wire",
            "status_display",
            "created_by",
            "created_by_name",
            "created_at",
            "last_modified_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj: Report) -> str | None:
        return _full_name(obj.created_by)


class GeotaggedPhotoSerializer(serializers.ModelSerializer):
    url = serializers.CharField(read_only=True)
    geotag = serializers.SerializerMethodField()
    location_quality = serializers.SerializerMethodField()
    location_group = serializers.SerializerMethodField()

    class Meta:
        model = GeotaggedPhoto
        fields = [
            "id",
            "url",
            "thumbnail_url",
            "caption",
            "geotag",
            "location_quality",
            "location_group",
            "uploaded_by",
            "uploaded_at",
        ]
        read_only_fields = fields

    def get_geotag(self, obj: GeotaggedPhoto) -> dict[str, Any] | None:
        geotag = obj.geotag
        if geotag is None:
            return None
        return {
            "latitude": geotag.latitude,
            "longitude": geotag.longitude,
            "altitude": geotag.altitude,
            "accuracy": geotag.accuracy,
            "timestamp": geotag.timestamp.isoformat() if geotag.timestamp else None,
        }

    def get_location_quality(self, obj: GeotaggedPhoto) -> dict[str, Any] | None:
        """Accuracy grade (high / medium / low / unknown) and any warnings."""
        geotag = obj.geotag
        if geotag is None:
            return None
        assessment = assess_geotag(geotag)
        return {"accuracy": assessment.accuracy, "warnings": assessment.warnings}

    def get_location_group(self, obj: GeotaggedPhoto) -> int | None:
        """Proximity cluster number, present only on the photo listing."""
        return self.context.get("location_groups", {}).get(obj.pk)


class AttachmentSerializer(serializers.ModelSerializer):
    url = serializers.CharField(read_only=True)

    class Meta:
        model = Attachment
        fields = [
            "id",
            "file_name",
            "file_type",
            "file_size",
            "url",
            "uploaded_by",
            "uploaded_at",
        ]
        read_only_fields = fields


class ReportDetailSerializer(ReportListSerializer):
    """
    Full report representation.

    ``available_transitions`` lists the targets (canonical form) the
    requesting user may move the report to, so the client can offer
    only actions the server will accept.
    """

    photos = GeotaggedPhotoSerializer(many=True, read_only=True)
    attachments = AttachmentSerializer(many=True, read_only=True)
    available_transitions = serializers.SerializerMethodField()

    class Meta(ReportListSerializer.Meta):
        fields = ReportListSerializer.Meta.fields + [
            "description",
            "scheduled_visit_at",
            "last_modified_by",
            "updated_at",
            "photos",
            "attachments",
            "available_transitions",
        ]
        read_only_fields = fields

    def get_available_transitions(self, obj: Report) -> list[str]:
        request = self.context.get("request")
        if request is None:
            return []
        return [str(s) for s in ReportWorkflowService.available_transitions(obj, request.user)]


# ═══════════════════════════════════════════════════════════════════
#  3. Report Write Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportWriteSerializer(serializers.Serializer):
    """
    Request body for creating (``POST``) and editing (``PATCH``) a report.

    Every field is optional: a draft may be saved incomplete and is
    checked for completeness when it is submitted.
    """

    title = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    client_id = serializers.IntegerField(required=False, allow_null=True)
    visit_date = serializers.DateField(required=False, allow_null=True)
    site_address = serializers.CharField(required=False, allow_blank=True)


# ═══════════════════════════════════════════════════════════════════
#  4. Workflow Action Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportTransitionSerializer(serializers.Serializer):
    """
    Generic request body for ``POST /api/reports/{id}/transition/``.

    ``target_status`` is accepted in canonical or wire form; its
    legality is decided by ``ReportWorkflowService.transition_state``.
    """

    target_status = serializers.CharField(help_text="Target status, e.g. 'pending_qs_review' or 'PendingQsReview'.")
    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=2000,
    )


class ReportCommentSerializer(serializers.Serializer):
    """Optional comment body for ``submit`` and ``start-review``."""

    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=2000,
    )


class ReportDecisionSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/reports/{id}/decision/``.

    ``decision`` is one of ``approve``, ``reject``, ``revision`` or
    ``site_visit``.  ``comment`` is required for ``reject`` and
    ``revision``; ``scheduled_date`` for ``site_visit``.
    """

    decision = serializers.CharField()
    comment = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=2000,
    )
    scheduled_date = serializers.DateTimeField(required=False, allow_null=True, default=None)


# ═══════════════════════════════════════════════════════════════════
#  5. Sub-resource Serializers
# ═══════════════════════════════════════════════════════════════════


class ReportStatusLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for the report audit trail."""

    from_status_wire = serializers.SerializerMethodField()
    to_status_wire = serializers.SerializerMethodField()
    changed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = ReportStatusLog
        fields = [
            "id",
            "from_status",
            "from_status_wire",
            "to_status",
            "to_status_wire",
            "changed_by",
            "changed_by_name",
            "message",
            "created_at",
        ]
        read_only_fields = fields

    def get_from_status_wire(self, obj: ReportStatusLog) -> str:
        return to_wire(obj.from_status)

    def get_to_status_wire(self, obj: ReportStatusLog) -> str:
        return to_wire(obj.to_status)

    def get_changed_by_name(self, obj: ReportStatusLog) -> str | None:
        return _full_name(obj.changed_by)


class PhotoListFilterSerializer(serializers.Serializer):
    max_distance = serializers.FloatField(required=False, min_value=1, default=100.0)


class PhotoUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    caption = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class AttachmentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
