"""
Reports app models.

Covers the site-inspection report lifecycle: a report manager drafts a
report, submits it to the quality-surveyor (QS) queue, the QS reviews it
(possibly asking for a revision or scheduling a site visit) and finally
approves or rejects it.  Reports are never deleted; ``archived`` is the
retained end state for withdrawn reports.
"""

import uuid

from django.conf import settings
from django.db import models

from core.domain.exceptions import Conflict, StatusChangeForbidden
from core.models import TimeStampedModel
from core.permissions_constants import ReportsPerms

from .geotag import Geotag
from .status import ReportStatus, to_wire

__all__ = [
    "Attachment",
    "GeotaggedPhoto",
    "Report",
    "ReportStatus",
    "ReportStatusLog",
]


class Report(TimeStampedModel):
    """
    A site-inspection report.

    ``status`` is owned by ``reports.services.ReportWorkflowService``:
    saving a status that differs from the stored one raises
    ``StatusChangeForbidden`` unless the change was staged through
    ``stage_status_change``.  New reports always start in ``draft``.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    title = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Title",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    client = models.ForeignKey(
        "clients.Client",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reports",
        verbose_name="Client",
    )
    visit_date = models.DateField(
        null=True,
        blank=True,
        verbose_name="Visit Date",
    )
    site_address = models.TextField(
        blank=True,
        default="",
        verbose_name="Site Address",
    )
    status = models.CharField(
        max_length=30,
        choices=ReportStatus.choices,
        default=ReportStatus.DRAFT,
        db_index=True,
        verbose_name="Status",
    )
    scheduled_visit_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Scheduled Site Visit",
        help_text="Set when a quality surveyor schedules a site visit.",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_reports",
        verbose_name="Created By",
    )
    last_modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="modified_reports",
        verbose_name="Last Modified By",
    )
    last_modified_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Modified At",
    )

    class Meta:
        verbose_name = "Report"
        verbose_name_plural = "Reports"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]
        default_permissions = ()
        permissions = [
            (ReportsPerms.VIEW, "Can view reports"),
            (ReportsPerms.CREATE, "Can create reports"),
            (ReportsPerms.EDIT, "Can edit reports"),
            (ReportsPerms.DELETE, "Can archive reports"),
            (ReportsPerms.SUBMIT, "Can submit reports for QS review"),
            (ReportsPerms.APPROVE, "Can approve or reject reports"),
            (ReportsPerms.REVIEW, "Can review reports (QS)"),
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Deferred loads leave ``status`` out of __dict__.
        self._persisted_status = self.__dict__.get("status")
        self._status_change_staged = False

    def __str__(self):
        return f"Report {self.pk}: {self.title or '(untitled)'}"

    @property
    def status_wire(self) -> str:
        return to_wire(self.status)

    @property
    def is_editable(self) -> bool:
        """Field edits are allowed only while the author holds the report."""
        return self.status in (ReportStatus.DRAFT, ReportStatus.REVISION_REQUESTED)

    def stage_status_change(self, new_status: str) -> None:
        """Set ``status`` for the next ``save()``; reserved for the workflow service."""
        self.status = new_status
        self._status_change_staged = True

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self._persisted_status = self.__dict__.get("status")

    def save(self, *args, **kwargs):
        if self._state.adding:
            if self.status != ReportStatus.DRAFT:
                raise StatusChangeForbidden("Reports are always created in draft.")
        elif self.status != self._persisted_status and not self._status_change_staged:
            raise StatusChangeForbidden()
        super().save(*args, **kwargs)
        self._persisted_status = self.status
        self._status_change_staged = False

    def delete(self, *args, **kwargs):
        raise Conflict("Reports are never deleted; archive the report instead.")


class ReportStatusLog(TimeStampedModel):
    """
    Immutable audit trail of every status transition of a report.

    The newest entry's ``to_status`` always equals the report's status.
    A report with no entries has never left ``draft``.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Report",
    )
    from_status = models.CharField(
        max_length=30,
        choices=ReportStatus.choices,
        verbose_name="Previous Status",
    )
    to_status = models.CharField(
        max_length=30,
        choices=ReportStatus.choices,
        verbose_name="New Status",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="report_status_changes",
        verbose_name="Changed By",
    )
    message = models.TextField(
        blank=True,
        default="",
        verbose_name="Comment",
    )

    class Meta:
        verbose_name = "Report Status Log"
        verbose_name_plural = "Report Status Logs"
        ordering = ["created_at", "id"]
        default_permissions = ()

    def __str__(self):
        return f"Report {self.report_id}: {self.from_status} → {self.to_status}"


# ────────────────────────────────────────────────────────────────────
# Files attached to a report
# ────────────────────────────────────────────────────────────────────

class Attachment(models.Model):
    """Non-photo document (PDF, spreadsheet ...) attached to a report."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        related_name="attachments",
        verbose_name="Report",
    )
    file = models.FileField(
        upload_to="report_attachments/%Y/%m/",
        verbose_name="File",
    )
    file_name = models.CharField(max_length=255, verbose_name="File Name")
    file_type = models.CharField(max_length=100, verbose_name="MIME Type")
    file_size = models.PositiveBigIntegerField(verbose_name="Size (bytes)")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="report_attachments",
        verbose_name="Uploaded By",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Attachment"
        verbose_name_plural = "Attachments"
        ordering = ["uploaded_at"]
        default_permissions = ()

    def __str__(self):
        return self.file_name

    @property
    def url(self) -> str:
        return self.file.url if self.file else ""


class GeotaggedPhoto(models.Model):
    """
    Site photo with the GPS location read from its EXIF block.

    The location columns are written once, at upload; they are either all
    empty (no usable GPS data) or hold a valid coordinate pair.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    report = models.ForeignKey(
        Report,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="photos",
        verbose_name="Report",
    )
    file = models.FileField(
        upload_to="report_photos/%Y/%m/",
        verbose_name="Photo",
    )
    thumbnail_url = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name="Thumbnail URL",
    )
    caption = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Caption",
    )

    latitude = models.FloatField(null=True, blank=True, verbose_name="Latitude")
    longitude = models.FloatField(null=True, blank=True, verbose_name="Longitude")
    altitude = models.FloatField(null=True, blank=True, verbose_name="Altitude (m)")
    accuracy = models.FloatField(null=True, blank=True, verbose_name="Horizontal Accuracy (m)")
    captured_at = models.DateTimeField(null=True, blank=True, verbose_name="Captured At")

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="report_photos",
        verbose_name="Uploaded By",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True, verbose_name="Uploaded At")

    class Meta:
        verbose_name = "Geotagged Photo"
        verbose_name_plural = "Geotagged Photos"
        ordering = ["uploaded_at"]
        default_permissions = ()
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(latitude__isnull=True, longitude__isnull=True)
                    | models.Q(
                        latitude__isnull=False, longitude__isnull=False,
                        latitude__gte=-90, latitude__lte=90,
                        longitude__gte=-180, longitude__lte=180,
                    )
                ),
                name="photo_geotag_complete_and_in_range",
            ),
        ]

    def __str__(self):
        return f"Photo {self.pk} for Report {self.report_id}"

    @property
    def url(self) -> str:
        return self.file.url if self.file else ""

    @property
    def geotag(self) -> Geotag | None:
        if self.latitude is None or self.longitude is None:
            return None
        return Geotag(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            accuracy=self.accuracy,
            timestamp=self.captured_at or self.uploaded_at,
        )

    def apply_geotag(self, geotag: Geotag | None) -> None:
        if geotag is None:
            return
        self.latitude = geotag.latitude
        self.longitude = geotag.longitude
        self.altitude = geotag.altitude
        self.accuracy = geotag.accuracy
        self.captured_at = geotag.timestamp
