"""
Reports app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Domain exceptions raised by the services (``InvalidTransition``,
``PermissionDenied``, ``FieldValidationError`` ...) are turned into HTTP
responses by ``core.domain.exception_handler``.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .models import Report
from .serializers import (
    AttachmentSerializer,
    AttachmentUploadSerializer,
    GeotaggedPhotoSerializer,
    PhotoListFilterSerializer,
    PhotoUploadSerializer,
    ReportCommentSerializer,
    ReportDecisionSerializer,
    ReportDetailSerializer,
    ReportFilterSerializer,
    ReportListSerializer,
    ReportStatusLogSerializer,
    ReportTransitionSerializer,
    ReportWriteSerializer,
)
from .services import (
    ReportAttachmentService,
    ReportCreationService,
    ReportEditService,
    ReportQueryService,
    ReportWorkflowService,
)

_TRANSITION_ERRORS = {
    400: OpenApiResponse(description="Required fields missing (``errors`` maps field → message)."),
    403: OpenApiResponse(description="Caller lacks the permission token for this transition."),
    404: OpenApiResponse(description="Report not found."),
    409: OpenApiResponse(description="Transition not allowed from the current status."),
}


class ReportViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the reports app.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Every permission-token
    check happens inside the service layer, never in the view.
    """

    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    # ── Helpers ──────────────────────────────────────────────────────

    def _get_report(self, pk: str) -> Report:
        return ReportQueryService.get_report(pk, self.request.user)

    def _detail(self, report: Report, request: Request, http_status=status.HTTP_200_OK) -> Response:
        serializer = ReportDetailSerializer(report, context={"request": request})
        return Response(serializer.data, status=http_status)

    # ── Standard CRUD ────────────────────────────────────────────────

    @extend_schema(
        summary="List reports",
        description="Reports visible to the caller, newest first.",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Canonical or wire status."),
            OpenApiParameter(name="client", type=int, location=OpenApiParameter.QUERY, description="Client PK."),
            OpenApiParameter(name="mine", type=bool, location=OpenApiParameter.QUERY, description="Only reports I created."),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, description="Title, site address or client name."),
        ],
        responses={200: ReportListSerializer(many=True)},
        tags=["Reports"],
    )
    def list(self, request: Request) -> Response:
        filters = ReportFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        reports = ReportQueryService.get_filtered_queryset(request.user, filters.validated_data)
        return Response(ReportListSerializer(reports, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Create report",
        description="Create a new report in draft.  Requires ``reports.create``.",
        request=ReportWriteSerializer,
        responses={
            201: ReportDetailSerializer,
            403: OpenApiResponse(description="Missing ``reports.create``."),
        },
        tags=["Reports"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReportWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportCreationService.create_report(serializer.validated_data, request.user)
        return self._detail(report, request, status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve report",
        responses={200: ReportDetailSerializer, 404: OpenApiResponse(description="Report not found.")},
        tags=["Reports"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        return self._detail(self._get_report(pk), request)

    @extend_schema(
        summary="Update report",
        description="Edit fields while the report is draft or revision_requested.  Requires ``reports.edit``.",
        request=ReportWriteSerializer,
        responses={
            200: ReportDetailSerializer,
            403: OpenApiResponse(description="Missing ``reports.edit``."),
            409: OpenApiResponse(description="Report is not editable in its current status."),
        },
        tags=["Reports"],
    )
    def partial_update(self, request: Request, pk: str = None) -> Response:
        serializer = ReportWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        report = ReportEditService.update_report(pk, serializer.validated_data, request.user)
        return self._detail(report, request)

    # ── Workflow @actions ─────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="transition")
    @extend_schema(
        summary="Generic status transition",
        description=(
            "Move the report to ``target_status`` (canonical or wire form). "
            "The edge must exist and the caller must hold its permission token."
        ),
        request=ReportTransitionSerializer,
        responses={200: ReportDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Reports – Workflow"],
    )
    def transition(self, request: Request, pk: str = None) -> Response:
        """
        POST /api/reports/{id}/transition/
        """
        serializer = ReportTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.transition_state(
            self._get_report(pk),
            serializer.validated_data["target_status"],
            request.user,
            serializer.validated_data["comment"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="submit")
    @extend_schema(
        summary="Submit for QS review",
        request=ReportCommentSerializer,
        responses={200: ReportDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Reports – Workflow"],
    )
    def submit(self, request: Request, pk: str = None) -> Response:
        """
        POST /api/reports/{id}/submit/
        """
        serializer = ReportCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.submit_report(
            self._get_report(pk),
            request.user,
            serializer.validated_data["comment"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="start-review")
    @extend_schema(
        summary="Start QS review",
        request=None,
        responses={200: ReportDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Reports – Workflow"],
    )
    def start_review(self, request: Request, pk: str = None) -> Response:
        report = ReportWorkflowService.start_review(self._get_report(pk), request.user)
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="decision")
    @extend_schema(
        summary="QS decision",
        description=(
            "``approve`` / ``reject`` / ``revision`` / ``site_visit``.  "
            "Reject and revision need a comment; site_visit needs ``scheduled_date``."
        ),
        request=ReportDecisionSerializer,
        responses={200: ReportDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Reports – Workflow"],
    )
    def decision(self, request: Request, pk: str = None) -> Response:
        serializer = ReportDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        report = ReportWorkflowService.process_decision(
            self._get_report(pk),
            data["decision"],
            data["comment"],
            request.user,
            scheduled_date=data["scheduled_date"],
        )
        return self._detail(report, request)

    @action(detail=True, methods=["post"], url_path="archive")
    @extend_schema(
        summary="Archive report",
        request=ReportCommentSerializer,
        responses={200: ReportDetailSerializer, **_TRANSITION_ERRORS},
        tags=["Reports – Workflow"],
    )
    def archive(self, request: Request, pk: str = None) -> Response:
        serializer = ReportCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = ReportWorkflowService.archive_report(
            self._get_report(pk),
            request.user,
            serializer.validated_data["comment"],
        )
        return self._detail(report, request)

    # ── Sub-resources ─────────────────────────────────────────────────

    @action(detail=True, methods=["get"], url_path="status-log")
    @extend_schema(
        summary="Status history",
        responses={200: ReportStatusLogSerializer(many=True)},
        tags=["Reports"],
    )
    def status_log(self, request: Request, pk: str = None) -> Response:
        logs = ReportQueryService.get_status_log(pk, request.user)
        return Response(ReportStatusLogSerializer(logs, many=True).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get", "post"], url_path="photos")
    @extend_schema(
        summary="List or upload geotagged photos",
        description=(
            "The listing numbers photos taken within ``max_distance`` metres of "
            "each other with a shared ``location_group``."
        ),
        parameters=[
            OpenApiParameter(name="max_distance", type=float, location=OpenApiParameter.QUERY, description="Grouping radius in metres (default 100)."),
        ],
        request=PhotoUploadSerializer,
        responses={
            200: GeotaggedPhotoSerializer(many=True),
            201: GeotaggedPhotoSerializer,
            400: OpenApiResponse(description="File too large or of a disallowed type."),
            409: OpenApiResponse(description="Report is not editable in its current status."),
        },
        tags=["Reports – Files"],
    )
    def photos(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            filters = PhotoListFilterSerializer(data=request.query_params)
            filters.is_valid(raise_exception=True)
            photos = list(ReportAttachmentService.list_photos(pk, request.user))
            groups = ReportAttachmentService.photo_location_groups(
                photos, filters.validated_data["max_distance"]
            )
            serializer = GeotaggedPhotoSerializer(photos, many=True, context={"location_groups": groups})
            return Response(serializer.data)

        serializer = PhotoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        photo = ReportAttachmentService.upload_photo(
            pk,
            serializer.validated_data["file"],
            request.user,
            caption=serializer.validated_data["caption"],
        )
        return Response(GeotaggedPhotoSerializer(photo).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "post"], url_path="attachments")
    @extend_schema(
        summary="List or upload document attachments",
        request=AttachmentUploadSerializer,
        responses={
            200: AttachmentSerializer(many=True),
            201: AttachmentSerializer,
            400: OpenApiResponse(description="File too large or of a disallowed type."),
            409: OpenApiResponse(description="Report is not editable in its current status."),
        },
        tags=["Reports – Files"],
    )
    def attachments(self, request: Request, pk: str = None) -> Response:
        if request.method == "GET":
            attachments = ReportAttachmentService.list_attachments(pk, request.user)
            return Response(AttachmentSerializer(attachments, many=True).data)

        serializer = AttachmentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        attachment = ReportAttachmentService.upload_attachment(
            pk,
            serializer.validated_data["file"],
            request.user,
        )
        return Response(AttachmentSerializer(attachment).data, status=status.HTTP_201_CREATED)
