"""
Integration tests: geotagged photos and document attachments.

Endpoints under test:
    GET/POST /api/reports/{id}/photos/         report-photos
    GET/POST /api/reports/{id}/attachments/    report-attachments
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from clients.models import Client
from core.permissions_constants import split_token
from reports.models import GeotaggedPhoto
from reports.services import ReportCreationService, ReportWorkflowService
from reports.tests.images import FULL_GPS_BLOCK, GPS, make_jpeg
from users.models import Role

User = get_user_model()


def _make_role(name: str, tokens: list[str]) -> Role:
    role = Role.objects.create(name=name, description=f"Test role: {name}")
    for token in tokens:
        app_label, codename = split_token(token)
        role.permissions.add(
            Permission.objects.get(content_type__app_label=app_label, codename=codename)
        )
    return role


def _jpeg_upload(name: str = "site.jpg", gps: dict | None = FULL_GPS_BLOCK) -> SimpleUploadedFile:
    return SimpleUploadedFile(name, make_jpeg(gps).getvalue(), content_type="image/jpeg")


class TestReportFilesAPI(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.site_client = Client.objects.create(customer_number="C-3001", name="Riverside Depot")
        cls.manager = User.objects.create_user(
            username="files_manager",
            password="F1les!Manager",
            email="files_manager@example.com",
            role=_make_role(
                "Files Report Manager",
                ["reports.view", "reports.create", "reports.edit", "reports.submit"],
            ),
        )
        cls.surveyor = User.objects.create_user(
            username="files_surveyor",
            password="F1les!Surveyor",
            email="files_surveyor@example.com",
            role=_make_role("Files Surveyor", ["reports.view", "reports.review"]),
        )

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(self.manager)
        self.report = ReportCreationService.create_report(
            {
                "title": "Depot roof",
                "client_id": self.site_client.pk,
                "visit_date": "2024-05-01",
                "site_address": "Unit 3, Riverside",
            },
            self.manager,
        )
        self.photos_url = reverse("reports:report-photos", kwargs={"pk": self.report.pk})
        self.attachments_url = reverse("reports:report-attachments", kwargs={"pk": self.report.pk})

    # ── Photos ───────────────────────────────────────────────────────

    def test_photo_upload_reads_gps_location(self):
        resp = self.client.post(
            self.photos_url,
            {"file": _jpeg_upload(), "caption": "North elevation"},
            format="multipart",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["caption"], "North elevation")
        self.assertAlmostEqual(resp.data["geotag"]["latitude"], 40.446111, places=5)
        self.assertAlmostEqual(resp.data["geotag"]["longitude"], -79.982222, places=5)
        self.assertAlmostEqual(resp.data["geotag"]["accuracy"], 5.0, places=3)
        self.assertEqual(resp.data["location_quality"], {"accuracy": "high", "warnings": []})

        photo = GeotaggedPhoto.objects.get(pk=resp.data["id"])
        self.assertEqual(photo.report_id, self.report.pk)
        self.assertTrue(photo.file.name.startswith("report_photos/"))

    def test_photo_without_gps_is_stored_without_location(self):
        resp = self.client.post(self.photos_url, {"file": _jpeg_upload(gps=None)}, format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertIsNone(resp.data["geotag"])
        self.assertIsNone(resp.data["location_quality"])
        self.assertIsNone(GeotaggedPhoto.objects.get(pk=resp.data["id"]).latitude)

    def test_photo_list(self):
        self.client.post(self.photos_url, {"file": _jpeg_upload("a.jpg")}, format="multipart")
        self.client.post(self.photos_url, {"file": _jpeg_upload("b.jpg", gps=None)}, format="multipart")

        resp = self.client.get(self.photos_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data), 2)

    def test_photo_list_groups_photos_taken_close_together(self):
        across_town = {**FULL_GPS_BLOCK, GPS.GPSLatitude: (40.0, 28.0, 0.0)}  # ~2.3 km north
        uploads = [
            ("north", _jpeg_upload("n.jpg")),
            ("north-again", _jpeg_upload("n2.jpg")),
            ("gatehouse", _jpeg_upload("g.jpg", gps=across_town)),
            ("untagged", _jpeg_upload("u.jpg", gps=None)),
        ]
        for caption, upload in uploads:
            resp = self.client.post(self.photos_url, {"file": upload, "caption": caption}, format="multipart")
            self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)

        resp = self.client.get(self.photos_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        groups = {photo["caption"]: photo["location_group"] for photo in resp.data}

        self.assertIsNotNone(groups["north"])
        self.assertEqual(groups["north"], groups["north-again"])
        self.assertIsNotNone(groups["gatehouse"])
        self.assertNotEqual(groups["gatehouse"], groups["north"])
        self.assertIsNone(groups["untagged"])

        resp = self.client.get(self.photos_url, {"max_distance": 5000})
        groups = {photo["caption"]: photo["location_group"] for photo in resp.data}
        self.assertEqual(groups["gatehouse"], groups["north"])

    def test_photo_type_is_checked(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        resp = self.client.post(self.photos_url, {"file": upload}, format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["errors"], {"file": "File type 'text/plain' is not allowed"})

    @override_settings(REPORTS={"PHOTO_MAX_SIZE_MB": 0.0001})
    def test_photo_size_is_checked(self):
        resp = self.client.post(self.photos_url, {"file": _jpeg_upload()}, format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("file", resp.data["errors"])
        self.assertFalse(GeotaggedPhoto.objects.exists())

    def test_no_uploads_once_submitted(self):
        ReportWorkflowService.submit_report(self.report, self.manager)

        resp = self.client.post(self.photos_url, {"file": _jpeg_upload()}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_reviewer_cannot_upload(self):
        ReportWorkflowService.submit_report(self.report, self.manager)
        self.client.force_authenticate(self.surveyor)

        resp = self.client.post(self.photos_url, {"file": _jpeg_upload()}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        resp = self.client.get(self.photos_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    # ── Attachments ──────────────────────────────────────────────────

    def test_pdf_attachment(self):
        upload = SimpleUploadedFile("survey.pdf", b"%PDF-1.4 test", content_type="application/pdf")
        resp = self.client.post(self.attachments_url, {"file": upload}, format="multipart")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        self.assertEqual(resp.data["file_name"], "survey.pdf")
        self.assertEqual(resp.data["file_type"], "application/pdf")
        self.assertEqual(resp.data["file_size"], len(b"%PDF-1.4 test"))

        detail = self.client.get(reverse("reports:report-detail", kwargs={"pk": self.report.pk}))
        self.assertEqual(len(detail.data["attachments"]), 1)

    def test_image_attachment_matches_wildcard(self):
        upload = SimpleUploadedFile("plan.png", b"\x89PNG....", content_type="image/png")
        resp = self.client.post(self.attachments_url, {"file": upload}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

    def test_disallowed_attachment_type(self):
        upload = SimpleUploadedFile("run.sh", b"#!/bin/sh", content_type="application/x-sh")
        resp = self.client.post(self.attachments_url, {"file": upload}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
