"""
Unit tests: required-field validation and upload checks.
"""

from __future__ import annotations

from datetime import date

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase

from reports.files import (
    BYTES_PER_MB,
    get_file_extension,
    get_file_type,
    validate_file_size,
    validate_file_type,
)
from reports.validators import REQUIRED_FIELD_MESSAGES, validate_report


class _Sized:
    def __init__(self, size: int, content_type: str = "", name: str = ""):
        self.size = size
        self.content_type = content_type
        self.name = name


class TestValidateReport(SimpleTestCase):

    def test_complete_report_is_valid(self):
        result = validate_report({
            "title": "Roof inspection",
            "client_id": 7,
            "visit_date": date(2024, 5, 1),
            "site_address": "12 Harbour Road",
        })
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, {})

    def test_every_missing_field_is_reported_at_once(self):
        result = validate_report({})
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, REQUIRED_FIELD_MESSAGES)

    def test_whitespace_text_counts_as_missing(self):
        result = validate_report({
            "title": "   ",
            "client_id": 1,
            "visit_date": date(2024, 5, 1),
            "site_address": "\t",
        })
        self.assertEqual(set(result.errors), {"title", "site_address"})
        self.assertEqual(result.errors["title"], "Report title is required")

    def test_zero_client_id_is_present(self):
        result = validate_report({
            "title": "T",
            "client_id": 0,
            "visit_date": "2024-05-01",
            "site_address": "A",
        })
        self.assertTrue(result.is_valid)


class TestFileChecks(SimpleTestCase):

    def test_size_limit_is_inclusive(self):
        self.assertTrue(validate_file_size(_Sized(10 * BYTES_PER_MB), 10))
        self.assertFalse(validate_file_size(_Sized(10 * BYTES_PER_MB + 1), 10))

    def test_exact_and_wildcard_type_patterns(self):
        png = _Sized(1, "image/png")
        pdf = _Sized(1, "application/pdf")
        self.assertTrue(validate_file_type(png, ["image/png"]))
        self.assertTrue(validate_file_type(png, ["image/*"]))
        self.assertFalse(validate_file_type(pdf, ["image/*"]))
        self.assertFalse(validate_file_type(pdf, []))

    def test_wildcard_matches_major_type_only(self):
        odd = _Sized(1, "imagery/png")
        self.assertFalse(validate_file_type(odd, ["image/*"]))

    def test_type_falls_back_to_file_name(self):
        self.assertEqual(get_file_type(_Sized(1, "", "survey.pdf")), "application/pdf")
        upload = SimpleUploadedFile("site.jpg", b"xx", content_type="image/jpeg")
        self.assertEqual(get_file_type(upload), "image/jpeg")

    def test_file_extension(self):
        self.assertEqual(get_file_extension("photo.JPG"), "jpg")
        self.assertEqual(get_file_extension("archive.tar.gz"), "gz")
        self.assertEqual(get_file_extension("README"), "")
        self.assertEqual(get_file_extension(""), "")
