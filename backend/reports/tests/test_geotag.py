"""
Unit tests: GPS extraction from photo EXIF and the location helpers.

JPEGs are generated in memory with Pillow so every EXIF variant
(full GPS block, partial block, EXIF without GPS, no EXIF at all) is
explicit in the test.
"""

from __future__ import annotations

import io
import threading
import time
from datetime import datetime, timezone as dt_timezone
from unittest import mock

from django.test import SimpleTestCase
from django.utils import timezone
from PIL import ExifTags, Image

from reports.geotag import (
    Geotag,
    assess_geotag,
    convert_dms_to_decimal,
    distance_between,
    extract_geotag,
    extract_geotag_within,
    group_by_location,
)
from reports.tests.images import FULL_GPS_BLOCK, GPS, make_jpeg


def _tag(lat: float, lon: float, accuracy: float | None = None) -> Geotag:
    return Geotag(latitude=lat, longitude=lon, timestamp=timezone.now(), accuracy=accuracy)


class TestExtractGeotag(SimpleTestCase):

    def test_full_gps_block(self):
        geotag = extract_geotag(make_jpeg(FULL_GPS_BLOCK, taken="2024:05:01 10:30:00"))

        self.assertIsNotNone(geotag)
        self.assertAlmostEqual(geotag.latitude, 40.446111, places=5)
        self.assertAlmostEqual(geotag.longitude, -79.982222, places=5)
        self.assertAlmostEqual(geotag.altitude, 120.5, places=3)
        self.assertAlmostEqual(geotag.accuracy, 5.0, places=3)
        self.assertEqual(
            geotag.timestamp,
            datetime(2024, 5, 1, 10, 30, tzinfo=dt_timezone.utc),
        )

    def test_missing_capture_time_falls_back_to_now(self):
        before = timezone.now()
        geotag = extract_geotag(make_jpeg(FULL_GPS_BLOCK))
        self.assertIsNotNone(geotag)
        self.assertGreaterEqual(geotag.timestamp, before)

    def test_photo_without_any_exif(self):
        self.assertIsNone(extract_geotag(make_jpeg()))

    def test_exif_without_gps_tags(self):
        stream = make_jpeg(taken="2024:05:01 10:30:00", camera="Contoso FieldCam")
        with Image.open(stream) as image:
            self.assertEqual(image.getexif()[ExifTags.Base.Make], "Contoso FieldCam")
        stream.seek(0)

        self.assertIsNone(extract_geotag(stream))
        self.assertEqual(stream.tell(), 0)

    def test_partial_gps_block(self):
        partial = {GPS.GPSLatitudeRef: "N", GPS.GPSLatitude: (40.0, 26.0, 46.0)}
        self.assertIsNone(extract_geotag(make_jpeg(partial)))

    def test_unreadable_bytes_yield_none_and_keep_position(self):
        stream = io.BytesIO(b"definitely not an image")
        with self.assertLogs("reports.geotag", level="WARNING"):
            self.assertIsNone(extract_geotag(stream))
        self.assertEqual(stream.tell(), 0)

    def test_bounded_extraction_returns_the_geotag(self):
        stream = make_jpeg(FULL_GPS_BLOCK)
        geotag = extract_geotag_within(stream, timeout=5)
        self.assertIsNotNone(geotag)
        self.assertEqual(stream.tell(), 0)

    def test_bounded_extraction_gives_up_on_a_stalled_decode(self):
        def _stall(stream):
            time.sleep(0.5)

        with mock.patch("reports.geotag.extract_geotag", side_effect=_stall):
            with self.assertLogs("reports.geotag", level="WARNING"):
                self.assertIsNone(extract_geotag_within(make_jpeg(FULL_GPS_BLOCK), timeout=0.05))

    def test_stalled_decodes_do_not_hold_up_later_extractions(self):
        release = threading.Event()
        self.addCleanup(release.set)

        def _hang(stream):
            release.wait(10)

        with mock.patch("reports.geotag.extract_geotag", side_effect=_hang):
            with self.assertLogs("reports.geotag", level="WARNING"):
                for _ in range(3):
                    self.assertIsNone(extract_geotag_within(make_jpeg(FULL_GPS_BLOCK), timeout=0.05))

        geotag = extract_geotag_within(make_jpeg(FULL_GPS_BLOCK), timeout=2)
        self.assertIsNotNone(geotag)
        self.assertAlmostEqual(geotag.latitude, 40.446111, places=5)

    def test_unreadable_stream_counts_as_no_geotag(self):
        class _BrokenUpload(io.BytesIO):
            name = "broken.jpg"

            def read(self, *args):
                raise OSError("connection reset while reading upload")

        with self.assertLogs("reports.geotag", level="WARNING") as logs:
            self.assertIsNone(extract_geotag_within(_BrokenUpload(b"\xff\xd8"), timeout=1))
        self.assertIn("broken.jpg", logs.output[0])


class TestGeotagHelpers(SimpleTestCase):

    def test_dms_conversion_sign_follows_reference(self):
        self.assertAlmostEqual(convert_dms_to_decimal(33, 51, 54, "S"), -33.865, places=3)
        self.assertAlmostEqual(convert_dms_to_decimal(151, 12, 36, "E"), 151.21, places=3)
        self.assertAlmostEqual(convert_dms_to_decimal(10, 30, 0, b"W"), -10.5)

    def test_out_of_range_coordinates_are_rejected(self):
        with self.assertRaises(ValueError):
            _tag(91, 0)
        with self.assertRaises(ValueError):
            _tag(0, -180.5)

    def test_accuracy_grades(self):
        self.assertEqual(assess_geotag(_tag(0, 0, accuracy=10)).accuracy, "high")
        self.assertEqual(assess_geotag(_tag(0, 0, accuracy=50)).accuracy, "medium")
        self.assertEqual(assess_geotag(_tag(0, 0)).accuracy, "unknown")

        low = assess_geotag(_tag(0, 0, accuracy=75))
        self.assertEqual(low.accuracy, "low")
        self.assertFalse(low.is_valid)
        self.assertEqual(low.warnings, ["Low GPS accuracy"])

    def test_distance_of_one_degree_latitude(self):
        self.assertAlmostEqual(distance_between(_tag(0, 0), _tag(1, 0)), 111194.9, delta=1)
        self.assertEqual(distance_between(_tag(12, 34), _tag(12, 34)), 0)

    def test_groups_are_measured_from_their_seed(self):
        photos = [
            ("a", _tag(0, 0)),
            ("b", _tag(0, 0.0008)),   # ~89 m from a
            ("c", _tag(0, 0.0016)),   # ~178 m from a, ~89 m from b
            ("d", _tag(45, 45)),
        ]
        self.assertEqual(group_by_location(photos), [["a", "b"], ["c"], ["d"]])

    def test_grouping_nothing(self):
        self.assertEqual(group_by_location([]), [])
