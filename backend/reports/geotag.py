"""
reports.geotag: GPS location embedded in site photos.

Reads the EXIF GPS block with Pillow and turns it into an immutable
``Geotag``.  Extraction is best-effort: a photo with no GPS data, a
partial GPS block, an unreadable image or a stalled decode all yield
``None`` and are logged, never raised.

Also provides the helpers the review screens use to judge photo
locations: accuracy grading, great-circle distance and proximity
grouping.
"""

from __future__ import annotations

import io
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Hashable, Iterable

from django.utils import timezone
from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371e3
EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass(frozen=True)
class Geotag:
    """Location at which a photo was taken."""

    latitude: float
    longitude: float
    timestamp: datetime
    altitude: float | None = None
    accuracy: float | None = None

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90]")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180]")


@dataclass(frozen=True)
class GeotagAssessment:
    is_valid: bool
    accuracy: str  # "high" | "medium" | "low" | "unknown"
    warnings: list[str] = field(default_factory=list)


# ────────────────────────────────────────────────────────────────────
# EXIF parsing
# ────────────────────────────────────────────────────────────────────

def _to_float(value: Any) -> float:
    # Older writers store rationals as (numerator, denominator) pairs.
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        return float(numerator) / float(denominator)
    return float(value)


def _ref(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return str(value or "").strip("\x00 ").upper()


def convert_dms_to_decimal(degrees: float, minutes: float, seconds: float, ref: str = "") -> float:
    """
    Degrees/minutes/seconds to signed decimal degrees.

    ``S`` and ``W`` references make the result negative.
    """
    decimal = degrees + minutes / 60 + seconds / 3600
    if _ref(ref) in ("S", "W"):
        decimal = -decimal
    return decimal


def _coordinate(gps: dict, value_tag: int, ref_tag: int) -> float | None:
    dms = gps.get(value_tag)
    if not dms:
        return None
    degrees, minutes, seconds = (_to_float(part) for part in dms)
    return convert_dms_to_decimal(degrees, minutes, seconds, gps.get(ref_tag, ""))


def _altitude(gps: dict) -> float | None:
    raw = gps.get(ExifTags.GPS.GPSAltitude)
    if raw is None:
        return None
    altitude = _to_float(raw)
    # GPSAltitudeRef 1 means below sea level.
    if gps.get(ExifTags.GPS.GPSAltitudeRef) in (1, b"\x01"):
        altitude = -altitude
    return altitude


def _capture_time(exif: Image.Exif) -> datetime:
    raw = exif.get_ifd(ExifTags.IFD.Exif).get(ExifTags.Base.DateTimeOriginal)
    if raw:
        try:
            captured = datetime.strptime(str(raw).strip("\x00 "), EXIF_DATETIME_FORMAT)
            return timezone.make_aware(captured) if timezone.is_naive(captured) else captured
        except ValueError:
            logger.debug("Unparseable DateTimeOriginal %r; using current time", raw)
    return timezone.now()


def _read_geotag(stream) -> Geotag | None:
    with Image.open(stream) as image:
        exif = image.getexif()
        gps = exif.get_ifd(ExifTags.IFD.GPSInfo)
        if not gps:
            return None

        latitude = _coordinate(gps, ExifTags.GPS.GPSLatitude, ExifTags.GPS.GPSLatitudeRef)
        longitude = _coordinate(gps, ExifTags.GPS.GPSLongitude, ExifTags.GPS.GPSLongitudeRef)
        if latitude is None or longitude is None:
            return None

        accuracy = gps.get(ExifTags.GPS.GPSHPositioningError)
        return Geotag(
            latitude=latitude,
            longitude=longitude,
            altitude=_altitude(gps),
            accuracy=_to_float(accuracy) if accuracy is not None else None,
            timestamp=_capture_time(exif),
        )


def extract_geotag(file) -> Geotag | None:
    """
    Return the photo's ``Geotag`` or ``None``.

    ``file`` is any readable binary stream (an ``UploadedFile``, an open
    file, ``BytesIO``).  Its position is restored afterwards so the
    caller can still store it.
    """
    start = file.tell() if hasattr(file, "tell") else 0
    try:
        return _read_geotag(file)
    except Exception as exc:
        logger.warning(
            "Geotag extraction failed for %s: %s",
            getattr(file, "name", "<stream>"),
            exc,
        )
        return None
    finally:
        if hasattr(file, "seek"):
            file.seek(start)


def extract_geotag_within(file, timeout: float) -> Geotag | None:
    """
    Like ``extract_geotag`` but gives up after ``timeout`` seconds.

    The photo bytes are copied first so a stalled decode never touches
    the caller's stream.  Each call runs on its own single-worker pool
    that is shut down without waiting: a stalled decode keeps its thread
    until Pillow returns, but later uploads never queue behind it.
    """
    name = getattr(file, "name", "<stream>")
    try:
        start = file.tell()
        data = file.read()
        file.seek(start)
    except Exception as exc:
        logger.warning("Could not read %s for geotag extraction: %s", name, exc)
        return None

    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="geotag")
    future = pool.submit(extract_geotag, io.BytesIO(data))
    try:
        return future.result(timeout=timeout)
    except FutureTimeout:
        logger.warning(
            "Geotag extraction for %s exceeded %ss; storing photo without location",
            name,
            timeout,
        )
        return None
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


# ────────────────────────────────────────────────────────────────────
# Location helpers
# ────────────────────────────────────────────────────────────────────

def assess_geotag(geotag: Geotag) -> GeotagAssessment:
    """
    Grade the horizontal accuracy of ``geotag``.

    ``high`` ≤ 10 m, ``medium`` ≤ 50 m, ``low`` above that (with a
    warning), ``unknown`` when the photo carries no accuracy figure.
    """
    warnings: list[str] = []
    if geotag.accuracy is None:
        grade = "unknown"
    elif geotag.accuracy <= 10:
        grade = "high"
    elif geotag.accuracy <= 50:
        grade = "medium"
    else:
        grade = "low"
        warnings.append("Low GPS accuracy")
    return GeotagAssessment(is_valid=not warnings, accuracy=grade, warnings=warnings)


def distance_between(first: Geotag, second: Geotag) -> float:
    """Great-circle (haversine) distance in metres."""
    phi1 = math.radians(first.latitude)
    phi2 = math.radians(second.latitude)
    d_phi = math.radians(second.latitude - first.latitude)
    d_lambda = math.radians(second.longitude - first.longitude)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def group_by_location(
    photos: Iterable[tuple[Hashable, Geotag]],
    max_distance: float = 100.0,
) -> list[list[Hashable]]:
    """
    Cluster photos taken close together.

    Each group is seeded by the first unassigned photo (in input order)
    and collects every later unassigned photo within ``max_distance``
    metres of that seed.
    """
    items = list(photos)
    assigned: set[Hashable] = set()
    groups: list[list[Hashable]] = []

    for index, (seed_id, seed_tag) in enumerate(items):
        if seed_id in assigned:
            continue
        group = [seed_id]
        assigned.add(seed_id)
        for other_id, other_tag in items[index + 1:]:
            if other_id not in assigned and distance_between(seed_tag, other_tag) <= max_distance:
                group.append(other_id)
                assigned.add(other_id)
        groups.append(group)

    return groups
