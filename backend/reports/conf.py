"""
reports.conf: Defaults for the ``REPORTS`` settings dict.

Anything set in ``settings.REPORTS`` overrides the default of the same
key.
"""

from django.conf import settings

DEFAULTS = {
    "PHOTO_MAX_SIZE_MB": 10,
    "PHOTO_ALLOWED_TYPES": ["image/jpeg", "image/png", "image/heic"],
    "ATTACHMENT_MAX_SIZE_MB": 25,
    "ATTACHMENT_ALLOWED_TYPES": [
        "application/pdf",
        "image/*",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ],
    "GEOTAG_EXTRACTION_TIMEOUT": 5,
}


def reports_setting(name: str):
    return getattr(settings, "REPORTS", {}).get(name, DEFAULTS[name])
