"""Image metadata extraction with Pillow.

Always returns at least the basic file info; EXIF problems are logged and
the corresponding fields left out.
"""

from __future__ import annotations

import io
from fractions import Fraction
from typing import Any, Dict, Optional

from PIL import Image, UnidentifiedImageError

from coffey.core.logging import get_logger

log = get_logger("services.metadata")

# IFD pointers
EXIF_IFD = 0x8769
GPS_IFD = 0x8825

# IFD0 tags
TAG_MAKE = 0x010F
TAG_MODEL = 0x0110
TAG_ORIENTATION = 0x0112
TAG_SOFTWARE = 0x0131
TAG_DATETIME = 0x0132

# Exif IFD tags
TAG_EXPOSURE_TIME = 0x829A
TAG_FNUMBER = 0x829D
TAG_ISO = 0x8827
TAG_DATETIME_ORIGINAL = 0x9003
TAG_FOCAL_LENGTH = 0x920A
TAG_LENS_MODEL = 0xA434

# GPS IFD tags
TAG_GPS_LAT_REF = 1
TAG_GPS_LAT = 2
TAG_GPS_LNG_REF = 3
TAG_GPS_LNG = 4


def _number(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
        if value is None:
            return None
    if hasattr(value, "numerator") and hasattr(value, "denominator"):
        if not value.denominator:
            return None
        value = Fraction(value.numerator, value.denominator)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip("\x00 ").strip()
    return text or None


def _dms_to_degrees(dms: Any, ref: Any) -> Optional[float]:
    try:
        degrees, minutes, seconds = (float(Fraction(v.numerator, v.denominator)) if hasattr(v, "numerator") else float(v) for v in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    value = degrees + minutes / 60 + seconds / 3600
    if _text(ref) in ("S", "W"):
        value = -value
    return round(value, 7)


def format_from_mime(mime_type: str) -> Optional[str]:
    if mime_type.startswith("image/"):
        return mime_type.split("/", 1)[1]
    return None


def extract_metadata(content: bytes, mime_type: str) -> Dict[str, Any]:
    """``{"file": {...}, "exif": {...}}`` for an image; ``exif`` only when present."""
    metadata: Dict[str, Any] = {"file": {"size": len(content), "mimeType": mime_type}}
    fmt = format_from_mime(mime_type)
    if fmt:
        metadata["file"]["format"] = fmt

    try:
        img = Image.open(io.BytesIO(content))
    except (UnidentifiedImageError, OSError) as exc:
        log.warning(f"Could not open image for metadata extraction: {exc}")
        return metadata

    with img:
        width, height = img.size
        metadata["file"]["width"] = width
        metadata["file"]["height"] = height

        try:
            exif = img.getexif()
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Could not read EXIF data: {exc}")
            return metadata
        if not exif:
            return metadata

        try:
            sub = exif.get_ifd(EXIF_IFD)
            gps = exif.get_ifd(GPS_IFD)
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Could not read EXIF sub-IFDs: {exc}")
            sub, gps = {}, {}

    fields: Dict[str, Any] = {
        "make": _text(exif.get(TAG_MAKE)),
        "model": _text(exif.get(TAG_MODEL)),
        "lensModel": _text(sub.get(TAG_LENS_MODEL)),
        "dateTimeOriginal": _text(sub.get(TAG_DATETIME_ORIGINAL) or exif.get(TAG_DATETIME)),
        "iso": _number(sub.get(TAG_ISO)),
        "fNumber": _number(sub.get(TAG_FNUMBER)),
        "exposureTime": _number(sub.get(TAG_EXPOSURE_TIME)),
        "focalLength": _number(sub.get(TAG_FOCAL_LENGTH)),
        "orientation": _number(exif.get(TAG_ORIENTATION)),
        "software": _text(exif.get(TAG_SOFTWARE)),
    }
    if gps.get(TAG_GPS_LAT) and gps.get(TAG_GPS_LNG):
        fields["latitude"] = _dms_to_degrees(gps[TAG_GPS_LAT], gps.get(TAG_GPS_LAT_REF))
        fields["longitude"] = _dms_to_degrees(gps[TAG_GPS_LNG], gps.get(TAG_GPS_LNG_REF))

    exif_data = {k: v for k, v in fields.items() if v is not None}
    if exif_data:
        metadata["exif"] = exif_data
    return metadata
