"""EXIF metadata reader backed by Pillow.

Satisfies the ImageMetadataReader protocol. Every field that cannot be
resolved falls back to ``UNKNOWN``.
"""

import math
from datetime import datetime
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image

from portfolio_activity.entities import UNKNOWN, ImageMetadata
from portfolio_activity.errors import MetadataExtractionError

Base = ExifTags.Base
GPS = ExifTags.GPS


def _as_float(value: Any) -> float | None:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    try:
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return None if math.isnan(number) else number


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode(errors="ignore")
    text = str(value).strip("\x00 ").strip()
    return text or None


def _number(value: float) -> str:
    return f"{value:g}"


def _format_camera(make: Any, model: Any) -> str:
    make, model = _clean(make), _clean(model)
    if make and model:
        # Many bodies repeat the maker in the model string ("Canon" + "Canon EOS R5")
        if model.lower().startswith(make.lower()):
            return model
        return f"{make} {model}"
    return UNKNOWN


def _format_shutter(exposure: Any) -> str:
    seconds = _as_float(exposure)
    if not seconds or seconds <= 0:
        return UNKNOWN
    if seconds >= 1:
        return f"{_number(seconds)}s"
    return f"1/{round(1 / seconds)}"


def _format_date(value: Any) -> str:
    text = _clean(value)
    if not text:
        return UNKNOWN
    try:
        return datetime.strptime(text[:19], "%Y:%m:%d %H:%M:%S").date().isoformat()
    except ValueError:
        return UNKNOWN


def _format_range(low: float, high: float | None) -> str:
    if high is None or high == low:
        return _number(low)
    return f"{_number(low)}-{_number(high)}"


def _format_lens_specification(spec: Any) -> str | None:
    """Describe a lens from its EXIF LensSpecification.

    The tag holds (min focal, max focal, min f-number at min focal,
    min f-number at max focal); zero or 0/0 components are unknown.
    """
    if not isinstance(spec, (tuple, list)) or len(spec) != 4:
        return None
    focal_min, focal_max, f_min, f_max = (_as_float(part) or None for part in spec)
    if focal_min is None:
        return None
    text = f"{_format_range(focal_min, focal_max)}mm"
    if f_min is not None:
        text += f" f/{_format_range(f_min, f_max)}"
    return text


def _dms_to_degrees(dms: Any, ref: Any) -> float | None:
    if not isinstance(dms, (tuple, list)) or len(dms) != 3:
        return None
    parts = [_as_float(part) for part in dms]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    value = degrees + minutes / 60 + seconds / 3600
    if _clean(ref) in ("S", "W"):
        value = -value
    return value


def _format_location(gps: dict) -> str:
    latitude = _dms_to_degrees(gps.get(GPS.GPSLatitude), gps.get(GPS.GPSLatitudeRef))
    longitude = _dms_to_degrees(gps.get(GPS.GPSLongitude), gps.get(GPS.GPSLongitudeRef))
    if latitude is None or longitude is None:
        return UNKNOWN
    return f"{latitude:.4f}, {longitude:.4f}"


def build_metadata(base: dict, exif: dict, gps: dict, size: tuple[int, int] | None) -> ImageMetadata:
    """Turn raw tag dictionaries into display-ready metadata.

    The lens is the LensModel string, or a focal and aperture range built
    from LensSpecification when the body does not record a model.
    """
    aperture = _as_float(exif.get(Base.FNumber))
    focal_length = _as_float(exif.get(Base.FocalLength))
    iso = exif.get(Base.ISOSpeedRatings)
    if isinstance(iso, (tuple, list)):
        iso = iso[0] if iso else None
    lens = _clean(exif.get(Base.LensModel)) or _format_lens_specification(exif.get(Base.LensSpecification))

    dimensions = UNKNOWN
    if size and size[0] and size[1]:
        dimensions = f"{size[0]} × {size[1]}"

    return ImageMetadata(
        camera=_format_camera(base.get(Base.Make), base.get(Base.Model)),
        lens=lens or UNKNOWN,
        aperture=f"f/{_number(aperture)}" if aperture else UNKNOWN,
        shutter_speed=_format_shutter(exif.get(Base.ExposureTime)),
        iso=str(iso) if iso else UNKNOWN,
        focal_length=f"{_number(focal_length)}mm" if focal_length else UNKNOWN,
        date_taken=_format_date(exif.get(Base.DateTimeOriginal) or base.get(Base.DateTime)),
        location=_format_location(gps),
        dimensions=dimensions,
    )


class PillowExifReader:
    """Read photo metadata with Pillow's EXIF support."""

    def read(self, path: Path) -> ImageMetadata:
        """Extract metadata from an image file.

        Args:
            path: Absolute path of an existing file

        Returns:
            ImageMetadata with UNKNOWN for every unresolvable field

        Raises:
            MetadataExtractionError: If Pillow cannot decode the file
        """
        try:
            with Image.open(path) as image:
                exif = image.getexif()
                base = dict(exif)
                exif_ifd = dict(exif.get_ifd(ExifTags.IFD.Exif))
                gps_ifd = dict(exif.get_ifd(ExifTags.IFD.GPSInfo))
                size = image.size
        except (OSError, ValueError, SyntaxError) as e:
            raise MetadataExtractionError(f"Cannot read metadata from {path.name}: {e}") from e

        return build_metadata(base, exif_ifd, gps_ifd, size)
