"""Tests for EXIF extraction."""

import pytest
from PIL import ExifTags, Image

from portfolio_activity.entities import UNKNOWN, ImageMetadata
from portfolio_activity.errors import MetadataExtractionError
from portfolio_activity.repositories import PillowExifReader
from portfolio_activity.repositories.exif_reader import build_metadata

Base = ExifTags.Base
GPS = ExifTags.GPS


def test_build_metadata_formats_every_field():
    metadata = build_metadata(
        base={Base.Make: "Canon", Base.Model: "Canon EOS R5"},
        exif={
            Base.FNumber: 2.8,
            Base.ExposureTime: 0.004,
            Base.ISOSpeedRatings: 400,
            Base.FocalLength: 35.0,
            Base.DateTimeOriginal: "2023:06:01 10:15:00",
            Base.LensModel: "RF35mm F1.8 MACRO IS STM",
        },
        gps={
            GPS.GPSLatitude: (45.0, 30.0, 0.0),
            GPS.GPSLatitudeRef: "N",
            GPS.GPSLongitude: (9.0, 12.0, 0.0),
            GPS.GPSLongitudeRef: "W",
        },
        size=(6000, 4000),
    )
    assert metadata == ImageMetadata(
        camera="Canon EOS R5",
        lens="RF35mm F1.8 MACRO IS STM",
        aperture="f/2.8",
        shutter_speed="1/250",
        iso="400",
        focal_length="35mm",
        date_taken="2023-06-01",
        location="45.5000, -9.2000",
        dimensions="6000 × 4000",
    )


def test_build_metadata_defaults_to_unknown():
    metadata = build_metadata(base={}, exif={}, gps={}, size=None)
    assert all(value == UNKNOWN for value in vars(metadata).values())


@pytest.mark.parametrize(
    "spec, expected",
    [
        ((24.0, 70.0, 2.8, 2.8), "24-70mm f/2.8"),
        ((18.0, 55.0, 3.5, 5.6), "18-55mm f/3.5-5.6"),
        ((35.0, 35.0, 1.4, 1.4), "35mm f/1.4"),
        ((50.0, 50.0, 0, 0), "50mm"),
        ((0, 0, 0, 0), UNKNOWN),
    ],
)
def test_lens_falls_back_to_lens_specification(spec, expected):
    metadata = build_metadata(base={}, exif={Base.LensSpecification: spec}, gps={}, size=None)
    assert metadata.lens == expected


def test_lens_model_wins_over_lens_specification():
    metadata = build_metadata(
        base={},
        exif={Base.LensModel: "XF23mmF2 R WR", Base.LensSpecification: (23.0, 23.0, 2.0, 2.0)},
        gps={},
        size=None,
    )
    assert metadata.lens == "XF23mmF2 R WR"


def test_long_exposure_and_bad_date():
    metadata = build_metadata(
        base={Base.Make: "Sony"},
        exif={Base.ExposureTime: 2.5, Base.DateTimeOriginal: "not a date"},
        gps={GPS.GPSLatitude: (45.0, 30.0)},
        size=(10, 10),
    )
    assert metadata.camera == UNKNOWN
    assert metadata.shutter_speed == "2.5s"
    assert metadata.date_taken == UNKNOWN
    assert metadata.location == UNKNOWN


def test_reads_camera_from_jpeg(tmp_path):
    path = tmp_path / "photo.jpg"
    exif = Image.Exif()
    exif[Base.Make] = "FUJIFILM"
    exif[Base.Model] = "X100V"
    Image.new("RGB", (64, 48), "white").save(path, exif=exif)

    metadata = PillowExifReader().read(path)
    assert metadata.camera == "FUJIFILM X100V"
    assert metadata.dimensions == "64 × 48"
    assert metadata.aperture == UNKNOWN


def test_image_without_exif(tmp_path):
    path = tmp_path / "plain.png"
    Image.new("RGB", (8, 8)).save(path)
    metadata = PillowExifReader().read(path)
    assert metadata.camera == UNKNOWN
    assert metadata.dimensions == "8 × 8"


def test_unreadable_file_raises(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"definitely not an image")
    with pytest.raises(MetadataExtractionError):
        PillowExifReader().read(path)
