"""Unit tests for ImageInfo model."""

from datetime import UTC, datetime

import pydantic
import pytest

from laakhay.wiki.models import ImageInfo


def test_from_api_record():
    """Test parsing an imageinfo record with API field names."""
    info = ImageInfo.model_validate(
        {
            "canonicaltitle": "File:Example.jpg",
            "url": "https://upload.wikimedia.org/example.jpg",
            "size": 1024,
            "width": 640,
            "height": 480,
            "sha1": "abc",
            "mime": "image/jpeg",
            "user": "Uploader",
            "timestamp": "2024-01-01T12:00:00Z",
            "comment": "first",
            "descriptionurl": "ignored",
        }
    )
    assert info.canonical_title == "File:Example.jpg"
    assert info.timestamp == datetime(2024, 1, 1, 12, tzinfo=UTC)
    assert info.is_image


def test_non_image_mime():
    assert not ImageInfo(mime="application/pdf").is_image
    assert not ImageInfo().is_image


def test_rejects_negative_size():
    with pytest.raises(pydantic.ValidationError):
        ImageInfo(size=-1)
