"""
Unit tests for Image and ImageRecord.
"""

from dataclasses import FrozenInstanceError
from datetime import UTC, datetime

import pytest

from tagallery.error_handling import ValidationError
from tagallery.models.image import Image, ImageRecord, normalize_tags


def make_record(**overrides):
    values = {
        "gallery_id": "gallery-1",
        "storage_path": "galleries/gallery-1/abc/cat.png",
        "public_url": "https://storage.googleapis.com/bucket/galleries/gallery-1/abc/cat.png",
        "alt_text": "cat.png",
    }
    values.update(overrides)
    return ImageRecord.create_new(**values)


class TestNormalizeTags:
    """Test cases for normalize_tags."""

    def test_none_is_empty(self):
        assert normalize_tags(None) == frozenset()

    def test_strips_and_dedupes(self):
        assert normalize_tags([" cat", "cat", "dog "]) == frozenset({"cat", "dog"})

    def test_rejects_bare_string(self):
        with pytest.raises(ValidationError):
            normalize_tags("cat")

    def test_rejects_non_string_tag(self):
        with pytest.raises(ValidationError):
            normalize_tags(["cat", 3])

    def test_rejects_blank_tag(self):
        with pytest.raises(ValidationError):
            normalize_tags(["cat", " "])


class TestImage:
    """Test cases for the Image value type."""

    def test_is_immutable(self):
        image = Image(id=1, source_url="https://example.com/1.png")
        with pytest.raises(FrozenInstanceError):
            image.tags = frozenset({"x"})  # type: ignore[misc]

    def test_with_tags_returns_copy(self):
        image = Image(id=1, source_url="https://example.com/1.png", tags=frozenset({"x"}))
        retagged = image.with_tags(["y"])

        assert retagged.tags == frozenset({"y"})
        assert image.tags == frozenset({"x"})
        assert retagged.id == image.id

    def test_has_any_tag(self):
        image = Image(id=1, source_url="https://example.com/1.png", tags=frozenset({"x", "y"}))

        assert image.has_any_tag({"y", "z"})
        assert not image.has_any_tag({"z"})
        assert not image.has_any_tag(set())

    def test_from_record(self):
        record = make_record(tags=["b", "a"])

        image = Image.from_record(record)

        assert image.id == record.id
        assert image.source_url == record.public_url
        assert image.alt_text == "cat.png"
        assert image.tags == frozenset({"a", "b"})

    def test_from_mapping(self):
        image = Image.from_record({"id": 7, "public_url": "https://example.com/7.png", "tags": ["x"]})

        assert image.id == 7
        assert image.alt_text is None
        assert image.tags == frozenset({"x"})

    @pytest.mark.parametrize(
        "data",
        [
            {"public_url": "https://example.com/1.png"},
            {"id": "  ", "public_url": "https://example.com/1.png"},
            {"id": True, "public_url": "https://example.com/1.png"},
            {"id": 1.5, "public_url": "https://example.com/1.png"},
            {"id": "1"},
            {"id": "1", "public_url": ""},
        ],
    )
    def test_from_record_rejects_malformed(self, data):
        with pytest.raises(ValidationError):
            Image.from_record(data)


class TestImageRecord:
    """Test cases for ImageRecord."""

    def test_create_new(self):
        record = make_record(tags=["z", "a"])

        assert record.id
        assert record.tags == ["a", "z"]
        assert record.created_at.tzinfo is not None
        assert record.validate() is True

    def test_create_new_generates_unique_ids(self):
        assert make_record().id != make_record().id

    def test_dict_round_trip(self):
        record = make_record(created_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC))

        assert ImageRecord.from_dict(record.to_dict()) == record

    def test_validate_rejects_missing_url(self):
        assert make_record(public_url="").validate() is False

    def test_validate_rejects_blank_tag(self):
        record = make_record()
        record.tags.append(" ")
        assert record.validate() is False
