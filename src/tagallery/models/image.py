"""
Image models for tagallery application.

ImageRecord mirrors a row of the images table. Image is the in-memory
representation used by the filter engine and the bulk tag editor; records
are converted into images at the boundary with Image.from_record.
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from ..error_handling import ValidationError

ImageId = str | int


def normalize_tags(tags: Iterable[Any] | None) -> frozenset[str]:
    """
    Convert a loosely typed tag collection into a frozenset of labels.

    Raises:
        ValidationError: If a tag is not a string or is blank
    """
    if tags is None:
        return frozenset()
    if isinstance(tags, str):
        raise ValidationError("Tags must be a collection of strings, not a single string", code="invalid_tags")

    normalized = set()
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError(f"Tag {tag!r} is not a string", code="invalid_tag", details={"tag": repr(tag)})
        label = tag.strip()
        if not label:
            raise ValidationError("Tag labels must not be empty", code="empty_tag")
        normalized.add(label)
    return frozenset(normalized)


@dataclass(frozen=True)
class Image:
    """An image in a gallery. Identity is by id; tag order is irrelevant."""

    id: ImageId
    source_url: str
    alt_text: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)

    def with_tags(self, tags: Iterable[str]) -> "Image":
        """Return a copy of this image carrying exactly the given tags."""
        return replace(self, tags=frozenset(tags))

    def has_any_tag(self, tags: Iterable[str]) -> bool:
        """Check whether the image carries at least one of the given tags."""
        return not self.tags.isdisjoint(tags)

    @classmethod
    def from_record(cls, record: "ImageRecord | Mapping[str, Any]") -> "Image":
        """
        Build an Image from a metadata record.

        Accepts an ImageRecord or a plain mapping with the same keys, so
        rows coming straight from the database or a test fixture can be
        converted the same way.

        Raises:
            ValidationError: If the record is missing an id or public URL
        """
        if isinstance(record, ImageRecord):
            data: Mapping[str, Any] = record.to_dict()
        else:
            data = record

        image_id = data.get("id")
        if image_id is None or (isinstance(image_id, str) and not image_id.strip()):
            raise ValidationError("Image record has no id", code="record_missing_id")
        if isinstance(image_id, bool) or not isinstance(image_id, str | int):
            raise ValidationError(f"Image id {image_id!r} must be a string or integer", code="record_invalid_id")

        public_url = data.get("public_url")
        if not isinstance(public_url, str) or not public_url:
            raise ValidationError(
                f"Image record {image_id} has no public URL",
                code="record_missing_url",
                details={"image_id": str(image_id)},
            )

        alt_text = data.get("alt_text")
        if alt_text is not None and not isinstance(alt_text, str):
            alt_text = str(alt_text)

        return cls(
            id=image_id,
            source_url=public_url,
            alt_text=alt_text,
            tags=normalize_tags(data.get("tags")),
        )


@dataclass
class ImageRecord:
    """A row of the images table."""

    id: str
    gallery_id: str
    storage_path: str
    public_url: str
    alt_text: str | None
    tags: list[str]
    created_at: datetime

    @classmethod
    def create_new(
        cls,
        gallery_id: str,
        storage_path: str,
        public_url: str,
        alt_text: str | None = None,
        tags: Iterable[str] | None = None,
        created_at: datetime | None = None,
    ) -> "ImageRecord":
        """Create a new record with a generated id and the current timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            gallery_id=gallery_id,
            storage_path=storage_path,
            public_url=public_url,
            alt_text=alt_text,
            tags=sorted(tags or []),
            created_at=created_at or datetime.now(UTC),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the record to a dictionary."""
        return {
            "id": self.id,
            "gallery_id": self.gallery_id,
            "storage_path": self.storage_path,
            "public_url": self.public_url,
            "alt_text": self.alt_text,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageRecord":
        """Create a record from a dictionary (e.g., from the database)."""
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=data["id"],
            gallery_id=data["gallery_id"],
            storage_path=data["storage_path"],
            public_url=data["public_url"],
            alt_text=data.get("alt_text"),
            tags=list(data.get("tags") or []),
            created_at=created_at,
        )

    def validate(self) -> bool:
        """
        Validate the record.

        Returns:
            True if valid, False otherwise
        """
        if not self.id or not self.gallery_id:
            return False

        if not self.storage_path or not self.public_url:
            return False

        return all(isinstance(tag, str) and tag.strip() for tag in self.tags)
