"""Gallery model for tagallery application."""

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..error_handling import ValidationError


@dataclass
class Gallery:
    """A named gallery owned by a single user."""

    id: str
    user_id: str
    name: str
    description: str
    created_at: datetime

    @classmethod
    def create_new(cls, user_id: str, name: str, description: str) -> "Gallery":
        """
        Create a new Gallery with a generated id.

        Raises:
            ValidationError: If name or description is blank
        """
        name, description = validate_gallery_fields(name, description)
        return cls(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            description=description,
            created_at=datetime.now(UTC),
        )

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Gallery":
        """Create a Gallery from a (id, user_id, name, description, created_at) row."""
        created_at = row[4]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(id=row[0], user_id=row[1], name=row[2], description=row[3], created_at=created_at)

    def to_dict(self) -> dict[str, Any]:
        """Convert Gallery to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


def validate_gallery_fields(name: str, description: str) -> tuple[str, str]:
    """
    Strip and validate the user-editable gallery fields.

    Both fields are required.

    Raises:
        ValidationError: If either field is blank
    """
    name = (name or "").strip()
    description = (description or "").strip()

    missing = [field for field, value in (("name", name), ("description", description)) if not value]
    if missing:
        raise ValidationError(
            f"Gallery {' and '.join(missing)} must not be empty",
            code="gallery_fields_missing",
            user_message="Please enter both a gallery name and a description.",
            details={"missing_fields": missing},
        )

    return name, description
