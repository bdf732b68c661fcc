"""
Metadata service for galleries, image records and tags, backed by DuckDB.

Every operation opens its own connection to the database file and closes it
when done, so one service instance can be shared by every Streamlit session
of the process. DuckDB caches the database instance per file, which keeps
the per-operation connections cheap.

Image records are returned in insertion order (the position column); tags
of a gallery are returned in creation order.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import duckdb

from ..config import get_database_path
from ..error_handling import MetadataWriteError, NotFoundError
from ..logging_config import get_logger, log_error, log_user_action
from ..models.database import DatabaseManager, get_database_manager
from ..models.gallery import Gallery
from ..models.image import ImageRecord

logger = get_logger(__name__)


def _to_db_timestamp(value: datetime) -> datetime:
    """DuckDB TIMESTAMP columns hold naive UTC values."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _from_db_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class MetadataService:
    """
    Service for gallery, image and tag metadata.

    Attributes:
        db_path: Path of the DuckDB database file
    """

    def __init__(self, db_path: str | None = None):
        """
        Initialize the metadata service, creating the database if missing.

        Raises:
            MetadataWriteError: If the database cannot be created or opened
        """
        self.db_path = db_path or get_database_path()

        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            get_database_manager(self.db_path, create_if_missing=True).close()
        except Exception as e:
            raise MetadataWriteError(
                f"Failed to initialize metadata database: {e}",
                code="metadata_init_failed",
                details={"db_path": self.db_path},
                original_exception=e,
            ) from e

        logger.info("metadata_service_initialized", db_path=self.db_path)

    def _manager(self) -> DatabaseManager:
        return DatabaseManager(self.db_path)

    # Image records

    def insert(self, record: ImageRecord) -> ImageRecord:
        """
        Insert a new image record at the end of its gallery.

        Raises:
            MetadataWriteError: If the record is invalid or the write fails
        """
        if not record.validate():
            raise MetadataWriteError(
                "Invalid image record",
                code="invalid_image_record",
                details={"image_id": record.id, "gallery_id": record.gallery_id},
            )

        try:
            with self._manager() as db, db.transaction() as conn:
                position_row = conn.execute(
                    "SELECT COALESCE(MAX(position), 0) + 1 FROM images WHERE gallery_id = ?",
                    [record.gallery_id],
                ).fetchone()
                position = position_row[0] if position_row else 1

                conn.execute(
                    """INSERT INTO images
                       (id, gallery_id, position, storage_path, public_url, alt_text, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    [
                        record.id,
                        record.gallery_id,
                        position,
                        record.storage_path,
                        record.public_url,
                        record.alt_text,
                        _to_db_timestamp(record.created_at),
                    ],
                )
                for tag in sorted(set(record.tags)):
                    conn.execute("INSERT INTO image_tags (image_id, tag) VALUES (?, ?)", [record.id, tag])

            logger.info("image_record_inserted", image_id=record.id, gallery_id=record.gallery_id, position=position)
            return record

        except duckdb.Error as e:
            log_error(e, {"operation": "insert", "image_id": record.id, "gallery_id": record.gallery_id})
            raise MetadataWriteError(
                f"Failed to insert image record: {e}",
                details={"image_id": record.id, "storage_path": record.storage_path},
                original_exception=e,
            ) from e

    def query(self, gallery_id: str) -> list[ImageRecord]:
        """
        Get every image record of a gallery in insertion order.

        Raises:
            MetadataWriteError: If the read fails
        """
        try:
            with self._manager() as db:
                rows = db.execute_query(
                    """SELECT i.id, i.gallery_id, i.storage_path, i.public_url, i.alt_text, i.created_at, t.tag
                       FROM images i
                       LEFT JOIN image_tags t ON t.image_id = i.id
                       WHERE i.gallery_id = ?
                       ORDER BY i.position, t.tag""",
                    [gallery_id],
                )
        except duckdb.Error as e:
            log_error(e, {"operation": "query", "gallery_id": gallery_id})
            raise MetadataWriteError(
                f"Failed to query images: {e}", code="metadata_read_failed", original_exception=e
            ) from e

        records: dict[str, ImageRecord] = {}
        for image_id, row_gallery_id, storage_path, public_url, alt_text, created_at, tag in rows:
            record = records.get(image_id)
            if record is None:
                record = ImageRecord(
                    id=image_id,
                    gallery_id=row_gallery_id,
                    storage_path=storage_path,
                    public_url=public_url,
                    alt_text=alt_text,
                    tags=[],
                    created_at=_from_db_timestamp(created_at),
                )
                records[image_id] = record
            if tag is not None:
                record.tags.append(tag)

        return list(records.values())

    def get_image(self, image_id: str) -> ImageRecord | None:
        """Get one image record by id, or None."""
        try:
            with self._manager() as db:
                rows = db.execute_query(
                    """SELECT i.gallery_id FROM images i WHERE i.id = ?""",
                    [image_id],
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to get image: {e}", code="metadata_read_failed", original_exception=e
            ) from e

        if not rows:
            return None
        return next((record for record in self.query(rows[0][0]) if record.id == image_id), None)

    def update_image_tags(self, image_tags: Mapping[str, Iterable[str]]) -> None:
        """
        Replace the tags of several images in one transaction.

        Args:
            image_tags: Mapping of image id to its complete new tag set

        Raises:
            MetadataWriteError: If the write fails; no image is changed then
        """
        if not image_tags:
            return

        try:
            with self._manager() as db, db.transaction() as conn:
                for image_id, tags in image_tags.items():
                    # Only touch changed rows; DuckDB rejects re-inserting a key deleted in the same transaction
                    current = {
                        row[0]
                        for row in conn.execute(
                            "SELECT tag FROM image_tags WHERE image_id = ?", [image_id]
                        ).fetchall()
                    }
                    wanted = set(tags)
                    for tag in sorted(current - wanted):
                        conn.execute("DELETE FROM image_tags WHERE image_id = ? AND tag = ?", [image_id, tag])
                    for tag in sorted(wanted - current):
                        conn.execute("INSERT INTO image_tags (image_id, tag) VALUES (?, ?)", [image_id, tag])

            logger.info("image_tags_updated", images=len(image_tags))

        except duckdb.Error as e:
            log_error(e, {"operation": "update_image_tags", "images": len(image_tags)})
            raise MetadataWriteError(
                f"Failed to update image tags: {e}", code="tag_update_failed", original_exception=e
            ) from e

    def delete_image(self, image_id: str) -> ImageRecord:
        """
        Delete an image record and its tag rows.

        Returns:
            The deleted record, so the caller can remove the stored object

        Raises:
            NotFoundError: If the image does not exist
            MetadataWriteError: If the write fails
        """
        record = self.get_image(image_id)
        if record is None:
            raise NotFoundError(f"Image {image_id} not found", code="image_not_found", details={"image_id": image_id})

        try:
            with self._manager() as db, db.transaction() as conn:
                conn.execute("DELETE FROM image_tags WHERE image_id = ?", [image_id])
                conn.execute("DELETE FROM images WHERE id = ?", [image_id])
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to delete image: {e}", code="image_delete_failed", original_exception=e
            ) from e

        logger.info("image_record_deleted", image_id=image_id, gallery_id=record.gallery_id)
        return record

    # Tags

    def get_tags(self, gallery_id: str) -> list[str]:
        """Get a gallery's tag set in creation order."""
        try:
            with self._manager() as db:
                rows = db.execute_query(
                    "SELECT name FROM tags WHERE gallery_id = ? ORDER BY position", [gallery_id]
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to get tags: {e}", code="metadata_read_failed", original_exception=e
            ) from e
        return [row[0] for row in rows]

    def add_tag(self, gallery_id: str, name: str) -> bool:
        """
        Add a tag to a gallery's tag set.

        Returns:
            False if the tag already existed
        """
        try:
            with self._manager() as db, db.transaction() as conn:
                existing = conn.execute(
                    "SELECT 1 FROM tags WHERE gallery_id = ? AND name = ?", [gallery_id, name]
                ).fetchone()
                if existing:
                    return False

                position_row = conn.execute(
                    "SELECT COALESCE(MAX(position), 0) + 1 FROM tags WHERE gallery_id = ?", [gallery_id]
                ).fetchone()
                position = position_row[0] if position_row else 1
                conn.execute(
                    "INSERT INTO tags (gallery_id, name, position) VALUES (?, ?, ?)", [gallery_id, name, position]
                )
        except duckdb.Error as e:
            raise MetadataWriteError(f"Failed to add tag: {e}", code="tag_add_failed", original_exception=e) from e

        logger.info("tag_added", gallery_id=gallery_id, tag=name)
        return True

    def remove_tag(self, gallery_id: str, name: str) -> int:
        """
        Remove a tag from a gallery's tag set and from every image of the gallery.

        Returns:
            Number of images the tag was removed from
        """
        try:
            with self._manager() as db, db.transaction() as conn:
                count_row = conn.execute(
                    """SELECT COUNT(*) FROM image_tags
                       WHERE tag = ? AND image_id IN (SELECT id FROM images WHERE gallery_id = ?)""",
                    [name, gallery_id],
                ).fetchone()
                conn.execute(
                    """DELETE FROM image_tags
                       WHERE tag = ? AND image_id IN (SELECT id FROM images WHERE gallery_id = ?)""",
                    [name, gallery_id],
                )
                conn.execute("DELETE FROM tags WHERE gallery_id = ? AND name = ?", [gallery_id, name])
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to remove tag: {e}", code="tag_remove_failed", original_exception=e
            ) from e

        affected = count_row[0] if count_row else 0
        logger.info("tag_removed", gallery_id=gallery_id, tag=name, images_affected=affected)
        return affected

    # Galleries

    def insert_gallery(self, gallery: Gallery) -> Gallery:
        """Insert a new gallery row."""
        try:
            with self._manager() as db:
                db.execute_query(
                    "INSERT INTO galleries (id, user_id, name, description, created_at) VALUES (?, ?, ?, ?, ?)",
                    [gallery.id, gallery.user_id, gallery.name, gallery.description, _to_db_timestamp(gallery.created_at)],
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to create gallery: {e}", code="gallery_create_failed", original_exception=e
            ) from e

        log_user_action(gallery.user_id, "gallery_created", gallery_id=gallery.id, name=gallery.name)
        return gallery

    def get_gallery(self, gallery_id: str, user_id: str) -> Gallery | None:
        """Get a gallery owned by user_id, or None."""
        try:
            with self._manager() as db:
                rows = db.execute_query(
                    """SELECT id, user_id, name, description, created_at
                       FROM galleries WHERE id = ? AND user_id = ?""",
                    [gallery_id, user_id],
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to get gallery: {e}", code="metadata_read_failed", original_exception=e
            ) from e

        if not rows:
            return None
        return self._gallery_from_row(rows[0])

    def list_galleries(self, user_id: str) -> list[Gallery]:
        """Get a user's galleries, newest first."""
        try:
            with self._manager() as db:
                rows = db.execute_query(
                    """SELECT id, user_id, name, description, created_at
                       FROM galleries WHERE user_id = ?
                       ORDER BY created_at DESC, id""",
                    [user_id],
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to list galleries: {e}", code="metadata_read_failed", original_exception=e
            ) from e

        return [self._gallery_from_row(row) for row in rows]

    def update_gallery(self, gallery_id: str, user_id: str, name: str, description: str) -> Gallery | None:
        """
        Update a gallery's name and description.

        Returns:
            The updated gallery, or None if the user owns no such gallery
        """
        if self.get_gallery(gallery_id, user_id) is None:
            return None

        try:
            with self._manager() as db:
                db.execute_query(
                    "UPDATE galleries SET name = ?, description = ? WHERE id = ? AND user_id = ?",
                    [name, description, gallery_id, user_id],
                )
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to update gallery: {e}", code="gallery_update_failed", original_exception=e
            ) from e

        log_user_action(user_id, "gallery_updated", gallery_id=gallery_id)
        return self.get_gallery(gallery_id, user_id)

    def delete_gallery(self, gallery_id: str, user_id: str) -> list[ImageRecord] | None:
        """
        Delete a gallery with its images and tags.

        Returns:
            The deleted image records, or None if the user owns no such gallery
        """
        if self.get_gallery(gallery_id, user_id) is None:
            return None

        records = self.query(gallery_id)
        try:
            with self._manager() as db, db.transaction() as conn:
                conn.execute(
                    "DELETE FROM image_tags WHERE image_id IN (SELECT id FROM images WHERE gallery_id = ?)",
                    [gallery_id],
                )
                conn.execute("DELETE FROM images WHERE gallery_id = ?", [gallery_id])
                conn.execute("DELETE FROM tags WHERE gallery_id = ?", [gallery_id])
                conn.execute("DELETE FROM galleries WHERE id = ? AND user_id = ?", [gallery_id, user_id])
        except duckdb.Error as e:
            raise MetadataWriteError(
                f"Failed to delete gallery: {e}", code="gallery_delete_failed", original_exception=e
            ) from e

        log_user_action(user_id, "gallery_deleted", gallery_id=gallery_id, images=len(records))
        return records

    @staticmethod
    def _gallery_from_row(row: tuple[Any, ...]) -> Gallery:
        gallery = Gallery.from_row(row)
        gallery.created_at = _from_db_timestamp(gallery.created_at)
        return gallery
