"""
Upload pipeline: validate, store, record, and only then show.

Files are processed one after another in the order they were dropped. A
file becomes an Image in the gallery only after both its bytes and its
metadata record were written; any failure is reported for that file alone
and the rest of the batch carries on.
"""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..error_handling import (
    MetadataWriteError,
    Notification,
    NotificationLevel,
    StorageWriteError,
    TagalleryError,
    ValidationError,
)
from ..logging_config import get_logger, log_performance
from ..models.image import Image, ImageRecord
from .image_processor import ImageProcessor
from .metadata import MetadataService
from .storage import StorageService

logger = get_logger(__name__)

# (filename, bytes_loaded, bytes_total)
FileProgressCallback = Callable[[str, int, int], None]


@dataclass(frozen=True)
class FileUpload:
    """One dropped file."""

    filename: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_uploaded_file(cls, uploaded_file: Any) -> "FileUpload":
        """Read a Streamlit UploadedFile."""
        data = uploaded_file.getvalue()
        return cls(filename=uploaded_file.name, data=data)


@dataclass
class FileUploadResult:
    """Outcome for a single file of a batch."""

    filename: str
    success: bool
    image: Image | None = None
    storage_path: str | None = None
    error: TagalleryError | None = None
    stage: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "success": self.success,
            "image_id": self.image.id if self.image else None,
            "storage_path": self.storage_path,
            "error": str(self.error) if self.error else None,
            "stage": self.stage,
        }


@dataclass
class UploadBatchResult:
    """Outcome of a whole batch."""

    added_images: list[Image] = field(default_factory=list)
    results: list[FileUploadResult] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)
    total_files: int = 0
    processing_time: float = 0.0

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for result in self.results if not result.success)


class UploadPipeline:
    """Turns dropped files into images of one gallery."""

    def __init__(
        self,
        storage: StorageService,
        metadata: MetadataService,
        processor: ImageProcessor | None = None,
    ) -> None:
        self.storage = storage
        self.metadata = metadata
        self.processor = processor or ImageProcessor()

    def upload_file(
        self,
        gallery_id: str,
        file: FileUpload,
        progress_callback: FileProgressCallback | None = None,
    ) -> FileUploadResult:
        """
        Run one file through the pipeline.

        Never raises for a failure of this file; the error is returned in
        the result instead.
        """
        try:
            return self._process_file(gallery_id, file, progress_callback)
        except Exception as e:
            logger.exception("file_upload_unexpected_error", filename=file.filename, gallery_id=gallery_id)
            error = TagalleryError(
                f"Unexpected error uploading '{file.filename}': {e}",
                code="upload_unexpected_error",
                user_message=f"'{file.filename}' could not be uploaded.",
                details={"filename": file.filename, "original_type": type(e).__name__},
                original_exception=e,
            )
            return FileUploadResult(filename=file.filename, success=False, error=error, stage="unexpected")

    def _process_file(
        self,
        gallery_id: str,
        file: FileUpload,
        progress_callback: FileProgressCallback | None,
    ) -> FileUploadResult:
        """Validate, store and record one file. Expected failures come back as results."""
        try:
            self.processor.validate_image(file.data, file.filename)
        except ValidationError as e:
            return FileUploadResult(filename=file.filename, success=False, error=e, stage="validation")

        storage_path = self.storage.build_storage_path(gallery_id, file.filename)

        def report_progress(loaded: int, total: int) -> None:
            if progress_callback:
                progress_callback(file.filename, loaded, total)

        try:
            stored = self.storage.upload(
                storage_path,
                file.data,
                content_type=self.storage.get_content_type(file.filename),
                progress_callback=report_progress,
            )
        except StorageWriteError as e:
            return FileUploadResult(
                filename=file.filename, success=False, error=e, storage_path=storage_path, stage="storage"
            )

        record = ImageRecord.create_new(
            gallery_id=gallery_id,
            storage_path=stored["path"],
            public_url=stored["public_url"],
            alt_text=file.filename,
        )

        try:
            self.metadata.insert(record)
        except MetadataWriteError as e:
            self._discard_object(stored["path"])
            return FileUploadResult(
                filename=file.filename, success=False, error=e, storage_path=storage_path, stage="metadata"
            )

        image = Image.from_record(record)
        logger.info("file_uploaded", filename=file.filename, image_id=image.id, gallery_id=gallery_id)
        return FileUploadResult(filename=file.filename, success=True, image=image, storage_path=stored["path"])

    def upload_batch(
        self,
        gallery_id: str,
        files: Iterable[FileUpload],
        progress_callback: FileProgressCallback | None = None,
    ) -> UploadBatchResult:
        """
        Upload files sequentially in input order.

        Returns:
            UploadBatchResult with the added images in input order and one
            error notification per failed file
        """
        start_time = time.perf_counter()
        batch = UploadBatchResult()

        for file in files:
            batch.total_files += 1
            result = self.upload_file(gallery_id, file, progress_callback)
            batch.results.append(result)

            if result.success and result.image is not None:
                batch.added_images.append(result.image)
            elif result.error is not None:
                batch.notifications.append(Notification.from_error(result.error, file.filename))
                logger.warning(
                    "file_upload_failed",
                    filename=file.filename,
                    stage=result.stage,
                    error_code=result.error.code,
                )

        if batch.added_images:
            count = len(batch.added_images)
            batch.notifications.append(
                Notification(
                    level=NotificationLevel.SUCCESS,
                    message=f"Uploaded {count} image{'s' if count != 1 else ''}.",
                )
            )

        batch.processing_time = time.perf_counter() - start_time
        log_performance(
            "upload_batch",
            batch.processing_time,
            gallery_id=gallery_id,
            total_files=batch.total_files,
            successful=batch.success_count,
            failed=batch.failure_count,
        )
        return batch

    def _discard_object(self, path: str) -> None:
        """Remove an object whose metadata write failed. Failures are only logged."""
        try:
            self.storage.delete(path)
            logger.info("orphaned_object_removed", path=path)
        except StorageWriteError as e:
            logger.warning("orphaned_object_left", path=path, error=str(e))
