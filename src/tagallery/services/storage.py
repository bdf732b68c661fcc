"""Storage service for Google Cloud Storage operations."""

import uuid
from collections.abc import Callable
from pathlib import Path

from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound

from ..config import get_env
from ..error_handling import StorageWriteError
from ..logging_config import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


class StorageService:
    """Stores image bytes in a GCS bucket and resolves their public URLs."""

    def __init__(
        self,
        bucket_name: str | None = None,
        project_id: str | None = None,
        client: storage.Client | None = None,
    ) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: GCS bucket name (defaults to GCS_BUCKET)
            project_id: GCP project ID (defaults to GOOGLE_CLOUD_PROJECT)
            client: Pre-built storage client; one is created when omitted
        """
        self.bucket_name = bucket_name or get_env("GCS_BUCKET")
        self.project_id = project_id or get_env("GOOGLE_CLOUD_PROJECT")

        if not self.bucket_name:
            raise StorageWriteError("GCS_BUCKET environment variable is required", code="storage_misconfigured")
        if not self.project_id and client is None:
            raise StorageWriteError(
                "GOOGLE_CLOUD_PROJECT environment variable is required", code="storage_misconfigured"
            )

        try:
            self.client = client or storage.Client(project=self.project_id)
            self.bucket = self.client.bucket(self.bucket_name)
            logger.info("storage_service_initialized", bucket=self.bucket_name, project_id=self.project_id)
        except Exception as e:
            raise StorageWriteError(
                f"Failed to initialize GCS client: {e}", code="storage_misconfigured", original_exception=e
            ) from e

    def build_storage_path(self, gallery_id: str, filename: str) -> str:
        """
        Generate a unique object path for an uploaded file.

        Only the final path component of filename is kept so that uploaded
        names cannot escape the gallery prefix.
        """
        safe_filename = Path(filename).name or "upload"
        return f"galleries/{gallery_id}/{uuid.uuid4().hex}/{safe_filename}"

    def upload(
        self,
        path: str,
        file_data: bytes,
        content_type: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> dict:
        """
        Upload bytes to path and return where they can be fetched from.

        Args:
            path: Object path inside the bucket
            file_data: Raw file bytes
            content_type: MIME type; guessed from the extension when omitted
            progress_callback: Called with (bytes_loaded, bytes_total)

        Returns:
            dict: {"path", "public_url", "size", "content_type"}

        Raises:
            StorageWriteError: If the upload fails
        """
        total = len(file_data)
        content_type = content_type or self.get_content_type(path)

        try:
            blob = self.bucket.blob(path)

            if progress_callback:
                progress_callback(0, total)

            blob.upload_from_string(file_data, content_type=content_type)

            if progress_callback:
                progress_callback(total, total)

            logger.info("object_uploaded", path=path, size=total, content_type=content_type)

            return {
                "path": path,
                "public_url": blob.public_url,
                "size": total,
                "content_type": content_type,
            }

        except GoogleCloudError as e:
            raise StorageWriteError(
                f"Failed to upload '{path}': {e}",
                details={"path": path, "size": total},
                original_exception=e,
            ) from e
        except Exception as e:
            raise StorageWriteError(
                f"Unexpected error uploading '{path}': {e}",
                details={"path": path, "size": total},
                original_exception=e,
            ) from e

    def get_public_url(self, path: str) -> str:
        """Get the publicly resolvable URL of an object."""
        return str(self.bucket.blob(path).public_url)

    def delete(self, path: str) -> None:
        """
        Delete an object. Deleting a missing object is not an error.

        Raises:
            StorageWriteError: If the deletion fails
        """
        try:
            self.bucket.blob(path).delete()
            logger.info("object_deleted", path=path)
        except NotFound:
            logger.warning("object_already_deleted", path=path)
        except GoogleCloudError as e:
            raise StorageWriteError(
                f"Failed to delete '{path}': {e}", details={"path": path}, original_exception=e
            ) from e

    def get_content_type(self, filename: str) -> str:
        """Get the MIME type for a file name from its extension."""
        return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")
