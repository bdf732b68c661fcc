"""Gallery management scoped to the authenticated user."""

from ..error_handling import AuthorizationError, NotFoundError, StorageWriteError
from ..logging_config import get_logger, log_security_event
from ..models.gallery import Gallery, validate_gallery_fields
from .auth import CloudIAPAuthService, UserInfo
from .metadata import MetadataService
from .storage import StorageService

logger = get_logger(__name__)


class GalleryService:
    """
    Create, update, delete and list the current user's galleries.

    Every operation asks the auth service for the current user first and
    refuses to run without one.
    """

    def __init__(
        self,
        metadata: MetadataService,
        auth: CloudIAPAuthService,
        storage: StorageService | None = None,
    ) -> None:
        self.metadata = metadata
        self.auth = auth
        self.storage = storage

    def _require_user(self, operation: str) -> UserInfo:
        user = self.auth.current_user()
        if user is None:
            raise AuthorizationError(
                "Not authenticated",
                code="not_authenticated",
                user_message="Please sign in to manage galleries.",
                details={"operation": operation},
            )
        return user

    def _not_found(self, gallery_id: str, user: UserInfo) -> NotFoundError:
        log_security_event("gallery_not_found_or_foreign", user_id=user.user_id, gallery_id=gallery_id)
        return NotFoundError(
            f"Gallery {gallery_id} not found",
            code="gallery_not_found",
            user_message="This gallery does not exist.",
            details={"gallery_id": gallery_id},
        )

    def list_galleries(self) -> list[Gallery]:
        """List the current user's galleries, newest first."""
        user = self._require_user("list_galleries")
        return self.metadata.list_galleries(user.user_id)

    def get_gallery(self, gallery_id: str) -> Gallery:
        """
        Get one of the current user's galleries.

        Raises:
            NotFoundError: If the gallery does not exist or belongs to someone else
        """
        user = self._require_user("get_gallery")
        gallery = self.metadata.get_gallery(gallery_id, user.user_id)
        if gallery is None:
            raise self._not_found(gallery_id, user)
        return gallery

    def create_gallery(self, name: str, description: str) -> Gallery:
        """
        Create a gallery owned by the current user.

        Raises:
            AuthorizationError: If nobody is signed in
            ValidationError: If name or description is blank
        """
        user = self._require_user("create_gallery")
        gallery = Gallery.create_new(user.user_id, name, description)
        return self.metadata.insert_gallery(gallery)

    def update_gallery(self, gallery_id: str, name: str, description: str) -> Gallery:
        """Rename or re-describe one of the current user's galleries."""
        user = self._require_user("update_gallery")
        name, description = validate_gallery_fields(name, description)

        gallery = self.metadata.update_gallery(gallery_id, user.user_id, name, description)
        if gallery is None:
            raise self._not_found(gallery_id, user)
        return gallery

    def delete_gallery(self, gallery_id: str) -> int:
        """
        Delete one of the current user's galleries with all of its images.

        Stored objects are removed on a best-effort basis once the metadata
        is gone.

        Returns:
            Number of images deleted
        """
        user = self._require_user("delete_gallery")

        records = self.metadata.delete_gallery(gallery_id, user.user_id)
        if records is None:
            raise self._not_found(gallery_id, user)

        if self.storage is not None:
            for record in records:
                try:
                    self.storage.delete(record.storage_path)
                except StorageWriteError:
                    logger.warning("orphaned_object_left", path=record.storage_path, gallery_id=gallery_id)

        return len(records)
