"""
Gallery view controller.

Holds everything a gallery page shows between Streamlit reruns: the image
collection, the tag set, the active filter, the bulk tag editor and the
upload dialog. Pages call the event methods and render from the
properties; nothing in this module imports Streamlit.

Event methods never raise for user errors. They record a Notification
instead, so the page always stays interactive.
"""

from collections.abc import Iterable

from ...error_handling import (
    MetadataWriteError,
    NotFoundError,
    Notification,
    NotificationLevel,
    StorageWriteError,
    TagalleryError,
    ValidationError,
)
from ...logging_config import get_logger
from ...models.image import Image, ImageId
from ...services.metadata import MetadataService
from ...services.upload import FileProgressCallback, FileUpload, UploadBatchResult, UploadPipeline
from ...tagging import (
    BulkTagEditor,
    ImageCollection,
    TagSet,
    filter_images,
    remove_tag_everywhere,
    toggle_tag,
)

logger = get_logger(__name__)

# session_state key of the open gallery's controller
CONTROLLER_KEY = "gallery_controller"


class GalleryController:
    """State and events of one gallery page."""

    def __init__(
        self,
        gallery_id: str,
        metadata: MetadataService,
        pipeline: UploadPipeline,
        collection: ImageCollection | None = None,
        tag_set: TagSet | None = None,
    ) -> None:
        self.gallery_id = gallery_id
        self.metadata = metadata
        self.pipeline = pipeline

        self.collection = collection or ImageCollection()
        self.tag_set = tag_set or TagSet()
        self.active_filter: frozenset[str] = frozenset()
        self.editor = BulkTagEditor()

        self.upload_dialog_open = False
        self.is_uploading = False
        self.pending_files: list[FileUpload] = []

        self._notifications: list[Notification] = []

    @classmethod
    def load(cls, gallery_id: str, metadata: MetadataService, pipeline: UploadPipeline) -> "GalleryController":
        """Build a controller from the gallery's stored images and tags."""
        records = metadata.query(gallery_id)
        collection = ImageCollection(Image.from_record(record) for record in records)
        tag_set = TagSet(metadata.get_tags(gallery_id))

        logger.info("gallery_loaded", gallery_id=gallery_id, images=len(collection), tags=len(tag_set))
        return cls(gallery_id, metadata, pipeline, collection=collection, tag_set=tag_set)

    # Notifications

    def notify(self, level: NotificationLevel, message: str, filename: str | None = None) -> None:
        self._notifications.append(Notification(level=level, message=message, filename=filename))

    def _report(self, error: TagalleryError) -> None:
        if isinstance(error, ValidationError):
            self.notify(NotificationLevel.WARNING, error.user_message)
        else:
            self._notifications.append(Notification.from_error(error))

    def drain_notifications(self) -> list[Notification]:
        """Return pending notifications and forget them."""
        notifications, self._notifications = self._notifications, []
        return notifications

    # Filter

    def visible_images(self) -> list[Image]:
        """Images shown under the active filter, in collection order."""
        return filter_images(self.collection, self.active_filter)

    def toggle_tag(self, tag: str) -> frozenset[str]:
        """Toggle a tag in the active filter."""
        self.active_filter = toggle_tag(self.active_filter, tag)
        logger.debug("filter_toggled", tag=tag, active=sorted(self.active_filter))
        return self.active_filter

    def clear_filter(self) -> None:
        self.active_filter = frozenset()

    # Bulk tag editing

    def select_image(self, image_id: ImageId) -> bool:
        """
        Toggle an image in the selection.

        Returns:
            True if the image is selected afterwards
        """
        try:
            if image_id not in self.collection:
                raise NotFoundError(f"Image {image_id!r} not found", code="image_not_found")
            return self.editor.select_image(image_id)
        except TagalleryError as e:
            self._report(e)
            return image_id in self.editor.selection

    def open_tag_editor(self) -> bool:
        """Open the tag dialog for the selected images."""
        try:
            self.editor.open(self.tag_set)
        except ValidationError as e:
            self._report(e)
            return False
        return True

    def cancel_tag_edit(self) -> None:
        self.editor.cancel()

    def commit_tag_edit(self, checked: Iterable[str] | None = None) -> bool:
        """
        Resync the selected images against the checked tags and persist them.

        The in-memory collection only changes once the metadata write
        succeeded. The selection is cleared either way.

        Returns:
            True if the new tags were saved
        """
        selected = self.editor.selection
        try:
            updated = self.editor.commit(self.collection, checked=checked, live_tag_set=self.tag_set)
        except ValidationError as e:
            self._report(e)
            return False

        changed = {
            image.id: image.tags
            for image in updated
            if image.id in selected and image.tags != self.collection.get(image.id).tags
        }

        try:
            self.metadata.update_image_tags({str(image_id): tags for image_id, tags in changed.items()})
        except MetadataWriteError as e:
            self._report(e)
            return False

        self.collection = updated
        if selected:
            self.notify(
                NotificationLevel.SUCCESS,
                f"Updated tags on {len(selected)} image{'s' if len(selected) != 1 else ''}.",
            )
        return True

    # Tag set

    def add_tag(self, label: str) -> bool:
        """
        Add a label to the gallery's tag set.

        Returns:
            False if the label was blank or already present
        """
        try:
            new_tag_set = self.tag_set.add(label)
        except ValidationError as e:
            self._report(e)
            return False

        if new_tag_set is self.tag_set:
            return False

        label = label.strip()
        try:
            self.metadata.add_tag(self.gallery_id, label)
        except MetadataWriteError as e:
            self._report(e)
            return False

        self.tag_set = new_tag_set
        return True

    def remove_tag(self, label: str) -> bool:
        """
        Remove a label from the tag set and from every image carrying it.

        Returns:
            False if the label was not in the tag set
        """
        if label not in self.tag_set:
            return False
        if self.editor.is_open:
            self.notify(NotificationLevel.WARNING, "Close the tag editor before deleting tags.")
            return False

        try:
            self.metadata.remove_tag(self.gallery_id, label)
        except MetadataWriteError as e:
            self._report(e)
            return False

        self.tag_set = self.tag_set.remove(label)
        self.collection = remove_tag_everywhere(self.collection, label)
        self.active_filter = self.active_filter - {label}
        return True

    # Images

    def delete_image(self, image_id: ImageId) -> bool:
        """Delete an image from the gallery, its record and its stored object."""
        if self.editor.is_open:
            self.notify(NotificationLevel.WARNING, "Close the tag editor before deleting images.")
            return False

        try:
            self.collection.get(image_id)
            record = self.metadata.delete_image(str(image_id))
        except (NotFoundError, MetadataWriteError) as e:
            self._report(e)
            return False

        self.collection = self.collection.remove(image_id)
        self.editor.prune_selection(self.collection.ids)

        try:
            self.pipeline.storage.delete(record.storage_path)
        except StorageWriteError:
            logger.warning("orphaned_object_left", path=record.storage_path, image_id=str(image_id))
        return True

    # Upload dialog

    def drop_files(self, files: Iterable[FileUpload]) -> None:
        """Stage dropped files and open the upload dialog."""
        if self.is_uploading:
            logger.debug("drop_ignored_while_uploading")
            return

        self.pending_files = list(files)
        self.upload_dialog_open = bool(self.pending_files)

    def close_upload_dialog(self) -> bool:
        """
        Close the upload dialog and discard the staged files.

        Returns:
            False while an upload is in progress, when the dialog stays open
        """
        if self.is_uploading:
            return False
        self.pending_files = []
        self.upload_dialog_open = False
        return True

    def confirm_upload(self, progress_callback: FileProgressCallback | None = None) -> UploadBatchResult | None:
        """
        Upload the staged files and append the successful ones to the gallery.

        Returns:
            The batch result, or None if there was nothing to upload or the
            batch failed as a whole
        """
        if self.is_uploading or not self.pending_files:
            return None

        files = self.pending_files
        self.is_uploading = True
        try:
            batch = self.pipeline.upload_batch(self.gallery_id, files, progress_callback)
            self.collection = self.collection.extend(batch.added_images)
            self._notifications.extend(batch.notifications)
            return batch
        except Exception as e:
            logger.exception("upload_batch_failed", gallery_id=self.gallery_id, files=len(files))
            self.notify(NotificationLevel.ERROR, f"Upload failed unexpectedly: {e}")
            return None
        finally:
            self.is_uploading = False
            self.pending_files = []
            self.upload_dialog_open = False
