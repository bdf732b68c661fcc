"""
Bulk tag editor.

Holds the set of selected images and the state of the modal tag dialog.
A commit resyncs every selected image against the checked tags: each tag of
the gallery's tag set ends up present if it was checked and absent if it
was not, whatever the image carried before. Tags outside the tag set are
left alone.

The tag set used for a commit is the one captured when the dialog opened,
so a tag created while the dialog is open is not stripped from images the
user never had the chance to check it for.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ..error_handling import ValidationError
from ..logging_config import get_logger
from ..models.image import ImageId
from .collection import ImageCollection, update_image_tags

logger = get_logger(__name__)


class EditorState(Enum):
    """Tag dialog states. The dialog is modal while open."""

    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class TagDelta:
    """Tags to add to and remove from every selected image."""

    to_add: frozenset[str]
    to_remove: frozenset[str]


def compute_tag_delta(checked: Iterable[str], tag_set: Iterable[str]) -> TagDelta:
    """Everything checked is added, every other known tag is removed."""
    checked_tags = frozenset(checked)
    return TagDelta(to_add=checked_tags, to_remove=frozenset(tag_set) - checked_tags)


def apply_tag_delta(tags: frozenset[str], delta: TagDelta) -> frozenset[str]:
    """Apply a delta to one image's tags."""
    return (tags | delta.to_add) - delta.to_remove


class BulkTagEditor:
    """Selection state and tag dialog for one gallery view."""

    def __init__(self) -> None:
        self._selection: set[ImageId] = set()
        self._state = EditorState.CLOSED
        self._checked: set[str] = set()
        self._tag_universe: frozenset[str] = frozenset()

    @property
    def selection(self) -> frozenset[ImageId]:
        return frozenset(self._selection)

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is EditorState.OPEN

    @property
    def checked(self) -> frozenset[str]:
        return frozenset(self._checked)

    @property
    def tag_universe(self) -> frozenset[str]:
        """Tags offered by the open dialog."""
        return self._tag_universe

    def select_image(self, image_id: ImageId) -> bool:
        """
        Toggle an image in the selection.

        Returns:
            True if the image is selected afterwards

        Raises:
            ValidationError: If the tag dialog is open
        """
        self._ensure_closed("select_image")
        if image_id in self._selection:
            self._selection.remove(image_id)
            return False
        self._selection.add(image_id)
        return True

    def clear_selection(self) -> None:
        self._ensure_closed("clear_selection")
        self._selection.clear()

    def prune_selection(self, existing_ids: Iterable[ImageId]) -> None:
        """Drop selected ids that no longer exist in the collection."""
        self._selection.intersection_update(existing_ids)

    def open(self, tag_set: Iterable[str]) -> None:
        """
        Open the tag dialog for the current selection.

        Raises:
            ValidationError: If nothing is selected
        """
        if self.is_open:
            logger.debug("tag_editor_already_open")
            return
        if not self._selection:
            raise ValidationError(
                "Cannot edit tags without a selection",
                code="empty_selection",
                user_message="Select at least one image before editing tags.",
            )

        self._tag_universe = frozenset(tag_set)
        self._checked = set()
        self._state = EditorState.OPEN
        logger.info("tag_editor_opened", selected=len(self._selection), tags=len(self._tag_universe))

    def toggle_checked(self, tag: str) -> bool:
        """
        Toggle a tag checkbox in the open dialog.

        Returns:
            True if the tag is checked afterwards

        Raises:
            ValidationError: If the dialog is closed or the tag is not offered
        """
        self._ensure_open("toggle_checked")
        self._ensure_known(tag)
        if tag in self._checked:
            self._checked.remove(tag)
            return False
        self._checked.add(tag)
        return True

    def set_checked(self, tags: Iterable[str]) -> None:
        """Replace the checked tags of the open dialog."""
        self._ensure_open("set_checked")
        tags = set(tags)
        for tag in tags:
            self._ensure_known(tag)
        self._checked = tags

    def cancel(self) -> None:
        """Close the dialog and discard the checked tags. The selection is kept."""
        self._state = EditorState.CLOSED
        self._checked = set()
        self._tag_universe = frozenset()
        logger.debug("tag_editor_cancelled")

    def commit(
        self,
        collection: ImageCollection,
        checked: Iterable[str] | None = None,
        live_tag_set: Iterable[str] | None = None,
    ) -> ImageCollection:
        """
        Apply the checked tags to every selected image.

        Args:
            collection: Current image collection
            checked: Checked tags; defaults to the dialog's checkbox state
            live_tag_set: The gallery's current tag set, compared with the
                tag set captured at open to warn about concurrent changes

        Returns:
            New collection in the same order; only selected images change

        Raises:
            ValidationError: If the dialog is not open or a checked tag is unknown
        """
        if not self._selection:
            logger.debug("tag_editor_commit_empty_selection")
            self.cancel()
            return collection

        self._ensure_open("commit")
        if checked is not None:
            self.set_checked(checked)

        if live_tag_set is not None:
            live = frozenset(live_tag_set)
            if live != self._tag_universe:
                logger.warning(
                    "tag_set_changed_during_edit",
                    added=sorted(live - self._tag_universe),
                    removed=sorted(self._tag_universe - live),
                )

        delta = compute_tag_delta(self._checked, self._tag_universe)
        selected = frozenset(self._selection)
        updated = update_image_tags(collection, selected, lambda tags: apply_tag_delta(tags, delta))

        logger.info(
            "tag_edit_committed",
            images=len(selected),
            tags_added=sorted(delta.to_add),
            tags_removed=sorted(delta.to_remove),
        )

        self.cancel()
        self._selection.clear()
        return updated

    def _ensure_open(self, operation: str) -> None:
        if not self.is_open:
            raise ValidationError(
                f"Tag dialog must be open for {operation}",
                code="tag_editor_closed",
                details={"operation": operation},
            )

    def _ensure_closed(self, operation: str) -> None:
        if self.is_open:
            raise ValidationError(
                f"Tag dialog is open, {operation} is not allowed",
                code="tag_editor_open",
                details={"operation": operation},
            )

    def _ensure_known(self, tag: str) -> None:
        if tag not in self._tag_universe:
            raise ValidationError(
                f"Tag {tag!r} is not in the gallery's tag set",
                code="unknown_tag",
                details={"tag": tag},
            )
