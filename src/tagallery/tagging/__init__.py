"""
Tagging module for tagallery application.

- filter: tag filter engine (visible subset, toggle)
- editor: bulk tag editor (selection, dialog state, resync commit)
- collection: ordered image collection, tag set and the tag update helper
"""

from .collection import ImageCollection, TagSet, remove_tag_everywhere, update_image_tags, validate_tag_label
from .editor import BulkTagEditor, EditorState, TagDelta, apply_tag_delta, compute_tag_delta
from .filter import count_images_by_tag, filter_images, toggle_tag

__all__ = [
    "ImageCollection",
    "TagSet",
    "remove_tag_everywhere",
    "update_image_tags",
    "validate_tag_label",
    "BulkTagEditor",
    "EditorState",
    "TagDelta",
    "apply_tag_delta",
    "compute_tag_delta",
    "count_images_by_tag",
    "filter_images",
    "toggle_tag",
]
