"""
Tag filter engine.

The visible images are a pure function of the full collection and the
active filter state; nothing here keeps state between calls.
"""

from collections import Counter
from collections.abc import Iterable

from ..models.image import Image


def filter_images(images: Iterable[Image], active_tags: Iterable[str]) -> list[Image]:
    """
    Return the images visible under the active filter, in their original order.

    With no active tags every image is visible. Otherwise an image is
    visible if it carries at least one of the active tags.
    """
    active = frozenset(active_tags)
    if not active:
        return list(images)
    return [image for image in images if image.has_any_tag(active)]


def toggle_tag(active_tags: Iterable[str], tag: str) -> frozenset[str]:
    """Add tag to the filter state if absent, remove it if present."""
    active = frozenset(active_tags)
    if tag in active:
        return active - {tag}
    return active | {tag}


def count_images_by_tag(images: Iterable[Image]) -> dict[str, int]:
    """Count how many images carry each tag."""
    counts: Counter[str] = Counter()
    for image in images:
        counts.update(image.tags)
    return dict(counts)
