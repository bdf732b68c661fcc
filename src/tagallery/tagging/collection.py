"""
Ordered image collection and gallery tag set.

Both types are immutable: every operation returns a new instance, so a
commit either produces a complete new collection or leaves the old one
untouched. update_image_tags is the only way an image's tags change.
"""

from collections.abc import Callable, Collection, Iterable, Iterator

from ..error_handling import NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.image import Image, ImageId

logger = get_logger(__name__)

TagTransform = Callable[[frozenset[str]], frozenset[str]]


class ImageCollection:
    """Ordered sequence of images with unique ids."""

    __slots__ = ("_images", "_index")

    def __init__(self, images: Iterable[Image] = ()):
        self._images: tuple[Image, ...] = tuple(images)
        self._index: dict[ImageId, int] = {}

        for position, image in enumerate(self._images):
            if image.id in self._index:
                raise ValidationError(
                    f"Duplicate image id {image.id!r} in collection",
                    code="duplicate_image_id",
                    details={"image_id": str(image.id)},
                )
            self._index[image.id] = position

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[Image]:
        return iter(self._images)

    def __getitem__(self, position: int) -> Image:
        return self._images[position]

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._index

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ImageCollection):
            return self._images == other._images
        return NotImplemented

    def __repr__(self) -> str:
        return f"ImageCollection({list(self._images)!r})"

    @property
    def ids(self) -> list[ImageId]:
        """Image ids in display order."""
        return [image.id for image in self._images]

    def to_list(self) -> list[Image]:
        """Return the images as a list in display order."""
        return list(self._images)

    def get(self, image_id: ImageId) -> Image:
        """
        Look up an image by id.

        Raises:
            NotFoundError: If no image has this id
        """
        if image_id not in self._index:
            raise NotFoundError(f"Image {image_id!r} not found", code="image_not_found")
        return self._images[self._index[image_id]]

    def append(self, image: Image) -> "ImageCollection":
        """Return a new collection with the image added at the end."""
        return ImageCollection((*self._images, image))

    def extend(self, images: Iterable[Image]) -> "ImageCollection":
        """Return a new collection with the images added at the end, in order."""
        return ImageCollection((*self._images, *images))

    def remove(self, image_id: ImageId) -> "ImageCollection":
        """Return a new collection without the given image."""
        self.get(image_id)
        return ImageCollection(image for image in self._images if image.id != image_id)


def update_image_tags(
    collection: ImageCollection,
    image_ids: Collection[ImageId],
    transform: TagTransform,
) -> ImageCollection:
    """
    Replace the tags of the given images with transform(old_tags).

    Images not listed are carried over unchanged and the relative order is
    preserved. Ids that are not in the collection are ignored.
    """
    targets = set(image_ids)
    unknown = targets.difference(collection.ids)
    if unknown:
        logger.warning("tag_update_unknown_images", image_ids=sorted(map(str, unknown)))

    updated = []
    for image in collection:
        if image.id in targets:
            new_tags = frozenset(transform(image.tags))
            if new_tags != image.tags:
                image = image.with_tags(new_tags)
        updated.append(image)

    return ImageCollection(updated)


class TagSet:
    """Tag labels known to a gallery, kept in creation order."""

    __slots__ = ("_tags",)

    def __init__(self, tags: Iterable[str] = ()):
        ordered: dict[str, None] = {}
        for tag in tags:
            ordered[validate_tag_label(tag)] = None
        self._tags: tuple[str, ...] = tuple(ordered)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TagSet):
            return self._tags == other._tags
        return NotImplemented

    def __repr__(self) -> str:
        return f"TagSet({list(self._tags)!r})"

    def as_frozenset(self) -> frozenset[str]:
        return frozenset(self._tags)

    def to_list(self) -> list[str]:
        return list(self._tags)

    def add(self, label: str) -> "TagSet":
        """
        Return a tag set including label. Adding an existing label is a no-op.

        Raises:
            ValidationError: If the label is blank
        """
        label = validate_tag_label(label)
        if label in self._tags:
            return self
        return TagSet((*self._tags, label))

    def remove(self, label: str) -> "TagSet":
        """Return a tag set without label. Removing an unknown label is a no-op."""
        if label not in self._tags:
            return self
        return TagSet(tag for tag in self._tags if tag != label)


def validate_tag_label(label: str) -> str:
    """
    Strip a tag label and reject blank ones.

    Raises:
        ValidationError: If the label is not a string or is blank
    """
    if not isinstance(label, str) or not label.strip():
        raise ValidationError(
            "Tag labels must be non-empty strings",
            code="empty_tag",
            user_message="Please enter a tag name.",
        )
    return label.strip()


def remove_tag_everywhere(collection: ImageCollection, tag: str) -> ImageCollection:
    """Remove a tag from every image that carries it."""
    carrying = [image.id for image in collection if tag in image.tags]
    if not carrying:
        return collection
    return update_image_tags(collection, carrying, lambda tags: tags - {tag})
