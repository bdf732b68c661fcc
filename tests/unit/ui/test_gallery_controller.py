"""
Unit tests for the gallery page controller.
"""

from unittest.mock import MagicMock

import pytest
from PIL import Image as PILImage

from tagallery.error_handling import MetadataWriteError, NotificationLevel
from tagallery.models.image import ImageRecord
from tagallery.services.image_processor import ImageProcessor
from tagallery.services.upload import FileUpload, UploadPipeline
from tagallery.ui.handlers.gallery import GalleryController

GALLERY_ID = "gallery-1"


def insert_image(metadata_service, name, tags=()):
    record = ImageRecord.create_new(
        GALLERY_ID,
        f"galleries/{GALLERY_ID}/abc/{name}",
        f"https://example.com/{name}",
        alt_text=name,
        tags=tags,
    )
    metadata_service.insert(record)
    return record


@pytest.fixture
def pipeline(mock_storage, metadata_service):
    return UploadPipeline(mock_storage, metadata_service, ImageProcessor())


@pytest.fixture
def records(metadata_service):
    """A{x}, B{y}, C{x,y} stored with the tag set x, y, z."""
    for tag in ("x", "y", "z"):
        metadata_service.add_tag(GALLERY_ID, tag)
    return [
        insert_image(metadata_service, "a.png", ["x"]),
        insert_image(metadata_service, "b.png", ["y"]),
        insert_image(metadata_service, "c.png", ["x", "y"]),
    ]


@pytest.fixture
def controller(records, metadata_service, pipeline):
    return GalleryController.load(GALLERY_ID, metadata_service, pipeline)


def levels(notifications):
    return [notification.level for notification in notifications]


class TestLoad:
    """Test cases for loading a gallery."""

    def test_load(self, controller, records):
        assert controller.collection.ids == [record.id for record in records]
        assert controller.tag_set.to_list() == ["x", "y", "z"]
        assert controller.active_filter == frozenset()
        assert not controller.editor.is_open

    def test_load_empty_gallery(self, metadata_service, pipeline):
        controller = GalleryController.load("empty", metadata_service, pipeline)

        assert len(controller.collection) == 0
        assert controller.visible_images() == []


class TestFiltering:
    """Test cases for the tag filter."""

    def test_visible_images(self, controller, records):
        a, b, c = (record.id for record in records)

        assert [image.id for image in controller.visible_images()] == [a, b, c]
        controller.toggle_tag("x")
        assert [image.id for image in controller.visible_images()] == [a, c]
        controller.toggle_tag("y")
        assert [image.id for image in controller.visible_images()] == [a, b, c]
        controller.toggle_tag("x")
        controller.toggle_tag("y")
        controller.toggle_tag("z")
        assert controller.visible_images() == []

    def test_clear_filter(self, controller):
        controller.toggle_tag("x")
        controller.clear_filter()
        assert len(controller.visible_images()) == 3


class TestBulkEdit:
    """Test cases for selection and the tag editor."""

    def test_commit_persists_and_clears_selection(self, controller, records, metadata_service):
        a = records[0].id
        controller.select_image(a)
        assert controller.open_tag_editor() is True

        assert controller.commit_tag_edit({"y"}) is True

        assert controller.collection.get(a).tags == frozenset({"y"})
        assert controller.editor.selection == frozenset()
        assert metadata_service.get_image(a).tags == ["y"]
        assert NotificationLevel.SUCCESS in levels(controller.drain_notifications())

    def test_commit_keeps_order(self, controller, records):
        controller.select_image(records[1].id)
        controller.open_tag_editor()
        controller.commit_tag_edit({"z"})

        assert controller.collection.ids == [record.id for record in records]

    def test_open_without_selection_warns(self, controller):
        assert controller.open_tag_editor() is False
        assert levels(controller.drain_notifications()) == [NotificationLevel.WARNING]

    def test_select_unknown_image_reports_error(self, controller):
        assert controller.select_image("missing") is False
        assert levels(controller.drain_notifications()) == [NotificationLevel.ERROR]

    def test_select_blocked_while_editor_open(self, controller, records):
        controller.select_image(records[0].id)
        controller.open_tag_editor()

        assert controller.select_image(records[1].id) is False
        assert controller.editor.selection == frozenset({records[0].id})

    def test_cancel_keeps_collection(self, controller, records):
        before = controller.collection
        controller.select_image(records[0].id)
        controller.open_tag_editor()

        controller.cancel_tag_edit()

        assert controller.collection is before
        assert controller.editor.selection == frozenset({records[0].id})

    def test_failed_persist_keeps_collection(self, controller, records):
        before = controller.collection
        controller.metadata = MagicMock(wraps=controller.metadata)
        controller.metadata.update_image_tags.side_effect = MetadataWriteError("db down")
        controller.select_image(records[0].id)
        controller.open_tag_editor()

        assert controller.commit_tag_edit({"y"}) is False

        assert controller.collection is before
        assert controller.editor.selection == frozenset()
        assert levels(controller.drain_notifications()) == [NotificationLevel.ERROR]


class TestTagSetMaintenance:
    """Test cases for adding and removing tags."""

    def test_add_tag(self, controller, metadata_service):
        assert controller.add_tag(" sunset ") is True

        assert controller.tag_set.to_list() == ["x", "y", "z", "sunset"]
        assert metadata_service.get_tags(GALLERY_ID)[-1] == "sunset"

    def test_add_duplicate_or_blank_tag(self, controller):
        assert controller.add_tag("x") is False
        assert controller.add_tag("  ") is False
        assert levels(controller.drain_notifications()) == [NotificationLevel.WARNING]

    def test_remove_tag_cascades(self, controller, records, metadata_service):
        controller.toggle_tag("x")

        assert controller.remove_tag("x") is True

        assert "x" not in controller.tag_set
        assert all("x" not in image.tags for image in controller.collection)
        assert controller.active_filter == frozenset()
        assert all("x" not in record.tags for record in metadata_service.query(GALLERY_ID))

    def test_remove_unknown_tag(self, controller):
        assert controller.remove_tag("nope") is False

    def test_remove_blocked_while_editor_open(self, controller, records):
        controller.select_image(records[0].id)
        controller.open_tag_editor()

        assert controller.remove_tag("x") is False
        assert "x" in controller.tag_set


class TestDeleteImage:
    """Test cases for deleting an image."""

    def test_delete_image(self, controller, records, metadata_service, mock_storage):
        a = records[0].id
        controller.select_image(a)

        assert controller.delete_image(a) is True

        assert a not in controller.collection
        assert controller.editor.selection == frozenset()
        assert metadata_service.get_image(a) is None
        mock_storage.delete.assert_called_once_with(records[0].storage_path)

    def test_delete_unknown_image(self, controller):
        assert controller.delete_image("missing") is False
        assert levels(controller.drain_notifications()) == [NotificationLevel.ERROR]


class TestUploadDialog:
    """Test cases for dropping and uploading files."""

    def test_drop_opens_dialog(self, controller, png_bytes):
        controller.drop_files([FileUpload("new.png", png_bytes)])

        assert controller.upload_dialog_open
        assert [file.filename for file in controller.pending_files] == ["new.png"]

    def test_drop_nothing(self, controller):
        controller.drop_files([])
        assert not controller.upload_dialog_open

    def test_confirm_upload_appends_images(self, controller, png_bytes, metadata_service, records):
        controller.drop_files([FileUpload("d.png", png_bytes), FileUpload("e.png", png_bytes)])

        batch = controller.confirm_upload()

        assert batch.success_count == 2
        assert [image.alt_text for image in controller.collection][-2:] == ["d.png", "e.png"]
        assert len(metadata_service.query(GALLERY_ID)) == len(records) + 2
        assert not controller.is_uploading
        assert not controller.upload_dialog_open
        assert controller.pending_files == []

    def test_partial_failure(self, controller, png_bytes):
        controller.drop_files([FileUpload("ok.png", png_bytes), FileUpload("bad.txt", b"text")])

        controller.confirm_upload()

        assert controller.collection[-1].alt_text == "ok.png"
        notifications = controller.drain_notifications()
        assert [n.filename for n in notifications if n.level is NotificationLevel.ERROR] == ["bad.txt"]


    def test_rejected_image_mid_batch(self, controller, image_bytes, metadata_service, records, monkeypatch):
        monkeypatch.setattr(PILImage, "MAX_IMAGE_PIXELS", 50)
        controller.drop_files(
            [
                FileUpload("1.png", image_bytes("PNG", (4, 4))),
                FileUpload("2.png", image_bytes("PNG", (20, 20))),
                FileUpload("3.png", image_bytes("PNG", (4, 4))),
            ]
        )

        batch = controller.confirm_upload()

        assert batch is not None
        assert [image.alt_text for image in controller.collection][len(records) :] == ["1.png", "3.png"]
        assert len(metadata_service.query(GALLERY_ID)) == len(records) + 2
        notifications = controller.drain_notifications()
        assert [n.filename for n in notifications if n.level is NotificationLevel.ERROR] == ["2.png"]
    def test_unexpected_error_restores_state(self, controller, png_bytes):
        before = controller.collection
        controller.pipeline = MagicMock()
        controller.pipeline.upload_batch.side_effect = RuntimeError("boom")
        controller.drop_files([FileUpload("d.png", png_bytes)])

        assert controller.confirm_upload() is None

        assert controller.collection is before
        assert not controller.is_uploading
        assert not controller.upload_dialog_open
        assert levels(controller.drain_notifications()) == [NotificationLevel.ERROR]

    def test_close_is_noop_while_uploading(self, controller, png_bytes):
        controller.drop_files([FileUpload("d.png", png_bytes)])
        controller.is_uploading = True

        assert controller.close_upload_dialog() is False
        assert controller.upload_dialog_open

        controller.is_uploading = False
        assert controller.close_upload_dialog() is True
        assert controller.pending_files == []

    def test_confirm_without_files(self, controller):
        assert controller.confirm_upload() is None

    def test_drain_notifications_empties_queue(self, controller):
        controller.open_tag_editor()

        assert len(controller.drain_notifications()) == 1
        assert controller.drain_notifications() == []
