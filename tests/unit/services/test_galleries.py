"""
Unit tests for gallery management.
"""

from unittest.mock import MagicMock

import pytest

from tagallery.error_handling import AuthorizationError, NotFoundError, StorageWriteError, ValidationError
from tagallery.models.image import ImageRecord
from tagallery.services.galleries import GalleryService


@pytest.fixture
def auth(mock_user):
    auth = MagicMock()
    auth.current_user.return_value = mock_user
    return auth


@pytest.fixture
def gallery_service(metadata_service, auth):
    return GalleryService(metadata_service, auth, storage=MagicMock())


class TestAuthorization:
    """Every operation needs a signed-in user."""

    @pytest.mark.parametrize(
        ("operation", "args"),
        [
            ("list_galleries", ()),
            ("get_gallery", ("g1",)),
            ("create_gallery", ("Trip", "Summer")),
            ("update_gallery", ("g1", "Trip", "Summer")),
            ("delete_gallery", ("g1",)),
        ],
    )
    def test_requires_user(self, metadata_service, operation, args):
        auth = MagicMock()
        auth.current_user.return_value = None
        service = GalleryService(metadata_service, auth)

        with pytest.raises(AuthorizationError) as exc_info:
            getattr(service, operation)(*args)

        assert str(exc_info.value) == "Not authenticated"
        assert exc_info.value.recoverable is False


class TestGalleryCrud:
    """Test cases for create, update, delete and list."""

    def test_create_and_list(self, gallery_service, mock_user):
        gallery = gallery_service.create_gallery(" Trip ", "Summer")

        assert gallery.user_id == mock_user.user_id
        assert gallery.name == "Trip"
        assert [g.id for g in gallery_service.list_galleries()] == [gallery.id]

    def test_create_requires_name_and_description(self, gallery_service):
        with pytest.raises(ValidationError):
            gallery_service.create_gallery("Trip", "")
        assert gallery_service.list_galleries() == []

    def test_list_only_own_galleries(self, gallery_service, metadata_service):
        other = GalleryService(metadata_service, MagicMock(**{"current_user.return_value": MagicMock(user_id="other")}))
        other.create_gallery("Foreign", "Not mine")

        assert gallery_service.list_galleries() == []

    def test_update(self, gallery_service):
        gallery = gallery_service.create_gallery("Trip", "Summer")

        updated = gallery_service.update_gallery(gallery.id, "Trip 2", " Winter ")

        assert (updated.name, updated.description) == ("Trip 2", "Winter")

    def test_update_missing_gallery(self, gallery_service):
        with pytest.raises(NotFoundError):
            gallery_service.update_gallery("missing", "Trip", "Summer")

    def test_update_validates_before_lookup(self, gallery_service):
        with pytest.raises(ValidationError):
            gallery_service.update_gallery("missing", "", "Summer")

    def test_foreign_gallery_not_found(self, gallery_service, metadata_service):
        other = GalleryService(metadata_service, MagicMock(**{"current_user.return_value": MagicMock(user_id="other")}))
        foreign = other.create_gallery("Foreign", "Not mine")

        with pytest.raises(NotFoundError):
            gallery_service.get_gallery(foreign.id)
        with pytest.raises(NotFoundError):
            gallery_service.delete_gallery(foreign.id)

    def test_delete_removes_stored_objects(self, gallery_service, metadata_service):
        gallery = gallery_service.create_gallery("Trip", "Summer")
        record = ImageRecord.create_new(gallery.id, "galleries/g/abc/a.png", "https://example.com/a.png")
        metadata_service.insert(record)

        assert gallery_service.delete_gallery(gallery.id) == 1

        gallery_service.storage.delete.assert_called_once_with("galleries/g/abc/a.png")
        assert gallery_service.list_galleries() == []

    def test_delete_survives_storage_failure(self, gallery_service, metadata_service):
        gallery = gallery_service.create_gallery("Trip", "Summer")
        metadata_service.insert(ImageRecord.create_new(gallery.id, "galleries/g/abc/a.png", "https://example.com/a.png"))
        gallery_service.storage.delete.side_effect = StorageWriteError("boom")

        assert gallery_service.delete_gallery(gallery.id) == 1
        assert gallery_service.list_galleries() == []
