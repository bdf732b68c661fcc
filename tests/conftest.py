"""
Pytest configuration and fixtures for tagallery tests.
"""

import base64
import io
import json
import time
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from PIL import Image as PILImage

from tagallery.config import get_config
from tagallery.models.image import Image
from tagallery.services.auth import UserInfo
from tagallery.services.metadata import MetadataService


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("GCS_BUCKET", "test-tagallery-bucket")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "test-project")
    for key in ("DATABASE_PATH", "MAX_FILE_SIZE", "MIN_FILE_SIZE", "DEV_USER_ID", "DEV_USER_EMAIL", "DEV_USER_NAME"):
        monkeypatch.delenv(key, raising=False)

    get_config().clear_cache()
    yield
    get_config().clear_cache()


def make_image_bytes(image_format: str = "PNG", size: tuple[int, int] = (4, 4)) -> bytes:
    """Encode a small solid-color image with Pillow."""
    buffer = io.BytesIO()
    PILImage.new("RGB", size, color=(200, 30, 30)).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def image_bytes():
    """Factory for encoded test images."""
    return make_image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("JPEG")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path of a fresh DuckDB file."""
    return str(tmp_path / "data" / "tagallery.duckdb")


@pytest.fixture
def metadata_service(db_path: str) -> MetadataService:
    return MetadataService(db_path)


@pytest.fixture
def mock_user() -> UserInfo:
    return UserInfo(user_id="test-user-123", email="test@example.com", name="Test User")


@pytest.fixture
def mock_storage() -> MagicMock:
    """StorageService double whose uploads succeed."""
    storage = MagicMock()
    storage.build_storage_path.side_effect = lambda gallery_id, filename: f"galleries/{gallery_id}/abc/{filename}"
    storage.get_content_type.return_value = "image/png"

    def upload(path, file_data, content_type=None, progress_callback=None):
        if progress_callback:
            progress_callback(0, len(file_data))
            progress_callback(len(file_data), len(file_data))
        return {
            "path": path,
            "public_url": f"https://storage.googleapis.com/test-tagallery-bucket/{path}",
            "size": len(file_data),
            "content_type": content_type,
        }

    storage.upload.side_effect = upload
    return storage


@pytest.fixture
def sample_images() -> list[Image]:
    """A{x}, B{y}, C{x,y}."""
    return [
        Image(id="a", source_url="https://example.com/a.png", alt_text="a.png", tags=frozenset({"x"})),
        Image(id="b", source_url="https://example.com/b.png", alt_text="b.png", tags=frozenset({"y"})),
        Image(id="c", source_url="https://example.com/c.png", alt_text="c.png", tags=frozenset({"x", "y"})),
    ]


class TestDataFactory:
    """Factory class for creating test data objects."""

    @staticmethod
    def create_jwt_payload(
        user_id: str = "test-user-123",
        email: str = "test@example.com",
        name: str | None = "Test User",
    ) -> dict:
        current_time = int(time.time())
        payload = {
            "sub": user_id,
            "email": email,
            "iss": "https://cloud.google.com/iap",
            "iat": current_time,
            "exp": current_time + 3600,
        }
        if name is not None:
            payload["name"] = name
        return payload

    @staticmethod
    def create_valid_jwt_token(payload: dict | None = None) -> str:
        """Create a structurally valid JWT with a dummy signature."""
        if payload is None:
            payload = TestDataFactory.create_jwt_payload()

        header_b64 = base64.urlsafe_b64encode(json.dumps({"alg": "ES256", "typ": "JWT"}).encode()).decode().rstrip("=")
        payload_b64 = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode().rstrip("=")
        signature_b64 = base64.urlsafe_b64encode(b"test_signature").decode().rstrip("=")

        return f"{header_b64}.{payload_b64}.{signature_b64}"

    @staticmethod
    def create_iap_headers(**payload_kwargs: str) -> dict[str, str]:
        payload = TestDataFactory.create_jwt_payload(**payload_kwargs)
        return {"X-Goog-IAP-JWT-Assertion": TestDataFactory.create_valid_jwt_token(payload)}


@pytest.fixture
def test_data_factory() -> TestDataFactory:
    """Provide TestDataFactory instance for tests."""
    return TestDataFactory()


class SessionState(dict):
    """Dict with attribute access, like st.session_state."""

    def __getattr__(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise AttributeError(key) from e

    def __setattr__(self, key, value):
        self[key] = value


@pytest.fixture
def session_state() -> SessionState:
    return SessionState()
