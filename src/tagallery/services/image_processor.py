"""Image validation for uploaded files."""

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..config import get_file_size_limits
from ..error_handling import ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


class ImageProcessor:
    """Checks uploaded files before anything is sent to storage."""

    SUPPORTED_FORMATS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

    # Pillow format names accepted for the extensions above
    SUPPORTED_PIL_FORMATS = {"JPEG", "PNG", "GIF", "WEBP"}

    def __init__(self, min_file_size: int | None = None, max_file_size: int | None = None) -> None:
        default_min, default_max = get_file_size_limits()
        self.MIN_FILE_SIZE = default_min if min_file_size is None else min_file_size
        self.MAX_FILE_SIZE = default_max if max_file_size is None else max_file_size

    def is_supported_format(self, filename: str) -> bool:
        """Check whether the file extension is one we accept."""
        return Path(filename).suffix.lower() in self.SUPPORTED_FORMATS

    def validate_file_size(self, image_data: bytes, filename: str) -> None:
        """
        Validate that the file size is within acceptable limits.

        Raises:
            ValidationError: If file size is outside acceptable limits
        """
        file_size = len(image_data)

        if file_size < self.MIN_FILE_SIZE:
            logger.warning("file_size_too_small", filename=filename, file_size=file_size, min_size=self.MIN_FILE_SIZE)
            raise ValidationError(
                f"File '{filename}' is too small ({file_size} bytes). Minimum size: {self.MIN_FILE_SIZE} bytes",
                code="file_too_small",
                user_message=f"'{filename}' is too small to be an image.",
                details={"filename": filename, "file_size": file_size, "min_size": self.MIN_FILE_SIZE},
            )

        if file_size > self.MAX_FILE_SIZE:
            max_size_mb = self.MAX_FILE_SIZE / (1024 * 1024)
            current_size_mb = file_size / (1024 * 1024)
            logger.warning(
                "file_size_too_large",
                filename=filename,
                file_size=file_size,
                max_size=self.MAX_FILE_SIZE,
            )
            raise ValidationError(
                f"File '{filename}' is too large ({current_size_mb:.1f}MB). Maximum size: {max_size_mb:.0f}MB",
                code="file_too_large",
                user_message=f"'{filename}' is larger than {max_size_mb:.0f}MB.",
                details={"filename": filename, "file_size": file_size, "max_size": self.MAX_FILE_SIZE},
            )

    def validate_image(self, image_data: bytes, filename: str) -> None:
        """
        Validate size, extension and content of an uploaded image.

        Raises:
            ValidationError: If the file is rejected
        """
        self.validate_file_size(image_data, filename)

        if not self.is_supported_format(filename):
            supported = ", ".join(sorted(self.SUPPORTED_FORMATS))
            raise ValidationError(
                f"Unsupported format for file '{filename}'. Supported formats: {supported}",
                code="unsupported_format",
                user_message=f"'{filename}' is not a supported image type ({supported}).",
                details={"filename": filename, "extension": Path(filename).suffix.lower()},
            )

        try:
            with Image.open(io.BytesIO(image_data)) as image:
                detected_format = image.format
                image.verify()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise ValidationError(
                f"Invalid or corrupted image file '{filename}': {e}",
                code="image_unreadable",
                user_message=f"'{filename}' is not a readable image.",
                details={"filename": filename, "file_size": len(image_data)},
                original_exception=e,
            ) from e

        if detected_format not in self.SUPPORTED_PIL_FORMATS:
            raise ValidationError(
                f"Detected format '{detected_format}' is not supported for '{filename}'",
                code="invalid_detected_format",
                user_message=f"'{filename}' is not a supported image type.",
                details={"filename": filename, "detected_format": detected_format},
            )

        logger.debug("image_validation_success", filename=filename, format=detected_format, size=len(image_data))
