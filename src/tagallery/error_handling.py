"""
Centralized error handling and classification for tagallery application.

Every error raised by the application derives from TagalleryError, which
carries a category, a severity and a message suitable for showing to the
user. Errors log themselves on construction so that call sites only need to
raise.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import get_logger, log_error, log_security_event

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    STORAGE = "storage"
    METADATA = "metadata"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    details: dict[str, Any]
    timestamp: datetime
    recoverable: bool = True
    retry_suggested: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "retry_suggested": self.retry_suggested,
        }


USER_MESSAGES = {
    ErrorCategory.AUTHENTICATION: "Authentication failed. Please sign in again.",
    ErrorCategory.AUTHORIZATION: "You are not allowed to perform this operation.",
    ErrorCategory.VALIDATION: "The input was rejected. Please check it and try again.",
    ErrorCategory.STORAGE: "The file could not be stored.",
    ErrorCategory.METADATA: "The image record could not be saved.",
    ErrorCategory.NOT_FOUND: "The requested item does not exist.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred.",
}


class TagalleryError(Exception):
    """Base exception class for tagallery application."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
        retry_suggested: bool = False,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or USER_MESSAGES.get(category, "An error occurred.")
        self.details = details or {}
        self.recoverable = recoverable
        self.retry_suggested = retry_suggested
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with appropriate level."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "recoverable": self.recoverable,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context)

        if self.category in [ErrorCategory.AUTHENTICATION, ErrorCategory.AUTHORIZATION]:
            log_security_event(self.category.value, context=error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            details=self.details,
            timestamp=self.timestamp,
            recoverable=self.recoverable,
            retry_suggested=self.retry_suggested,
        )


class AuthenticationError(TagalleryError):
    """Authentication-related errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.HIGH,
            code=code or "auth_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class AuthorizationError(TagalleryError):
    """Raised when an operation needs a signed-in user and there is none."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            code=code or "access_denied",
            user_message=user_message,
            details=details,
            recoverable=False,
            retry_suggested=False,
            original_exception=original_exception,
        )


class ValidationError(TagalleryError):
    """Input rejected before any network call was attempted."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=False,
            original_exception=original_exception,
        )


class StorageWriteError(TagalleryError):
    """Storage-related errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or "storage_write_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class MetadataWriteError(TagalleryError):
    """Metadata database errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.METADATA,
            severity=ErrorSeverity.HIGH,
            code=code or "metadata_write_failed",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=True,
            original_exception=original_exception,
        )


class NotFoundError(TagalleryError):
    """Unknown gallery or image id."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            code=code or "not_found",
            user_message=user_message,
            details=details,
            recoverable=True,
            retry_suggested=False,
        )


class ErrorHandler:
    """Classifies foreign exceptions and keeps occurrence counts."""

    KEYWORDS: list[tuple[type[TagalleryError], tuple[str, ...]]] = [
        (AuthenticationError, ("authentication", "login", "jwt", "token", "unauthorized")),
        (AuthorizationError, ("permission", "access denied", "forbidden", "not allowed")),
        (StorageWriteError, ("storage", "gcs", "bucket", "blob")),
        (MetadataWriteError, ("database", "duckdb", "sql", "constraint")),
        (NotFoundError, ("not found", "no such")),
        (ValidationError, ("validation", "invalid", "required", "unsupported")),
    ]

    def __init__(self) -> None:
        self.error_counts: dict[str, int] = {}
        self.logger = get_logger(__name__)

    def handle_error(self, error: Exception, context: dict[str, Any] | None = None) -> ErrorInfo:
        """
        Handle and classify errors.

        Args:
            error: Exception to handle
            context: Additional context information

        Returns:
            ErrorInfo: Structured error information
        """
        context = context or {}

        if isinstance(error, TagalleryError):
            error_info = error.get_error_info()
        else:
            error_info = self._classify_error(error, context).get_error_info()

        self._track_error(error_info.code)
        return error_info

    def _classify_error(self, error: Exception, context: dict[str, Any]) -> TagalleryError:
        """Wrap an exception into the matching TagalleryError subclass."""
        error_message = str(error)
        lowered = error_message.lower()
        details = {"original_type": type(error).__name__, **context}

        for error_class, keywords in self.KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                if error_class is NotFoundError:
                    return NotFoundError(error_message, details=details)
                return error_class(error_message, details=details, original_exception=error)

        return TagalleryError(
            message=error_message,
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.MEDIUM,
            details=details,
            original_exception=error,
        )

    def _track_error(self, error_code: str) -> None:
        """Track error occurrence for monitoring."""
        self.error_counts[error_code] = self.error_counts.get(error_code, 0) + 1

        if self.error_counts[error_code] % 10 == 0:
            self.logger.warning("frequent_error_detected", error_code=error_code, count=self.error_counts[error_code])

    def get_error_statistics(self) -> dict[str, int]:
        """Get error occurrence statistics."""
        return self.error_counts.copy()

    def reset_statistics(self) -> None:
        """Reset error statistics."""
        self.error_counts.clear()


error_handler = ErrorHandler()


def handle_error(error: Exception, context: dict[str, Any] | None = None) -> ErrorInfo:
    """Classify an error with the shared handler."""
    return error_handler.handle_error(error, context)


def get_error_handler() -> ErrorHandler:
    """Get the shared error handler instance."""
    return error_handler


class NotificationLevel(Enum):
    """How prominently a notification is shown."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A user-visible message, optionally about one uploaded file."""

    level: NotificationLevel
    message: str
    filename: str | None = None

    @classmethod
    def from_error(cls, error: Exception, filename: str | None = None) -> "Notification":
        """Build an error notification from any exception."""
        error_info = handle_error(error, {"filename": filename} if filename else None)
        message = error_info.user_message
        if filename and filename not in message:
            message = f"{filename}: {message}"
        return cls(level=NotificationLevel.ERROR, message=message, filename=filename)
