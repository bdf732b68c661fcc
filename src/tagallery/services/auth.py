"""Authentication service for tagallery application."""

import base64
import html
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..config import get_env, is_development
from ..error_handling import AuthenticationError
from ..logging_config import get_logger, log_error, log_security_event, log_user_action

logger = get_logger(__name__)


@dataclass
class UserInfo:
    """Represents authenticated user information from Cloud IAP."""

    user_id: str
    email: str
    name: str | None = None
    picture: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email


class CloudIAPAuthService:
    """
    Resolves the current user from the Cloud IAP JWT assertion header.

    In development environments the IAP header is ignored and a fixed user
    built from the DEV_USER_* settings is returned instead.
    """

    IAP_HEADER_NAME = "X-Goog-IAP-JWT-Assertion"

    DEFAULT_DEV_USER_ID = "dev-user-123"
    DEFAULT_DEV_EMAIL = "dev@example.com"
    DEFAULT_DEV_NAME = "Development User"

    def __init__(self, development_mode: bool | None = None) -> None:
        self._current_user: UserInfo | None = None
        self._development_mode = is_development() if development_mode is None else development_mode

        if self._development_mode:
            logger.info("development_auth_mode_enabled")

    @property
    def development_mode(self) -> bool:
        return self._development_mode

    def _get_development_user(self) -> UserInfo:
        """Get development user for local testing."""
        dev_email = get_env("DEV_USER_EMAIL", self.DEFAULT_DEV_EMAIL)
        dev_name = get_env("DEV_USER_NAME", self.DEFAULT_DEV_NAME)
        dev_user_id = get_env("DEV_USER_ID", self.DEFAULT_DEV_USER_ID)

        if not dev_email or "@" not in dev_email:
            logger.warning("invalid_dev_user_email", email=dev_email)
            dev_email = self.DEFAULT_DEV_EMAIL

        if not dev_name or not dev_name.strip():
            dev_name = self.DEFAULT_DEV_NAME

        if not dev_user_id or not dev_user_id.strip():
            logger.warning("invalid_dev_user_id", user_id=dev_user_id)
            dev_user_id = self.DEFAULT_DEV_USER_ID

        return UserInfo(user_id=dev_user_id, email=dev_email, name=dev_name)

    def parse_iap_header(self, headers: Mapping[str, str]) -> UserInfo | None:
        """Parse the Cloud IAP JWT header to extract user information."""
        if self._development_mode:
            return self._get_development_user()

        jwt_token = headers.get(self.IAP_HEADER_NAME)
        if not jwt_token:
            # Streamlit lower-cases header names
            jwt_token = headers.get(self.IAP_HEADER_NAME.lower())

        if not jwt_token:
            log_security_event("missing_iap_header", headers_present=list(headers.keys()))
            return None

        try:
            return self._decode_jwt_payload(jwt_token)
        except ValueError as e:
            log_error(e, {"operation": "parse_iap_header"})
            log_security_event("authentication_failure", error=str(e))
            return None

    def _decode_jwt_payload(self, jwt_token: str) -> UserInfo:
        """
        Decode the JWT payload.

        The signature is verified by the IAP proxy in front of the app.
        """
        try:
            parts = jwt_token.split(".")
            if len(parts) != 3:
                raise ValueError("Invalid JWT token format")

            payload_b64 = parts[1]
            padding = 4 - len(payload_b64) % 4
            if padding != 4:
                payload_b64 += "=" * padding

            payload = json.loads(base64.urlsafe_b64decode(payload_b64).decode("utf-8"))
        except (ValueError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to decode JWT payload: {e}") from e

        if not isinstance(payload, dict):
            raise ValueError("JWT payload is not an object")
        return self._extract_user_info(payload)

    @staticmethod
    def _sanitize(value: Any) -> str | None:
        if not value:
            return None
        sanitized = re.sub(r"(?i)<script[^>]*>.*?</script>|javascript:", "", str(value))
        return html.escape(sanitized).strip() or None

    def _extract_user_info(self, payload: dict[str, Any]) -> UserInfo:
        """Extract user information from JWT payload."""
        email = self._sanitize(payload.get("email"))
        sub = self._sanitize(payload.get("sub"))

        if not email:
            raise ValueError("Email not found in JWT payload")
        if not sub:
            raise ValueError("Subject (user ID) not found in JWT payload")

        # IAP prefixes identities with the identity source
        email = email.removeprefix("accounts.google.com:")

        return UserInfo(
            user_id=sub,
            email=email,
            name=self._sanitize(payload.get("name")),
            picture=self._sanitize(payload.get("picture")),
        )

    def authenticate_request(self, headers: Mapping[str, str]) -> UserInfo | None:
        """
        Authenticate a request using IAP headers.

        Returns:
            UserInfo if authentication succeeded, None otherwise
        """
        user_info = self.parse_iap_header(headers)
        self._current_user = user_info

        if user_info:
            log_user_action(
                user_info.user_id,
                "authentication_success",
                mode="development" if self._development_mode else "iap",
            )
        else:
            log_security_event("request_authentication_failed")
        return user_info

    def current_user(self) -> UserInfo | None:
        """Get the currently authenticated user, or None."""
        return self._current_user

    def is_authenticated(self) -> bool:
        return self._current_user is not None

    def set_current_user(self, user_info: UserInfo | None) -> None:
        """Set the current user (for testing/development purposes)."""
        self._current_user = user_info

    def clear_authentication(self) -> None:
        """Clear the current authentication state."""
        user_id = self._current_user.user_id if self._current_user else "unknown"
        self._current_user = None
        log_user_action(user_id, "authentication_cleared")

    def ensure_authenticated(self) -> UserInfo:
        """
        Ensure a user is authenticated.

        Raises:
            AuthenticationError: If no user is authenticated
        """
        if self._current_user is None:
            raise AuthenticationError(
                "User is not authenticated",
                code="user_not_authenticated",
                details={"operation": "ensure_authenticated"},
            )
        return self._current_user
