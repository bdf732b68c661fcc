"""Authentication handlers for tagallery application."""

import streamlit as st

from ...logging_config import get_logger
from ...services.auth import CloudIAPAuthService, UserInfo

logger = get_logger(__name__)


def get_session_auth_service() -> CloudIAPAuthService:
    """Get the auth service of the current browser session, creating it on first use."""
    if "auth_service" not in st.session_state:
        st.session_state.auth_service = CloudIAPAuthService()
    return st.session_state.auth_service


def authenticate_user(auth_service: CloudIAPAuthService) -> UserInfo | None:
    """
    Authenticate the session from the Cloud IAP request headers.

    In development mode the configured development user is always returned.
    """
    headers: dict[str, str] = {}
    if hasattr(st, "context") and hasattr(st.context, "headers"):
        headers = dict(st.context.headers)

    user_info = auth_service.authenticate_request(headers)

    st.session_state.authenticated = user_info is not None
    st.session_state.user_id = user_info.user_id if user_info else None
    st.session_state.user_email = user_info.email if user_info else None
    st.session_state.auth_error = None if user_info else "Cloud IAP authentication required"

    if user_info is None:
        logger.warning("authentication_failed", reason="no_valid_iap_header")
    return user_info


def handle_logout(auth_service: CloudIAPAuthService) -> None:
    """Forget the signed-in user and return to the home page."""
    auth_service.clear_authentication()

    st.session_state.authenticated = False
    st.session_state.user_id = None
    st.session_state.user_email = None
    st.session_state.current_page = "home"
    st.session_state.current_gallery_id = None

    logger.info("user_logout")
    st.rerun()


def require_authentication() -> bool:
    """
    Show an error instead of the page when nobody is signed in.

    Returns:
        True if authenticated
    """
    if st.session_state.get("authenticated"):
        return True

    st.error("🔒 Sign-in required")
    if st.session_state.get("auth_error"):
        st.caption(st.session_state.auth_error)
    return False
