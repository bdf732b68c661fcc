"""Reusable UI components for tagallery application."""

from collections.abc import Iterable
from typing import Any

import streamlit as st
from streamlit.runtime.scriptrunner_utils.exceptions import RerunException, StopException

from ... import __version__
from ...error_handling import Notification, NotificationLevel, handle_error
from ...logging_config import get_logger

logger = get_logger(__name__)

NOTIFICATION_ICONS = {
    NotificationLevel.INFO: "ℹ️",
    NotificationLevel.SUCCESS: "✅",
    NotificationLevel.WARNING: "⚠️",
    NotificationLevel.ERROR: "❌",
}


def render_empty_state(title: str, description: str, icon: str = "📭") -> None:
    """Render a centered empty state message."""
    _, col, _ = st.columns([1, 2, 1])
    with col:
        st.markdown(
            f"""
        <div style='text-align: center; padding: 2rem 0;'>
            <div style='font-size: 4rem; margin-bottom: 1rem;'>{icon}</div>
            <h3 style='color: #666; margin-bottom: 1rem;'>{title}</h3>
            <p style='color: #888;'>{description}</p>
        </div>
        """,
            unsafe_allow_html=True,
        )


def render_notifications(notifications: Iterable[Notification]) -> None:
    """Show notifications as toasts; errors also stay on the page."""
    for notification in notifications:
        st.toast(notification.message, icon=NOTIFICATION_ICONS[notification.level])
        if notification.level is NotificationLevel.ERROR:
            st.error(notification.message)


def render_header() -> None:
    """Render the application header."""
    st.markdown("# 🏷️ tagallery")
    st.divider()


def render_sidebar() -> None:
    """Render navigation and the signed-in user."""
    with st.sidebar:
        st.markdown("### 🏷️ tagallery")
        st.divider()

        if st.button("🏠 Galleries", key="nav_home", use_container_width=True):
            logger.info("page_navigation", from_page=st.session_state.current_page, to_page="home")
            st.session_state.current_page = "home"
            st.session_state.current_gallery_id = None
            st.rerun()

        st.divider()

        if st.session_state.get("authenticated"):
            st.markdown(f"📧 {st.session_state.user_email}")
        else:
            st.subheader("🔐 Sign-in")
            st.info("Sign in to see your galleries")


def render_footer() -> None:
    st.divider()
    st.caption(f"tagallery v{__version__}")


class StreamlitErrorContext:
    """Shows errors raised inside a block instead of crashing the page."""

    def __init__(self, error_message: str, context: dict[str, Any] | None = None):
        self.error_message = error_message
        self.context = context or {}

    def __enter__(self) -> "StreamlitErrorContext":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        if exc_val is None:
            return False
        # Streamlit's own control flow
        if isinstance(exc_val, RerunException | StopException):
            return False
        if not isinstance(exc_val, Exception):
            return False

        error_info = handle_error(exc_val, self.context)
        logger.error("page_error", message=self.error_message, error_code=error_info.code)
        st.error(f"{self.error_message}: {error_info.user_message}")
        return True


def error_context(error_message: str = "Something went wrong", **context: Any) -> StreamlitErrorContext:
    """Create an error context manager for Streamlit code blocks."""
    return StreamlitErrorContext(error_message, context)
