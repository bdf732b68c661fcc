"""
Main Streamlit application for tagallery.

Run with ``streamlit run src/tagallery/main.py`` or the ``tagallery``
console script.
"""

import sys
from pathlib import Path

import streamlit as st

from tagallery.config import get_config
from tagallery.logging_config import configure_structured_logging, get_logger
from tagallery.services.galleries import GalleryService
from tagallery.services.image_processor import ImageProcessor
from tagallery.services.metadata import MetadataService
from tagallery.services.storage import StorageService
from tagallery.services.upload import UploadPipeline
from tagallery.ui.components.common import error_context, render_footer, render_header, render_sidebar
from tagallery.ui.handlers.auth import authenticate_user, get_session_auth_service
from tagallery.ui.pages.gallery import release_gallery_controller, render_gallery_page
from tagallery.ui.pages.home import render_home_page

configure_structured_logging()
logger = get_logger(__name__)


@st.cache_resource
def get_storage_service() -> StorageService:
    return StorageService()


@st.cache_resource
def get_metadata_service() -> MetadataService:
    return MetadataService()


@st.cache_resource
def get_upload_pipeline() -> UploadPipeline:
    return UploadPipeline(get_storage_service(), get_metadata_service(), ImageProcessor())


def initialize_session_state() -> None:
    """Initialize session state variables."""
    defaults = {
        "authenticated": False,
        "user_id": None,
        "user_email": None,
        "auth_error": None,
        "current_page": "home",
        "current_gallery_id": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def render_main_content(gallery_service: GalleryService) -> None:
    """Render the page selected in session state."""
    current_page = st.session_state.current_page

    with error_context(f"Failed to load page '{current_page}'", page=current_page):
        if current_page == "gallery":
            render_gallery_page(gallery_service, get_metadata_service(), get_upload_pipeline())
        else:
            release_gallery_controller()
            render_home_page(gallery_service)


def run_app() -> None:
    """Render one run of the Streamlit script."""
    st.set_page_config(
        page_title="tagallery",
        page_icon="🏷️",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    initialize_session_state()

    auth_service = get_session_auth_service()
    with error_context("Authentication failed"):
        authenticate_user(auth_service)

    gallery_service = GalleryService(get_metadata_service(), auth_service, get_storage_service())

    render_header()
    render_sidebar()
    with st.container():
        render_main_content(gallery_service)
    render_footer()

    if get_config().get("DEBUG", False, bool):
        with st.expander("Debug Info"):
            st.write("Session State:", dict(st.session_state))


def main() -> None:
    """Console entry point: launch the app under ``streamlit run``."""
    from streamlit.web import cli as stcli

    sys.argv = ["streamlit", "run", str(Path(__file__).resolve()), *sys.argv[1:]]
    sys.exit(stcli.main())


if __name__ == "__main__":
    run_app()
