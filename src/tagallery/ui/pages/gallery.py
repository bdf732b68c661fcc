"""Gallery page: tag filter, tag manager, image grid and upload."""

import streamlit as st

from ...logging_config import get_logger
from ...services.galleries import GalleryService
from ...services.metadata import MetadataService
from ...services.upload import UploadPipeline
from ..components.common import render_notifications
from ..components.gallery import (
    render_drop_zone,
    render_image_grid,
    render_selection_actions,
    render_tag_bar,
    render_tag_editor_dialog,
    render_tag_manager,
    render_upload_dialog,
)
from ..handlers.auth import require_authentication
from ..handlers.gallery import CONTROLLER_KEY, GalleryController

logger = get_logger(__name__)


def get_gallery_controller(
    gallery_id: str, metadata: MetadataService, pipeline: UploadPipeline
) -> GalleryController:
    """Get the session's controller for the open gallery, loading it when the gallery changed."""
    controller = st.session_state.get(CONTROLLER_KEY)
    if controller is None or controller.gallery_id != gallery_id:
        controller = GalleryController.load(gallery_id, metadata, pipeline)
        st.session_state[CONTROLLER_KEY] = controller
    return controller

def release_gallery_controller() -> None:
    """Forget the open gallery's filter, selection and images."""
    if st.session_state.pop(CONTROLLER_KEY, None) is not None:
        logger.debug("gallery_controller_released")

def render_gallery_page(
    gallery_service: GalleryService,
    metadata: MetadataService,
    pipeline: UploadPipeline,
) -> None:
    """Render the current gallery."""
    if not require_authentication():
        return

    gallery_id = st.session_state.get("current_gallery_id")
    if not gallery_id:
        st.session_state.current_page = "home"
        st.rerun()

    # Raises NotFoundError for foreign galleries
    gallery = gallery_service.get_gallery(gallery_id)
    controller = get_gallery_controller(gallery.id, metadata, pipeline)

    st.markdown(f"## {gallery.name}")
    st.caption(gallery.description)

    render_drop_zone(controller)
    render_tag_manager(controller)
    render_tag_bar(controller)
    st.divider()
    render_selection_actions(controller)
    render_image_grid(controller)

    if controller.editor.is_open:
        render_tag_editor_dialog(controller)
    elif controller.upload_dialog_open:
        render_upload_dialog(controller)

    render_notifications(controller.drain_notifications())
