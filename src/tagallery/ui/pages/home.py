"""Home page: the signed-in user's galleries."""

import streamlit as st

from ...error_handling import TagalleryError
from ...logging_config import get_logger
from ...models.gallery import Gallery
from ...services.galleries import GalleryService
from ..components.common import render_empty_state
from ..handlers.auth import require_authentication
from .gallery import release_gallery_controller

logger = get_logger(__name__)


def open_gallery(gallery_id: str) -> None:
    release_gallery_controller()
    st.session_state.current_gallery_id = gallery_id
    st.session_state.current_page = "gallery"


def render_gallery_form(gallery_service: GalleryService, gallery: Gallery | None = None) -> None:
    """Create form, or edit form when a gallery is given."""
    form_key = f"gallery_form_{gallery.id}" if gallery else "gallery_form_new"

    with st.form(form_key, clear_on_submit=gallery is None):
        name = st.text_input("Name", value=gallery.name if gallery else "")
        description = st.text_area("Description", value=gallery.description if gallery else "")
        submitted = st.form_submit_button("Save" if gallery else "Create gallery", type="primary")

    if not submitted:
        return

    try:
        if gallery:
            gallery_service.update_gallery(gallery.id, name, description)
            st.session_state.editing_gallery_id = None
        else:
            gallery_service.create_gallery(name, description)
        st.rerun()
    except TagalleryError as e:
        st.error(e.user_message)


def render_gallery_row(gallery_service: GalleryService, gallery: Gallery) -> None:
    with st.container(border=True):
        col1, col2, col3, col4 = st.columns([4, 1, 1, 1])
        with col1:
            st.markdown(f"### {gallery.name}")
            st.caption(gallery.description)
        with col2:
            st.button("Open", key=f"open_{gallery.id}", on_click=open_gallery, args=(gallery.id,), type="primary")
        with col3:
            if st.button("Edit", key=f"edit_{gallery.id}"):
                st.session_state.editing_gallery_id = gallery.id
                st.rerun()
        with col4:
            if st.button("Delete", key=f"delete_{gallery.id}"):
                try:
                    gallery_service.delete_gallery(gallery.id)
                    st.toast(f"Deleted {gallery.name}", icon="🗑️")
                    st.rerun()
                except TagalleryError as e:
                    st.error(e.user_message)

        if st.session_state.get("editing_gallery_id") == gallery.id:
            render_gallery_form(gallery_service, gallery)


def render_home_page(gallery_service: GalleryService) -> None:
    """Render the gallery list with create, edit and delete."""
    if not require_authentication():
        render_empty_state("Sign-in required", "Sign in to manage your galleries.", icon="🔐")
        return

    with st.expander("➕ New gallery"):
        render_gallery_form(gallery_service)

    galleries = gallery_service.list_galleries()
    if not galleries:
        render_empty_state("No galleries yet", "Create a gallery to start collecting images.", icon="🖼️")
        return

    for gallery in galleries:
        render_gallery_row(gallery_service, gallery)
