"""Gallery page components: tag bar, tag manager, image grid and dialogs."""

import streamlit as st

from ...logging_config import get_logger
from ...services.upload import FileUpload
from ..handlers.gallery import CONTROLLER_KEY, GalleryController
from .common import render_empty_state

logger = get_logger(__name__)

COLUMNS_PER_ROW = 4


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def render_tag_bar(controller: GalleryController) -> None:
    """One toggle button per tag; highlighted tags form the active filter."""
    tags = controller.tag_set.to_list()
    if not tags:
        st.caption("No tags yet. Add some in the tag manager.")
        return

    cols = st.columns(min(len(tags), 8) + 1)
    for index, tag in enumerate(tags):
        with cols[index % (len(cols) - 1)]:
            st.button(
                tag,
                key=f"filter_{tag}",
                type="primary" if tag in controller.active_filter else "secondary",
                on_click=controller.toggle_tag,
                args=(tag,),
                use_container_width=True,
            )

    with cols[-1]:
        st.button(
            "Clear",
            key="filter_clear",
            disabled=not controller.active_filter,
            on_click=controller.clear_filter,
            use_container_width=True,
        )


def render_tag_manager(controller: GalleryController) -> None:
    """Add tags to the gallery's tag set or delete them from every image."""
    with st.expander("🏷️ Manage tags"):
        with st.form("add_tag_form", clear_on_submit=True):
            label = st.text_input("New tag")
            if st.form_submit_button("Add tag"):
                controller.add_tag(label)

        for tag in controller.tag_set:
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(f"`{tag}`")
            with col2:
                st.button(
                    "Delete",
                    key=f"delete_tag_{tag}",
                    on_click=controller.remove_tag,
                    args=(tag,),
                    help="Removes the tag from every image",
                )


def render_image_grid(controller: GalleryController) -> None:
    """Render the visible images with a selection toggle each."""
    images = controller.visible_images()

    if not images:
        if len(controller.collection) == 0:
            render_empty_state("No images yet", "Drop some images above to fill this gallery.", icon="🖼️")
        else:
            render_empty_state("Nothing matches", "No image carries any of the selected tags.", icon="🔍")
        return

    selection = controller.editor.selection
    for row_start in range(0, len(images), COLUMNS_PER_ROW):
        cols = st.columns(COLUMNS_PER_ROW)
        for col, image in zip(cols, images[row_start : row_start + COLUMNS_PER_ROW], strict=False):
            with col:
                st.image(image.source_url, caption=image.alt_text, use_container_width=True)
                if image.tags:
                    st.caption(" ".join(f"`{tag}`" for tag in sorted(image.tags)))
                # selection is owned by the controller
                is_selected = image.id in selection
                st.button(
                    "☑ Selected" if is_selected else "☐ Select",
                    key=f"select_{image.id}",
                    type="primary" if is_selected else "secondary",
                    on_click=controller.select_image,
                    args=(image.id,),
                    disabled=controller.editor.is_open,
                    use_container_width=True,
                )
                st.button(
                    "🗑️",
                    key=f"delete_{image.id}",
                    help="Delete image",
                    on_click=controller.delete_image,
                    args=(image.id,),
                    disabled=controller.editor.is_open,
                )


def _open_controller() -> GalleryController | None:
    return st.session_state.get(CONTROLLER_KEY)


def dismiss_tag_editor() -> None:
    """Closing the editor with X or ESC discards the edit like Cancel."""
    controller = _open_controller()
    if controller is not None:
        controller.cancel_tag_edit()


def dismiss_upload_dialog() -> None:
    controller = _open_controller()
    if controller is not None:
        controller.close_upload_dialog()


def render_selection_actions(controller: GalleryController) -> None:
    selected = len(controller.editor.selection)
    col1, col2 = st.columns([3, 1])
    with col1:
        st.caption(f"{selected} selected" if selected else "Select images to edit their tags")
    with col2:
        st.button(
            "✏️ Edit tags",
            key="open_tag_editor",
            disabled=not selected,
            on_click=controller.open_tag_editor,
            use_container_width=True,
        )


@st.dialog("Edit tags", on_dismiss=dismiss_tag_editor)
def render_tag_editor_dialog(controller: GalleryController) -> None:
    """
    Modal tag editor. Saving sets exactly the checked tags on every
    selected image; unchecked tags are removed from them.
    """
    st.write(f"Editing {len(controller.editor.selection)} image(s)")

    universe = controller.editor.tag_universe
    checked = []
    for tag in controller.tag_set:
        if tag not in universe:
            continue
        if st.checkbox(tag, key=f"edit_tag_{tag}", value=tag in controller.editor.checked):
            checked.append(tag)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Save", type="primary", use_container_width=True):
            controller.commit_tag_edit(checked)
            st.rerun()
    with col2:
        if st.button("Cancel", use_container_width=True):
            controller.cancel_tag_edit()
            st.rerun()


def render_drop_zone(controller: GalleryController) -> None:
    """File uploader feeding the upload dialog."""
    uploaded_files = st.file_uploader(
        "Drop images here",
        type=["jpg", "jpeg", "png", "gif", "webp"],
        accept_multiple_files=True,
        key=f"drop_zone_{st.session_state.get('drop_zone_counter', 0)}",
        disabled=controller.is_uploading,
    )
    if uploaded_files and st.button("📤 Upload dropped files", type="primary"):
        controller.drop_files(FileUpload.from_uploaded_file(uploaded_file) for uploaded_file in uploaded_files)
        # Fresh uploader widget so the same files are not offered twice
        st.session_state.drop_zone_counter = st.session_state.get("drop_zone_counter", 0) + 1
        st.rerun()


@st.dialog("Upload images", width="large", on_dismiss=dismiss_upload_dialog)
def render_upload_dialog(controller: GalleryController) -> None:
    """Confirm and run the upload of the dropped files."""
    for file in controller.pending_files:
        st.write(f"📄 {file.filename} ({format_file_size(file.size)})")

    progress_bar = st.empty()

    def on_progress(filename: str, loaded: int, total: int) -> None:
        fraction = loaded / total if total else 1.0
        progress_bar.progress(fraction, text=f"Uploading {filename}")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Upload", type="primary", disabled=controller.is_uploading, use_container_width=True):
            with st.spinner("Uploading..."):
                controller.confirm_upload(progress_callback=on_progress)
            st.rerun()
    with col2:
        if st.button("Cancel", disabled=controller.is_uploading, use_container_width=True):
            controller.close_upload_dialog()
            st.rerun()
