#!/usr/bin/env python3

"""streamlit_app.py

Purpose
- Local Streamlit web UI for the Script-to-Deck pipeline.
- Lets you:
  - Paste a presentation script
  - Upload images to reuse (optional)
  - Generate a slide plan + one picture per slide with Gemini
  - Preview every slide in the browser
  - Download the result as a PowerPoint file

INPUT FILES (prominent)
- Images uploaded in the page (PNG, JPG, JPEG, WebP, GIF)

OUTPUT FILES (prominent)
- Daily usage counter:
  - ./usage_quota.json (folder you start streamlit from; SCRIPT2DECK_QUOTA_FILE overrides)
- PowerPoint download (only when you click the buttons):
  - AI_Presentation.pptx

Version History
- v0.1.0 (2026-10-19): Initial Streamlit UI.

Last Updated
- 2026-10-19

Run
- streamlit run streamlit_app.py

"""

from __future__ import annotations

import asyncio
import logging

import streamlit as st

from deck_renderer import RenderModel
from image_resolver import SlideImageFailure
from media import source_images_from_uploads
from pipeline import GenerationSession
from quota import UsageQuota
from script2deck import DEFAULT_DECK_FILENAME, Script2DeckError, user_message

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ["png", "jpg", "jpeg", "webp", "gif"]


def _configure_logging() -> None:
    # basicConfig is a no-op on reruns once the root handler exists.
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")


def _ensure_session_defaults() -> None:
    if "session" not in st.session_state:
        st.session_state["session"] = GenerationSession(UsageQuota())
    st.session_state.setdefault("last_error", None)
    st.session_state.setdefault("deck_bytes", None)
    st.session_state.setdefault("export_error", None)


def _quota_caption(remaining: int) -> str:
    if remaining <= 0:
        return "No generations left today. Please come back tomorrow."
    return f"{remaining} generations left today"


def _missing_image_note(failure: SlideImageFailure | None) -> str:
    if failure is not None and failure.rate_limited:
        return "No image (API rate limit reached)"
    return "No image (generation error)"


def _render_preview(container, model: RenderModel) -> None:
    with container:
        st.subheader("Preview")
        for index, (entry, image) in enumerate(model.pairs()):
            slide_number = index + 1
            with st.container(border=True):
                st.caption(f"Slide {slide_number}")
                text_col, image_col = st.columns([3, 2])
                with text_col:
                    st.markdown(f"### {entry.title}")
                    for line in entry.content:
                        st.markdown(line)
                with image_col:
                    if image is not None:
                        st.image(image.to_bytes(), use_container_width=True)
                    else:
                        note = _missing_image_note(model.failure_for(slide_number))
                        st.markdown(
                            f'<p style="color: #999; font-size: 0.8rem; border: 1px dashed #ccc; '
                            f'padding: 1rem; text-align: center;">{note}</p>',
                            unsafe_allow_html=True,
                        )


def _render_export(session: GenerationSession) -> None:
    if session.render_model is None:
        return

    if st.button("Prepare PowerPoint", use_container_width=True):
        try:
            with st.spinner("Preparing file…"):
                st.session_state["deck_bytes"] = session.export()
            st.session_state["export_error"] = None
        except Script2DeckError as e:
            st.session_state["deck_bytes"] = None
            st.session_state["export_error"] = str(e)

    if st.session_state.get("export_error"):
        st.error(st.session_state["export_error"])

    deck_bytes = st.session_state.get("deck_bytes")
    if deck_bytes:
        st.download_button(
            label="Download PowerPoint",
            data=deck_bytes,
            file_name=DEFAULT_DECK_FILENAME,
            mime="application/vnd.openxmlformats-officedocument.presentationml.presentation",
            use_container_width=True,
        )


def main() -> None:
    st.set_page_config(page_title="Script to Deck", layout="wide")
    _configure_logging()
    _ensure_session_defaults()
    session: GenerationSession = st.session_state["session"]

    st.markdown(
        """
        <div style="padding: 1rem 0 0.5rem 0;">
          <h1 style="margin: 0;">Script to Deck</h1>
          <p style="margin: 0.25rem 0 0 0; color: #6b7280;">
            Paste a script, optionally add images, generate slides with pictures, preview them, then download a PowerPoint.
          </p>
        </div>
        """,
        unsafe_allow_html=True,
    )

    st.subheader("1) Script")
    script_text = st.text_area("Presentation script", height=260, label_visibility="collapsed")

    st.subheader("2) Images (optional)")
    uploads = st.file_uploader(
        "Images to reuse in slides",
        type=UPLOAD_TYPES,
        accept_multiple_files=True,
    )
    if uploads:
        st.image(
            [f.getvalue() for f in uploads],
            caption=[f"Preview: {f.name}" for f in uploads],
            width=120,
        )

    st.subheader("3) Generate")
    remaining = session.quota.remaining()
    quota_line = _quota_caption(remaining)
    if remaining <= 0:
        st.error(quota_line)
    else:
        st.caption(quota_line)

    status = st.empty()
    preview_area = st.container()
    previewed_now = False
    generated = False

    if st.button("Generate presentation", use_container_width=True, disabled=remaining <= 0):

        def on_preview(model: RenderModel) -> None:
            nonlocal previewed_now
            status.empty()
            _render_preview(preview_area, model)
            previewed_now = True

        try:
            with st.spinner("Generating…"):
                asyncio.run(
                    session.generate(
                        script_text,
                        source_images_from_uploads(uploads),
                        on_status=lambda message: status.info(message),
                        on_preview=on_preview,
                    )
                )
            st.session_state["last_error"] = None
            st.session_state["deck_bytes"] = None
            st.session_state["export_error"] = None
            generated = True
        except Exception as e:
            if not isinstance(e, Script2DeckError):
                logger.exception("Generation failed")
            status.empty()
            st.session_state["last_error"] = user_message(e)

    if generated:
        # Refresh the quota caption and button state.
        st.rerun()

    if st.session_state.get("last_error"):
        st.error(st.session_state["last_error"])

    if session.render_model is not None and not previewed_now:
        _render_preview(preview_area, session.render_model)

    st.divider()
    st.subheader("4) Download")
    _render_export(session)


if __name__ == "__main__":
    main()
