"""deck_renderer.py

Purpose
- Build the downloadable PowerPoint file from the finished slides (python-pptx).

Layout (16:9, 10in x 5.625in)
- Title across the top of every slide.
- With an image: text on one side, picture on the other. Even slides (1st, 3rd, ...)
  put the picture on the right, odd slides on the left.
- Without an image: one wide text box.
- Pictures are letterboxed: scaled to fit their slot without stretching, then centered.

OUTPUT FILES (prominent)
- AI_Presentation.pptx (bytes handed to the download button)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Sequence

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.text import MSO_ANCHOR
from pptx.util import Inches, Pt

from image_resolver import SlideImageFailure
from media import NormalizedImage
from script2deck import ExportError
from slide_planner import SlidePlanEntry

logger = logging.getLogger(__name__)

SLIDE_WIDTH_IN = 10.0
SLIDE_HEIGHT_IN = 5.625
TITLE_COLOR = "00529B"


@dataclass(frozen=True)
class Box:
    x: float
    y: float
    w: float
    h: float


TITLE_BOX = Box(0.5, 0.25, 9.0, 0.75)
FULL_TEXT_BOX = Box(0.5, 1.2, 9.0, 4.0)
LEFT_TEXT_BOX = Box(0.5, 1.2, 4.5, 4.0)
RIGHT_TEXT_BOX = Box(5.0, 1.2, 4.5, 4.0)
LEFT_IMAGE_BOX = Box(0.5, 1.2, 4.3, 3.5)
RIGHT_IMAGE_BOX = Box(5.2, 1.2, 4.3, 3.5)


@dataclass(frozen=True)
class RenderModel:
    """Slides and their resolved images, index-aligned."""

    slides: tuple[SlidePlanEntry, ...]
    images: tuple[NormalizedImage | None, ...]
    failures: tuple[SlideImageFailure, ...] = field(default=())

    def __post_init__(self) -> None:
        if len(self.slides) != len(self.images):
            raise ValueError(
                f"RenderModel needs one image slot per slide ({len(self.slides)} != {len(self.images)})"
            )

    def pairs(self) -> list[tuple[SlidePlanEntry, NormalizedImage | None]]:
        return list(zip(self.slides, self.images))

    def failure_for(self, slide_number: int) -> SlideImageFailure | None:
        for failure in self.failures:
            if failure.slide_number == slide_number:
                return failure
        return None


def image_on_right(index: int) -> bool:
    """0-based slide index: even -> image right, odd -> image left."""
    return index % 2 == 0


def letterbox(width: int, height: int, box: Box) -> Box:
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    scale = min(box.w / width, box.h / height)
    w = width * scale
    h = height * scale
    return Box(box.x + (box.w - w) / 2, box.y + (box.h - h) / 2, w, h)


def _add_textbox(slide, box: Box):
    shape = slide.shapes.add_textbox(Inches(box.x), Inches(box.y), Inches(box.w), Inches(box.h))
    tf = shape.text_frame
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.TOP
    return tf


def _add_title(slide, title: str) -> None:
    tf = _add_textbox(slide, TITLE_BOX)
    run = tf.paragraphs[0].add_run()
    run.text = title
    run.font.size = Pt(24)
    run.font.bold = True
    run.font.color.rgb = RGBColor.from_string(TITLE_COLOR)


def _add_body(slide, lines: Sequence[str], box: Box, font_size: int) -> None:
    tf = _add_textbox(slide, box)
    for i, line in enumerate(lines):
        para = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        para.space_after = Pt(font_size)
        run = para.add_run()
        run.text = line
        run.font.size = Pt(font_size)


def _add_image(slide, image: NormalizedImage, slot: Box) -> None:
    fit = letterbox(image.width, image.height, slot)
    slide.shapes.add_picture(
        BytesIO(image.to_bytes()),
        Inches(fit.x),
        Inches(fit.y),
        Inches(fit.w),
        Inches(fit.h),
    )


def build_presentation(model: RenderModel):
    prs = Presentation()
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)
    blank = prs.slide_layouts[6]

    for index, (entry, image) in enumerate(model.pairs()):
        slide = prs.slides.add_slide(blank)
        _add_title(slide, entry.title)
        if image is None:
            _add_body(slide, entry.content, FULL_TEXT_BOX, 16)
        elif image_on_right(index):
            _add_body(slide, entry.content, LEFT_TEXT_BOX, 14)
            _add_image(slide, image, RIGHT_IMAGE_BOX)
        else:
            _add_image(slide, image, LEFT_IMAGE_BOX)
            _add_body(slide, entry.content, RIGHT_TEXT_BOX, 14)

    return prs


def render_deck_bytes(model: RenderModel) -> bytes:
    """Encode the deck as .pptx bytes. Any failure becomes ExportError."""
    try:
        prs = build_presentation(model)
        out = BytesIO()
        prs.save(out)
    except Exception as e:
        logger.exception("PPTX export failed")
        raise ExportError(f"Could not build the PowerPoint file: {e}") from e
    logger.info("Exported %d slides", len(model.slides))
    return out.getvalue()
