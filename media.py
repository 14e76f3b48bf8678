"""media.py

Turn uploaded image files into what the rest of the pipeline needs:
- a data URI ("data:image/png;base64,...") for previews and the deck
- the pixel width/height, so the deck can letterbox the picture

PNG and JPEG are kept as they are. Other formats (WebP, GIF, ...) are re-encoded
as PNG, because python-pptx cannot embed WebP and the planner only needs one frame.

The output list always has one entry per input file. A file Pillow cannot read
becomes None at its index instead of being dropped, because the slide plan
refers to images by position.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass
from io import BytesIO
from typing import Iterable

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceImage:
    name: str
    mime_type: str
    data: bytes


@dataclass(frozen=True)
class NormalizedImage:
    encoded_payload: str
    width: int
    height: int

    @property
    def mime_type(self) -> str:
        header = self.encoded_payload.split(",", 1)[0]
        return header[len("data:"):].split(";", 1)[0] or "application/octet-stream"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.encoded_payload.split(",", 1)[1])


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"


# Formats both python-pptx and the Gemini planner accept as-is.
PASSTHROUGH_FORMATS = {"PNG": "image/png", "JPEG": "image/jpeg"}


def normalize_image(data: bytes) -> NormalizedImage:
    """Read the pixel size and re-encode anything other than PNG/JPEG as PNG.

    Raises ValueError when Pillow cannot read the bytes.
    """

    try:
        with Image.open(BytesIO(data)) as im:
            im.load()
            width, height = im.size
            mime_type = PASSTHROUGH_FORMATS.get(im.format or "")
            if mime_type is None:
                # WebP, GIF, TIFF, ...: first frame only.
                frame = im if im.mode in ("RGB", "RGBA", "L", "LA", "P") else im.convert("RGBA")
                out = BytesIO()
                frame.save(out, format="PNG")
                data = out.getvalue()
                mime_type = "image/png"
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Not a readable image: {e}") from e
    if width <= 0 or height <= 0:
        raise ValueError(f"Image has no pixels: {width}x{height}")
    return NormalizedImage(encoded_payload=to_data_uri(data, mime_type), width=width, height=height)


def normalize_images(sources: Iterable[SourceImage]) -> list[NormalizedImage | None]:
    out: list[NormalizedImage | None] = []
    for i, src in enumerate(sources):
        try:
            out.append(normalize_image(src.data))
        except ValueError as e:
            logger.warning("Could not read image %d (%s): %s", i, src.name, e)
            out.append(None)
    return out


def _guess_mime_type(name: str, declared: str | None) -> str:
    if declared:
        return declared
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


def source_images_from_uploads(files) -> list[SourceImage]:
    """Read Streamlit UploadedFile objects (anything with .name, .type, .getvalue())."""
    sources: list[SourceImage] = []
    for f in files or []:
        sources.append(
            SourceImage(
                name=f.name,
                mime_type=_guess_mime_type(f.name, getattr(f, "type", None)),
                data=f.getvalue(),
            )
        )
    return sources
