"""image_resolver.py

Purpose
- Give every planned slide its picture, one slide at a time:
  1) If the plan points at an uploaded image that we could read, use it (no API call).
  2) Otherwise ask the Gemini image model for a 16:9 image.
- A failed or empty image request is not fatal. That slide simply has no image.

Notes (for a 10th grader)
- Image APIs allow only a few requests per minute, so we never run them in parallel
  and we wait a couple of seconds before each new request.
- Reusing an uploaded image is free, so it does not trigger the wait.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from google.genai import types

from media import NormalizedImage, normalize_image
from script2deck import (
    DEFAULT_IMAGE_MODEL,
    IMAGE_ASPECT_RATIO,
    IMAGE_COOLDOWN_SECONDS,
    is_rate_limit_error,
)
from slide_planner import SlidePlanEntry, UseSupplied

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class SlideImageFailure:
    slide_number: int
    reason: str
    rate_limited: bool = False


@dataclass
class ImageResolution:
    images: list[NormalizedImage | None]
    failures: list[SlideImageFailure] = field(default_factory=list)


def fallback_prompt(title: str) -> str:
    return f'A high quality, professional presentation slide image for "{title}", modern style.'


def generation_prompt(entry: SlidePlanEntry) -> str:
    return entry.image_generation_prompt or fallback_prompt(entry.title)


def _supplied_image(
    entry: SlidePlanEntry, supplied: Sequence[NormalizedImage | None]
) -> NormalizedImage | None:
    source = entry.image_source
    if isinstance(source, UseSupplied) and 0 <= source.index < len(supplied):
        return supplied[source.index]
    return None


def _first_inline_image(response) -> bytes | None:
    """Return the bytes of the first inline image in the first candidate."""

    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return inline.data
    return None


async def generate_image(
    client,
    prompt: str,
    *,
    model: str = DEFAULT_IMAGE_MODEL,
) -> NormalizedImage | None:
    """One image-generation call. None when the response carries no image."""

    response = await client.aio.models.generate_content(
        model=model,
        contents=prompt,
        config=types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=IMAGE_ASPECT_RATIO),
        ),
    )
    found = _first_inline_image(response)
    if found is None:
        return None
    return normalize_image(found)


async def resolve_slide_images(
    client,
    plan: Sequence[SlidePlanEntry],
    supplied: Sequence[NormalizedImage | None],
    *,
    model: str = DEFAULT_IMAGE_MODEL,
    cooldown: float = IMAGE_COOLDOWN_SECONDS,
    on_status: StatusCallback | None = None,
    sleep: Sleep = asyncio.sleep,
) -> ImageResolution:
    result = ImageResolution(images=[])
    total = len(plan)
    generation_calls = 0

    for index, entry in enumerate(plan):
        slide_number = index + 1

        image = _supplied_image(entry, supplied)
        if image is not None:
            logger.info("Slide %d/%d: using supplied image %d", slide_number, total, entry.image_index)
            result.images.append(image)
            continue

        if generation_calls > 0 and cooldown > 0:
            await sleep(cooldown)
        generation_calls += 1

        if on_status is not None:
            on_status(f"Generating image for slide {slide_number}/{total}...")
        logger.info("Slide %d/%d: generating image", slide_number, total)

        try:
            image = await generate_image(client, generation_prompt(entry), model=model)
        except Exception as e:
            rate_limited = is_rate_limit_error(e)
            logger.warning("Slide %d/%d: image generation failed: %s", slide_number, total, e)
            result.images.append(None)
            result.failures.append(
                SlideImageFailure(slide_number=slide_number, reason=str(e), rate_limited=rate_limited)
            )
            continue

        if image is None:
            logger.warning("Slide %d/%d: response contained no image", slide_number, total)
            result.failures.append(
                SlideImageFailure(slide_number=slide_number, reason="No image in response")
            )
        result.images.append(image)

    return result
