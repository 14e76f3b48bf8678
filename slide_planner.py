"""slide_planner.py

Purpose
- Ask the Gemini text model to split a script into slides.
- Each slide comes back as JSON: title, bullet content, which uploaded image to use
  (imageIndex), and an English prompt for a new image when none fits.

Notes (for a 10th grader)
- We do not try to understand the text ourselves. We describe the format we want,
  give Gemini a strict JSON schema, and then check every field of the answer.
- If the answer is not exactly right we stop. We never guess at half-broken JSON.
- imageIndex = -1 is how Gemini says "make a new picture". Right after parsing we turn
  that into Generate(...), and a real index into UseSupplied(...).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Sequence, Union

from google.genai import types

from media import NormalizedImage
from script2deck import (
    DEFAULT_TEXT_MODEL,
    EmptyScriptError,
    PlannerError,
    is_rate_limit_error,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UseSupplied:
    index: int
    # Used only if the supplied image turns out to be unusable.
    fallback_prompt: str | None = None


@dataclass(frozen=True)
class Generate:
    prompt: str | None = None


ImageSource = Union[UseSupplied, Generate]


@dataclass(frozen=True)
class SlidePlanEntry:
    title: str
    content: tuple[str, ...]
    image_source: ImageSource

    @property
    def image_index(self) -> int:
        if isinstance(self.image_source, UseSupplied):
            return self.image_source.index
        return -1

    @property
    def image_generation_prompt(self) -> str | None:
        if isinstance(self.image_source, UseSupplied):
            return self.image_source.fallback_prompt
        return self.image_source.prompt


PLAN_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "content": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
            ),
            "imageIndex": types.Schema(type=types.Type.INTEGER),
            "imageGenerationPrompt": types.Schema(
                type=types.Type.STRING,
                description="Detailed English prompt, required when imageIndex is -1",
            ),
        },
        required=["title", "content", "imageIndex", "imageGenerationPrompt"],
    ),
)


def build_planner_prompt(script_text: str, image_count: int) -> str:
    """Instruction for the text model. The script goes between the --- markers."""

    return f"""You are an expert presentation designer. Analyze the text below and build an engaging presentation (a slide outline) in which EVERY slide contains exactly one image.

TOP PRIORITY CONSTRAINTS
1. Every slide must include exactly one image.
2. {image_count} image(s) are provided. When one of them fits a slide's content, use it.
3. When no image is provided, or none of the provided images fits, you MUST set 'imageIndex' to -1 and write a detailed English prompt in 'imageGenerationPrompt' that would generate the best image for that slide.

For each slide:
- 'title': the slide title
- 'content': the body text as an array of bullet points
- 'imageIndex': the 0-based index of the provided image to use, or -1 to generate a new one
- 'imageGenerationPrompt': required when 'imageIndex' is -1; a high-quality, photo-like English prompt

---
{script_text}
---""".strip()


def check_script(script_text: str) -> str:
    """Strip the script; raise EmptyScriptError when nothing is left."""
    text = (script_text or "").strip()
    if not text:
        raise EmptyScriptError()
    return text


def _parse_entry(i: int, item: object) -> SlidePlanEntry:
    if not isinstance(item, dict):
        raise PlannerError(f"Slide {i + 1} is not a JSON object.")

    for field in ("title", "content", "imageIndex"):
        if field not in item:
            raise PlannerError(f"Slide {i + 1} is missing '{field}'.")

    title = item["title"]
    content = item["content"]
    image_index = item["imageIndex"]
    prompt = item.get("imageGenerationPrompt")

    if not isinstance(title, str):
        raise PlannerError(f"Slide {i + 1}: 'title' must be a string.")
    if not isinstance(content, list) or not all(isinstance(c, str) for c in content):
        raise PlannerError(f"Slide {i + 1}: 'content' must be a list of strings.")
    # bool is an int subclass; JSON true/false is not an index.
    if isinstance(image_index, bool) or not isinstance(image_index, int):
        raise PlannerError(f"Slide {i + 1}: 'imageIndex' must be an integer.")
    if prompt is not None and not isinstance(prompt, str):
        raise PlannerError(f"Slide {i + 1}: 'imageGenerationPrompt' must be a string.")

    prompt = (prompt or "").strip() or None
    if image_index >= 0:
        source: ImageSource = UseSupplied(index=image_index, fallback_prompt=prompt)
    else:
        source = Generate(prompt=prompt)

    return SlidePlanEntry(title=title, content=tuple(content), image_source=source)


def parse_slide_plan(text: str | None) -> list[SlidePlanEntry]:
    """Parse the model's JSON answer. Anything malformed raises PlannerError."""

    if not text or not text.strip():
        raise PlannerError("The text model returned an empty response.")
    try:
        raw = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise PlannerError(f"The slide plan was not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise PlannerError("The slide plan must be a JSON array.")
    if not raw:
        raise PlannerError("The slide plan contained no slides.")

    return [_parse_entry(i, item) for i, item in enumerate(raw)]


def _build_contents(
    script_text: str, images: Sequence[NormalizedImage | None]
) -> list[types.Part]:
    parts = [types.Part.from_text(text=build_planner_prompt(script_text, len(images)))]
    for i, image in enumerate(images):
        if image is None:
            # Keeps later images at their index.
            parts.append(types.Part.from_text(text=f"(Image {i} could not be read. Do not use imageIndex {i}.)"))
        else:
            parts.append(types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type))
    return parts


async def plan_slides(
    client,
    script_text: str,
    images: Sequence[NormalizedImage | None],
    *,
    model: str = DEFAULT_TEXT_MODEL,
) -> list[SlidePlanEntry]:
    """Send the script (and images) to the text model and return the validated plan."""

    text = check_script(script_text)
    logger.info("Planning slides with %s (%d source images)", model, len(images))

    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=_build_contents(text, images),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=PLAN_RESPONSE_SCHEMA,
            ),
        )
    except Exception as e:
        logger.exception("Slide planning request failed")
        raise PlannerError(f"Slide planning failed: {e}", rate_limited=is_rate_limit_error(e)) from e

    plan = parse_slide_plan(response.text)
    logger.info("Planner returned %d slides", len(plan))
    return plan
