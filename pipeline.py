"""pipeline.py

Purpose
- Run one "Generate" click from start to finish:
  quota check -> script check -> read uploads -> plan slides -> resolve images
  -> preview -> count the usage.
- Keep the last finished result (RenderModel) so the download button can export it.

Notes (for a 10th grader)
- The usage counter only goes up when everything worked, including showing the preview.
- If planning fails, the previous result stays as it was so you can still download it.
- A slide whose picture could not be made is still a success; it just has no picture.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

from deck_renderer import RenderModel, render_deck_bytes
from image_resolver import Sleep, StatusCallback, resolve_slide_images
from media import SourceImage, normalize_images
from quota import UsageQuota
from script2deck import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TEXT_MODEL,
    IMAGE_COOLDOWN_SECONDS,
    ExportError,
    QuotaExhaustedError,
    create_client,
)
from slide_planner import check_script, plan_slides

logger = logging.getLogger(__name__)

PreviewCallback = Callable[[RenderModel], None]


class GenerationSession:
    """Owns the quota counter and the RenderModel hand-off for one user."""

    def __init__(
        self,
        quota: UsageQuota,
        client_factory: Callable[[], object] = create_client,
        *,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        cooldown: float = IMAGE_COOLDOWN_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.quota = quota
        self.client_factory = client_factory
        self.text_model = text_model
        self.image_model = image_model
        self.cooldown = cooldown
        self.sleep = sleep
        self.render_model: RenderModel | None = None

    def check_preconditions(self, script_text: str) -> str:
        if self.quota.remaining() <= 0:
            raise QuotaExhaustedError(self.quota.limit)
        return check_script(script_text)

    async def generate(
        self,
        script_text: str,
        sources: Sequence[SourceImage] = (),
        *,
        on_status: StatusCallback | None = None,
        on_preview: PreviewCallback | None = None,
    ) -> RenderModel:
        text = self.check_preconditions(script_text)

        def status(message: str) -> None:
            if on_status is not None:
                on_status(message)

        client = self.client_factory()

        supplied = normalize_images(sources)

        status("Analyzing the script and planning slides...")
        plan = await plan_slides(client, text, supplied, model=self.text_model)

        status("Preparing slide images...")
        resolution = await resolve_slide_images(
            client,
            plan,
            supplied,
            model=self.image_model,
            cooldown=self.cooldown,
            on_status=on_status,
            sleep=self.sleep,
        )

        model = RenderModel(
            slides=tuple(plan),
            images=tuple(resolution.images),
            failures=tuple(resolution.failures),
        )
        if on_preview is not None:
            on_preview(model)

        self.render_model = model
        self.quota.increment()
        logger.info(
            "Generated %d slides (%d without image)",
            len(model.slides),
            sum(1 for im in model.images if im is None),
        )
        return model

    def export(self) -> bytes:
        if self.render_model is None:
            raise ExportError("Nothing to export yet. Generate a presentation first.")
        return render_deck_bytes(self.render_model)
