from __future__ import annotations

import json
from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from script2deck import DEFAULT_TEXT_MODEL


def make_png(width: int = 64, height: int = 36, color: str = "white") -> bytes:
    out = BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="PNG")
    return out.getvalue()


def make_webp(width: int = 64, height: int = 36, color: str = "white") -> bytes:
    out = BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="WEBP")
    return out.getvalue()


def image_response(data: bytes, mime_type: str = "image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def text_only_response():
    part = SimpleNamespace(text="Sorry, I can't draw that.", inline_data=None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class RateLimited(Exception):
    """Stands in for google.genai.errors.ClientError with status 429."""

    code = 429


class FakeModels:
    def __init__(self, plan=None, plan_text: str | None = None, plan_error=None, image_replies=None):
        if plan_text is None and plan is not None:
            plan_text = json.dumps(plan)
        self.plan_text = plan_text
        self.plan_error = plan_error
        self.image_replies = list(image_replies or [])
        self.text_calls: list[dict] = []
        self.image_calls: list[dict] = []

    async def generate_content(self, *, model, contents, config=None):
        call = {"model": model, "contents": contents, "config": config}
        if model == DEFAULT_TEXT_MODEL:
            self.text_calls.append(call)
            if self.plan_error is not None:
                raise self.plan_error
            return SimpleNamespace(text=self.plan_text)

        self.image_calls.append(call)
        reply = self.image_replies.pop(0) if self.image_replies else image_response(make_png())
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClient:
    def __init__(self, **kwargs):
        self.models = FakeModels(**kwargs)
        self.aio = SimpleNamespace(models=self.models)


@pytest.fixture
def png_bytes():
    return make_png


@pytest.fixture
def fake_client():
    return FakeClient
