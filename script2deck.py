#!/usr/bin/env python3
"""script2deck.py

Purpose
- Shared core for the Script-to-Deck app:
  - Model names, quota limit, cooldown and export constants
  - Loading GEMINI_API_KEY from .env and creating the Gemini client
  - The error types every pipeline step raises

INPUT FILES (prominent)
- .env with GEMINI_API_KEY=... (current folder, this folder, or its parent)

OUTPUT FILES (prominent)
- None directly. See quota.py (usage_quota.json) and deck_renderer.py (AI_Presentation.pptx).

Version History
- v0.1.0 (2026-10-19): Initial version (script -> Gemini plan -> Gemini images -> PPTX)

Last Updated
- 2026-10-19

Notes (for a 10th grader)
- Every other file imports its settings from here so there is only one place to change them.
- If something goes wrong we raise one of the errors below, and the web page turns it into a
  friendly message with user_message().

Requirements
- A Gemini API key in .env (GEMINI_API_KEY=...)

"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from google import genai


DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

DAILY_QUOTA_LIMIT = 100
QUOTA_STATE_FILENAME = "usage_quota.json"

# Pause before every image-generation call after the first one (per-minute API limits).
IMAGE_COOLDOWN_SECONDS = 2.0
IMAGE_ASPECT_RATIO = "16:9"

DEFAULT_DECK_FILENAME = "AI_Presentation.pptx"


class Script2DeckError(RuntimeError):
    """Base class for failures the UI reports to the user."""


class PreconditionError(Script2DeckError):
    """Raised before any network call; nothing was started."""


class EmptyScriptError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("Please enter the presentation script.")


class QuotaExhaustedError(PreconditionError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            f"The daily limit of {limit} generations has been reached. Please try again tomorrow."
        )
        self.limit = limit


class PlannerError(Script2DeckError):
    """The text model did not return a usable slide plan."""

    def __init__(self, message: str, *, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited


class ExportError(Script2DeckError):
    """Building the .pptx file failed. The generated slides are still valid."""


RATE_LIMIT_MESSAGE = (
    "The API rate limit (requests per minute) was reached. Wait a little and try again."
)


def is_rate_limit_error(exc: BaseException) -> bool:
    """True when exc looks like an HTTP 429 from the Gemini API.

    google.genai.errors.APIError carries the status in .code; older paths only
    have it in the message text.
    """

    if getattr(exc, "code", None) == 429:
        return True
    return "429" in str(exc)


def user_message(exc: BaseException) -> str:
    """Turn any pipeline exception into the text shown on the page."""

    if isinstance(exc, PlannerError) and exc.rate_limited:
        return RATE_LIMIT_MESSAGE
    if isinstance(exc, Script2DeckError):
        return str(exc)
    if is_rate_limit_error(exc):
        return RATE_LIMIT_MESSAGE
    return "An error occurred during generation."


def _load_env() -> None:
    """Load environment variables from .env.

    Search order:
    - Current working directory (walk up) via find_dotenv(usecwd=True)
    - This script's folder
    - Parent folder
    """

    env_from_cwd = find_dotenv(usecwd=True)
    if env_from_cwd:
        load_dotenv(env_from_cwd, override=False)

    script_dir = Path(__file__).resolve().parent
    load_dotenv(script_dir / ".env", override=False)
    load_dotenv(script_dir.parent / ".env", override=False)


def create_client() -> genai.Client:
    """Create a Gemini client using GEMINI_API_KEY from environment (.env supported)."""
    _load_env()
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise Script2DeckError(
            "GEMINI_API_KEY is not set. Put it in a .env file (project folder or parent folder)."
        )
    return genai.Client(api_key=api_key)
