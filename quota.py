"""quota.py

Daily usage counter for the generate button.

The counter is stored as two keys ("date", "count") in a small JSON file in the
working directory, or wherever SCRIPT2DECK_QUOTA_FILE points. When the stored date
is not today the counter starts over at zero.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable

from script2deck import DAILY_QUOTA_LIMIT, QUOTA_STATE_FILENAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaState:
    date: str
    count: int


QUOTA_FILE_ENV = "SCRIPT2DECK_QUOTA_FILE"


def default_state_path() -> Path:
    override = os.getenv(QUOTA_FILE_ENV)
    if override:
        return Path(override)
    return Path.cwd() / QUOTA_STATE_FILENAME


class UsageQuota:
    """Date-keyed generation counter persisted to a JSON file."""

    def __init__(
        self,
        path: Path | None = None,
        limit: int = DAILY_QUOTA_LIMIT,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.path = path if path is not None else default_state_path()
        self.limit = limit
        self._today = today

    def _today_str(self) -> str:
        return self._today().isoformat()

    def _read(self) -> QuotaState | None:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return QuotaState(date=str(raw["date"]), count=max(0, int(raw["count"])))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable quota file %s: %s", self.path, e)
            return None

    def _write(self, state: QuotaState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"date": state.date, "count": state.count}
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def state(self) -> QuotaState:
        """Current state for today; rolls the counter over when the day changed."""
        today = self._today_str()
        stored = self._read()
        if stored is None or stored.date != today:
            fresh = QuotaState(date=today, count=0)
            self._write(fresh)
            if stored is not None:
                logger.info("New day (%s): usage counter reset", today)
            return fresh
        return stored

    def remaining(self) -> int:
        return max(0, self.limit - self.state().count)

    def increment(self) -> None:
        current = self.state()
        self._write(QuotaState(date=current.date, count=current.count + 1))
        logger.info("Usage today: %d/%d", current.count + 1, self.limit)
