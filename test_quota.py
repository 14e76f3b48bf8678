#!/usr/bin/env python3
from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from quota import UsageQuota


def _quota(tmp_path: Path, day: date, limit: int = 100) -> UsageQuota:
    return UsageQuota(tmp_path / "usage_quota.json", limit=limit, today=lambda: day)


def test_fresh_install_has_full_limit(tmp_path: Path) -> None:
    q = _quota(tmp_path, date(2026, 10, 19))
    assert q.remaining() == 100
    stored = json.loads((tmp_path / "usage_quota.json").read_text(encoding="utf-8"))
    assert stored == {"date": "2026-10-19", "count": 0}


def test_stale_date_resets_count(tmp_path: Path) -> None:
    path = tmp_path / "usage_quota.json"
    path.write_text(json.dumps({"date": "2026-10-18", "count": 100}), encoding="utf-8")

    q = _quota(tmp_path, date(2026, 10, 19))
    assert q.remaining() == 100
    assert q.state().count == 0
    assert json.loads(path.read_text(encoding="utf-8"))["date"] == "2026-10-19"


def test_increment_counts_down_and_clamps(tmp_path: Path) -> None:
    q = _quota(tmp_path, date(2026, 10, 19), limit=2)
    q.increment()
    assert q.remaining() == 1
    q.increment()
    assert q.remaining() == 0
    q.increment()
    assert q.remaining() == 0
    assert q.state().count == 3


def test_counter_survives_new_instance(tmp_path: Path) -> None:
    day = date(2026, 10, 19)
    _quota(tmp_path, day).increment()
    assert _quota(tmp_path, day).remaining() == 99


def test_unreadable_file_counts_as_new_day(tmp_path: Path) -> None:
    (tmp_path / "usage_quota.json").write_text("not json", encoding="utf-8")
    q = _quota(tmp_path, date(2026, 10, 19))
    assert q.remaining() == 100


def test_default_path_is_working_directory(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("SCRIPT2DECK_QUOTA_FILE", raising=False)
    monkeypatch.chdir(tmp_path)
    UsageQuota(today=lambda: date(2026, 10, 19)).increment()
    stored = json.loads((tmp_path / "usage_quota.json").read_text(encoding="utf-8"))
    assert stored == {"date": "2026-10-19", "count": 1}


def test_env_override_sets_path(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "state" / "counter.json"
    monkeypatch.setenv("SCRIPT2DECK_QUOTA_FILE", str(target))
    q = UsageQuota(today=lambda: date(2026, 10, 19))
    assert q.path == target
    assert q.remaining() == 100
    assert target.exists()
