"""Tests for the JSON file helpers and the async Store."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import pytest

from serenote.models import AchievedBadge, DayRecord, MoodSnapshot, NoteEvent
from serenote.storage import STORE_VERSION, Store, load_json, migrate, save_json


@pytest.fixture()
def tmp_json(tmp_path: Path) -> Path:
    return tmp_path / "data.json"


# ---- save_json ----


def test_save_writes_valid_json(tmp_json):
    save_json(tmp_json, {"a": 1, "b": [1, 2, 3]})
    assert json.loads(tmp_json.read_text()) == {"a": 1, "b": [1, 2, 3]}


def test_save_creates_parent_dirs(tmp_path):
    deep = tmp_path / "a" / "b" / "c" / "data.json"
    save_json(deep, {"x": 1})
    assert deep.exists()


def test_save_is_atomic_no_tmp_left(tmp_json):
    save_json(tmp_json, {"x": 1})
    assert not tmp_json.with_name(tmp_json.name + ".tmp").exists()


def test_save_sets_permissions(tmp_json):
    save_json(tmp_json, {})
    assert oct(os.stat(tmp_json).st_mode & 0o777) == "0o600"


# ---- load_json ----


def test_load_missing_returns_empty_and_creates_file(tmp_json):
    assert load_json(tmp_json) == {}
    assert tmp_json.exists()


def test_load_empty_file_returns_empty_dict(tmp_json):
    tmp_json.write_text("", encoding="utf-8")
    assert load_json(tmp_json) == {}


def test_load_corrupt_returns_empty_and_backs_up(tmp_json):
    tmp_json.write_text("not valid json {{{{", encoding="utf-8")
    assert load_json(tmp_json) == {}
    assert len(list(tmp_json.parent.glob("*.corrupt-*.json"))) == 1


def test_load_non_dict_json_returns_empty(tmp_json):
    tmp_json.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    assert load_json(tmp_json) == {}


# ---- migrate ----


def test_migrate_empty_gives_envelope():
    assert migrate({}) == {"version": STORE_VERSION, "entries": {}, "achieved_badges": [], "breathing_count": 0}


def test_migrate_bare_date_map_becomes_entries():
    legacy = {"2025-03-01": {"date": "2025-03-01", "notes": []}}
    out = migrate(legacy)
    assert out["entries"] == legacy
    assert out["version"] == STORE_VERSION


def test_migrate_repairs_bad_fields():
    out = migrate({"version": 1, "entries": [], "achieved_badges": "x", "breathing_count": True})
    assert out["entries"] == {}
    assert out["achieved_badges"] == []
    assert out["breathing_count"] == 0


# ---- Store ----


def _record(date: str) -> DayRecord:
    ev = NoteEvent(id="n1", time="09:00", label="hello")
    return DayRecord(date=date, mood=MoodSnapshot(value=4), events=(ev,), created_at="t0", updated_at="t0")


def test_store_save_day_then_load_all(tmp_json):
    store = Store(tmp_json)
    assert asyncio.run(store.save_day(_record("2025-03-01"))) is True
    records = asyncio.run(store.load_all())
    assert list(records) == ["2025-03-01"]
    assert records["2025-03-01"].mood.value == 4
    assert records["2025-03-01"].events[0].label == "hello"


def test_store_writes_envelope(tmp_json):
    asyncio.run(Store(tmp_json).save_day(_record("2025-03-01")))
    raw = json.loads(tmp_json.read_text())
    assert raw["version"] == STORE_VERSION
    assert "2025-03-01" in raw["entries"]


def test_store_reads_legacy_layout(tmp_json):
    save_json(tmp_json, {"2025-03-01": _record("2025-03-01").to_dict()})
    records = asyncio.run(Store(tmp_json).load_all())
    assert "2025-03-01" in records


def test_store_skips_invalid_date_keys(tmp_json):
    save_json(tmp_json, {"version": 1, "entries": {"someday": {}, "2025-03-01": {}}})
    assert list(asyncio.run(Store(tmp_json).load_all())) == ["2025-03-01"]


def test_store_delete_day(tmp_json):
    store = Store(tmp_json)

    async def go():
        await store.save_day(_record("2025-03-01"))
        first = await store.delete_day("2025-03-01")
        second = await store.delete_day("2025-03-01")
        return first, second, await store.load_all()

    assert asyncio.run(go()) == (True, False, {})


def test_store_concurrent_saves_all_land(tmp_json):
    store = Store(tmp_json)
    dates = [f"2025-03-{d:02d}" for d in range(1, 11)]

    async def go():
        await asyncio.gather(*(store.save_day(_record(d)) for d in dates))
        return await store.load_all()

    assert sorted(asyncio.run(go())) == dates


def test_store_badges_round_trip(tmp_json):
    store = Store(tmp_json)
    badges = [AchievedBadge("first_record", "2025-03-01T09:00:00+00:00")]
    asyncio.run(store.save_achieved_badges(badges))
    assert asyncio.run(store.load_achieved_badges()) == badges


def test_store_breathing_counter(tmp_json):
    store = Store(tmp_json)
    assert asyncio.run(store.get_breathing_count()) == 0
    assert asyncio.run(store.increment_breathing_count()) == 1
    assert asyncio.run(store.increment_breathing_count()) == 2
    assert asyncio.run(store.get_breathing_count()) == 2


def test_store_unreadable_path_reads_as_empty(tmp_path):
    # a directory where the file should be: every read fails with OSError
    store = Store(tmp_path)
    assert asyncio.run(store.load_all()) == {}
    assert asyncio.run(store.load_achieved_badges()) == []
    assert asyncio.run(store.get_breathing_count()) == 0


def test_store_failed_write_returns_false(tmp_path):
    store = Store(tmp_path)
    assert asyncio.run(store.save_day(_record("2025-03-01"))) is False
    assert asyncio.run(store.delete_day("2025-03-01")) is False


def test_store_save_all_replaces_entries(tmp_json):
    store = Store(tmp_json)

    async def go():
        await store.save_day(_record("2025-03-01"))
        await store.increment_breathing_count()
        await store.save_all({"2025-03-02": _record("2025-03-02")})
        return await store.load_all(), await store.get_breathing_count()

    records, count = asyncio.run(go())
    assert list(records) == ["2025-03-02"]
    assert count == 1
