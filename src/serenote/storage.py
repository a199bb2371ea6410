from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable

from .datekey import is_valid_date_key
from .models import AchievedBadge, DayRecord

logger = logging.getLogger(__name__)

STORE_VERSION = 1


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_json(path: Path) -> dict[str, Any]:
    """
    Safe load:
    - creates parent dirs
    - if missing/empty -> writes {}
    - if corrupt -> backs up raw text then resets to {}
    Always returns a dict.
    """
    path = Path(path)
    _ensure_parent(path)

    if not path.exists():
        save_json(path, {})
        return {}

    txt = path.read_text(encoding="utf-8").strip()
    if not txt:
        save_json(path, {})
        return {}

    try:
        data = json.loads(txt)
        return data if isinstance(data, dict) else {}
    except json.JSONDecodeError:
        backup = path.with_suffix(f".corrupt-{int(time.time())}.json")
        backup.write_text(txt, encoding="utf-8")
        logger.warning("Corrupt data file %s; backed up to %s and reset", path, backup)
        save_json(path, {})
        return {}


def save_json(path: Path, data: Any) -> None:
    """
    Atomic-ish save:
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """
    path = Path(path)
    _ensure_parent(path)

    tmp = path.with_name(path.name + ".tmp")

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"

    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp, path)

    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def migrate(data: dict[str, Any]) -> dict[str, Any]:
    """
    Bring any stored layout up to the current envelope:
      {"version": 1, "entries": {...}, "achieved_badges": [...], "breathing_count": n}
    Files written before the envelope hold the bare entries map keyed by date.
    """
    if "version" not in data and data and all(is_valid_date_key(k) for k in data):
        data = {"entries": data}

    entries = data.get("entries")
    badges = data.get("achieved_badges")
    count = data.get("breathing_count")
    return {
        "version": STORE_VERSION,
        "entries": entries if isinstance(entries, dict) else {},
        "achieved_badges": badges if isinstance(badges, list) else [],
        "breathing_count": count if isinstance(count, int) and not isinstance(count, bool) else 0,
    }


def decode_entries(raw: Mapping[str, Any]) -> dict[str, DayRecord]:
    out: dict[str, DayRecord] = {}
    for key, value in raw.items():
        if not is_valid_date_key(key):
            logger.debug("Skipping entry with invalid date key %r", key)
            continue
        out[key] = DayRecord.from_dict(key, value)
    return out


class Store:
    """
    Key-value persistence for the day ledger, backed by one JSON file.

    Every method is a coroutine; file work runs in the default executor so
    callers on an event loop are not blocked. Failures are logged and read
    as empty state; nothing here raises to the caller.
    """

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    # sync helpers (run in executor)

    def _read(self) -> dict[str, Any]:
        return migrate(load_json(self.data_path))

    def _update(self, mutate: Callable[[dict[str, Any]], Any]) -> Any:
        data = self._read()
        result = mutate(data)
        save_json(self.data_path, data)
        return result

    def _get_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    async def _write(self, mutate: Callable[[dict[str, Any]], Any]) -> Any:
        # serialise read-modify-write cycles issued from this process
        async with self._get_lock():
            return await self._run(self._update, mutate)

    # day records

    async def load_all(self) -> dict[str, DayRecord]:
        try:
            data = await self._run(self._read)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load entries from %s: %s", self.data_path, e)
            return {}
        return decode_entries(data["entries"])

    async def save_all(self, records: Mapping[str, DayRecord]) -> bool:
        payload = {k: r.to_dict() for k, r in records.items()}

        def put(data: dict[str, Any]) -> None:
            data["entries"] = payload

        try:
            await self._write(put)
        except (OSError, ValueError) as e:
            logger.warning("Failed to save entries to %s: %s", self.data_path, e)
            return False
        return True

    async def save_day(self, record: DayRecord) -> bool:
        def put(data: dict[str, Any]) -> None:
            data["entries"][record.date] = record.to_dict()

        try:
            await self._write(put)
        except (OSError, ValueError) as e:
            logger.warning("Failed to save %s to %s: %s", record.date, self.data_path, e)
            return False
        return True

    async def delete_day(self, date: str) -> bool:
        def drop(data: dict[str, Any]) -> bool:
            return data["entries"].pop(date, None) is not None

        try:
            return await self._write(drop)
        except (OSError, ValueError) as e:
            logger.warning("Failed to delete %s from %s: %s", date, self.data_path, e)
            return False

    # badges

    async def load_achieved_badges(self) -> list[AchievedBadge]:
        try:
            data = await self._run(self._read)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load achieved badges from %s: %s", self.data_path, e)
            return []
        out = []
        for item in data["achieved_badges"]:
            badge = AchievedBadge.from_dict(item)
            if badge is not None:
                out.append(badge)
        return out

    async def save_achieved_badges(self, badges: list[AchievedBadge]) -> bool:
        payload = [b.to_dict() for b in badges]

        def put(data: dict[str, Any]) -> None:
            data["achieved_badges"] = payload

        try:
            await self._write(put)
        except (OSError, ValueError) as e:
            logger.warning("Failed to save achieved badges to %s: %s", self.data_path, e)
            return False
        return True

    # breathing-exercise counter

    async def get_breathing_count(self) -> int:
        try:
            data = await self._run(self._read)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read breathing count from %s: %s", self.data_path, e)
            return 0
        return data["breathing_count"]

    async def increment_breathing_count(self) -> int:
        def bump(data: dict[str, Any]) -> int:
            data["breathing_count"] += 1
            return data["breathing_count"]

        try:
            return await self._write(bump)
        except (OSError, ValueError) as e:
            logger.warning("Failed to save breathing count to %s: %s", self.data_path, e)
            return await self.get_breathing_count() + 1
