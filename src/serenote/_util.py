"""Shared low-level clock helpers used across the ledger, badges and cli."""

from __future__ import annotations

from datetime import datetime


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _now_iso() -> str:
    return _now_local().isoformat(timespec="seconds")
