from __future__ import annotations

import os
from pathlib import Path

DATA_ENV_VAR = "SERENOTE_DATA"


def default_data_path(profile: str | None = None) -> Path:
    base = Path.home() / ".config" / "serenote"
    name = f"{profile}.json" if profile else "data.json"
    return base / name


def resolve_data_path(data_arg: str | None, profile: str | None) -> Path:
    """--data wins, then $SERENOTE_DATA, then the (profile) default."""
    if data_arg:
        return Path(data_arg).expanduser().resolve()
    env = os.environ.get(DATA_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return default_data_path(profile).expanduser().resolve()


def data_path_reason(data_arg: str | None, profile: str | None) -> str:
    if data_arg:
        return "because you passed --data"
    if os.environ.get(DATA_ENV_VAR):
        return f"because {DATA_ENV_VAR} is set"
    if profile:
        return f"because you used --profile {profile!r}"
    return "default XDG config location"
