from __future__ import annotations

import sys
from pathlib import Path

from .paths import DATA_ENV_VAR


def find_git_root(start: Path) -> Path | None:
    cur = start
    for _ in range(200):
        if (cur / ".git").exists():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent
    return None


def assert_safe_data_path(data_path: Path, allow_repo_data_path: bool) -> None:
    # health data must not end up committed: refuse paths inside a git repo
    git_root = find_git_root(data_path.parent)
    if git_root and not allow_repo_data_path:
        print("🚫 Refusing to use a data file inside a git repo.", file=sys.stderr)
        print(f"   data_path: {data_path}", file=sys.stderr)
        print(f"   repo_root: {git_root}", file=sys.stderr)
        print(
            f"   Fix: use ~/.config/serenote/*.json, set {DATA_ENV_VAR}, or pass --allow-repo-data-path",
            file=sys.stderr,
        )
        raise SystemExit(2)
