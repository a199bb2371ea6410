"""Tests for data path resolution and the git-repo safety guard."""

from __future__ import annotations

from pathlib import Path

import pytest

from serenote.paths import DATA_ENV_VAR, data_path_reason, default_data_path, resolve_data_path
from serenote.safety import assert_safe_data_path, find_git_root


@pytest.fixture(autouse=True)
def _no_env(monkeypatch):
    monkeypatch.delenv(DATA_ENV_VAR, raising=False)


# ---- resolve_data_path ----


def test_data_arg_wins(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_ENV_VAR, str(tmp_path / "env.json"))
    assert resolve_data_path(str(tmp_path / "arg.json"), "dev") == (tmp_path / "arg.json").resolve()
    assert data_path_reason("x", "dev") == "because you passed --data"


def test_env_beats_profile(tmp_path, monkeypatch):
    monkeypatch.setenv(DATA_ENV_VAR, str(tmp_path / "env.json"))
    assert resolve_data_path(None, "dev") == (tmp_path / "env.json").resolve()
    assert DATA_ENV_VAR in data_path_reason(None, "dev")


def test_profile_default():
    assert resolve_data_path(None, "dev").name == "dev.json"
    assert "dev" in data_path_reason(None, "dev")


def test_plain_default():
    assert default_data_path() == Path.home() / ".config" / "serenote" / "data.json"
    assert data_path_reason(None, None) == "default XDG config location"


# ---- safety guard ----


def test_find_git_root(tmp_path):
    (tmp_path / ".git").mkdir()
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_git_root(nested) == tmp_path


def test_guard_refuses_repo_path(tmp_path):
    (tmp_path / ".git").mkdir()
    with pytest.raises(SystemExit) as exc:
        assert_safe_data_path(tmp_path / "data.json", allow_repo_data_path=False)
    assert exc.value.code == 2


def test_guard_override(tmp_path):
    (tmp_path / ".git").mkdir()
    assert_safe_data_path(tmp_path / "data.json", allow_repo_data_path=True)


def test_guard_hint_names_env_var(tmp_path, capsys):
    (tmp_path / ".git").mkdir()
    with pytest.raises(SystemExit):
        assert_safe_data_path(tmp_path / "data.json", allow_repo_data_path=False)
    assert f"set {DATA_ENV_VAR}" in capsys.readouterr().err
