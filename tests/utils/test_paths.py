"""Tests for production file path resolution."""

from pathlib import Path

from src.utils.paths import ensure_dirs_exist, get_data_dir, get_default_db_path


def test_get_data_dir_returns_path(monkeypatch):
    monkeypatch.delenv("BOXCYCLE_DATA_DIR", raising=False)
    result = get_data_dir()
    assert isinstance(result, Path)
    assert "boxcycle" in str(result).lower()


def test_env_var_overrides_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("BOXCYCLE_DATA_DIR", str(tmp_path / "data"))
    assert get_data_dir() == tmp_path / "data"


def test_get_default_db_path(monkeypatch, tmp_path):
    """Default DB path combines data dir + boxcycle.db."""
    monkeypatch.setenv("BOXCYCLE_DATA_DIR", str(tmp_path))
    assert get_default_db_path() == tmp_path / "boxcycle.db"


def test_ensure_dirs_exist_creates_data_dir(monkeypatch, tmp_path):
    target = tmp_path / "nested" / "data"
    monkeypatch.setenv("BOXCYCLE_DATA_DIR", str(target))

    ensure_dirs_exist()

    assert target.is_dir()
