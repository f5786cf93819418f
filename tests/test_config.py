"""Tests for the centralized config module."""

from pathlib import Path

import pytest

from epicrunner.config import PIPELINES_FILENAME, get_home_dir, get_pipelines_path


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch):
    """Clear lru_cache before and after each test."""
    get_home_dir.cache_clear()
    monkeypatch.delenv("EPICRUNNER_HOME", raising=False)
    monkeypatch.delenv("EPICRUNNER_CONFIG", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    yield
    get_home_dir.cache_clear()


class TestGetHomeDir:
    def test_default_fallback(self):
        assert get_home_dir() == Path.home() / ".epicrunner"

    def test_epicrunner_home_override(self, monkeypatch):
        monkeypatch.setenv("EPICRUNNER_HOME", "/tmp/custom-er")
        get_home_dir.cache_clear()
        assert get_home_dir() == Path("/tmp/custom-er")

    def test_xdg_data_home_fallback(self, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", "/tmp/xdg-data")
        get_home_dir.cache_clear()
        assert get_home_dir() == Path("/tmp/xdg-data/epicrunner")

    def test_epicrunner_home_takes_precedence_over_xdg(self, monkeypatch):
        monkeypatch.setenv("EPICRUNNER_HOME", "/tmp/custom-er")
        monkeypatch.setenv("XDG_DATA_HOME", "/tmp/xdg-data")
        get_home_dir.cache_clear()
        assert get_home_dir() == Path("/tmp/custom-er")

    def test_cache_returns_same_object(self):
        assert get_home_dir() is get_home_dir()


class TestPipelinesPath:
    def test_under_home(self, monkeypatch):
        monkeypatch.setenv("EPICRUNNER_HOME", "/tmp/custom-er")
        get_home_dir.cache_clear()
        assert get_pipelines_path() == Path("/tmp/custom-er") / PIPELINES_FILENAME

    def test_explicit_override(self, monkeypatch):
        monkeypatch.setenv("EPICRUNNER_HOME", "/tmp/custom-er")
        monkeypatch.setenv("EPICRUNNER_CONFIG", "/etc/pipes.yaml")
        assert get_pipelines_path() == Path("/etc/pipes.yaml")
