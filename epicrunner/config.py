"""Centralized path configuration for epicrunner.

Respects ``EPICRUNNER_HOME`` env var, then ``XDG_DATA_HOME/epicrunner``,
and falls back to ``~/.epicrunner``. ``EPICRUNNER_CONFIG`` overrides the
location of the named-pipeline file outright.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

PIPELINES_FILENAME = "pipelines.yaml"


@lru_cache(maxsize=1)
def get_home_dir() -> Path:
    """Return the epicrunner data directory.

    Resolution order:
    1. ``EPICRUNNER_HOME`` environment variable
    2. ``XDG_DATA_HOME/epicrunner`` (if ``XDG_DATA_HOME`` is set)
    3. ``~/.epicrunner``
    """
    env = os.environ.get("EPICRUNNER_HOME")
    if env:
        return Path(env)
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "epicrunner"
    return Path.home() / ".epicrunner"


def get_pipelines_path() -> Path:
    """Return the default named-pipeline config file."""
    explicit = os.environ.get("EPICRUNNER_CONFIG")
    if explicit:
        return Path(explicit)
    return get_home_dir() / PIPELINES_FILENAME
