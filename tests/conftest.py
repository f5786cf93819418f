"""Shared test fixtures and helpers."""

from __future__ import annotations

import logging

import pytest

from epicrunner.pipeline import PipelineState, UnitRegistry, from_spec, run_pipeline
from tests import units


@pytest.fixture(autouse=True)
def _reset_calls():
    units.calls.clear()
    yield
    units.calls.clear()


@pytest.fixture()
def registry() -> UnitRegistry:
    """A fresh registry with entry point discovery switched off."""
    reg = UnitRegistry()
    reg._discovered = True
    return reg


@pytest.fixture()
def _caplog_epicrunner(caplog):
    """Attach caplog handler to the ``epicrunner`` logger so records are captured
    even though ``propagate=False``."""
    root = logging.getLogger("epicrunner")
    root.addHandler(caplog.handler)
    yield
    root.removeHandler(caplog.handler)


def run_steps(spec, registry=None, context=None, **options) -> PipelineState:
    """Load *spec*, run it with *options* and return the final state."""
    ctx = dict(context or {})
    ctx["options"] = options
    return run_pipeline(from_spec(spec, ctx), registry)
