"""Helpers for testing code that runs pipelines."""

from __future__ import annotations

from typing import Any

from epicrunner.pipeline.fault import Fault, render_faults
from epicrunner.pipeline.outcome import Err, Ok
from epicrunner.pipeline.state import PipelineState


def describe_error(error: Any) -> str:
    """Render whatever an ``Err`` carries, with tracebacks and context."""
    if isinstance(error, PipelineState):
        return render_faults(error.faults, verbose=True)
    if isinstance(error, Fault):
        return error.render(verbose=True)
    return str(error)


def assert_ok(result: Ok | Err) -> Any:
    """Return the value of an ``Ok``; fail the test with the rendered faults otherwise."""
    if isinstance(result, Ok):
        return result.value
    raise AssertionError(f"Pipeline failed:\n{describe_error(result.error)}")
