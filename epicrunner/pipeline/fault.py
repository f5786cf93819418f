"""Fault records: failures captured while running a pipeline."""

from __future__ import annotations

import traceback
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from rich.pretty import pretty_repr

if TYPE_CHECKING:
    from epicrunner.pipeline.state import PipelineState
    from epicrunner.pipeline.step import Step


class FaultOrigin(StrEnum):
    SIGNALLED = "signalled"
    THROWN = "thrown"
    EXITED = "exited"


def format_error(error: Any) -> str:
    """Format an error payload according to its own convention."""
    if isinstance(error, BaseException):
        return "".join(traceback.format_exception_only(type(error), error)).strip()
    if isinstance(error, str):
        return error
    if isinstance(error, tuple) and len(error) == 2 and isinstance(error[0], str):
        return f"{error[0]}: {error[1]}"
    if isinstance(error, Mapping) and "message" in error:
        return str(error["message"])
    return repr(error)


@dataclass(frozen=True, eq=False)
class Fault:
    """A single failure occurrence.

    ``error`` is the raw payload (an exception or whatever the step signalled),
    ``step`` the descriptor that produced it and ``snapshot`` the pipeline
    state the step was given. ``trace`` holds the formatted traceback for
    thrown faults.
    """

    error: Any
    step: Step | None = None
    snapshot: PipelineState | None = None
    origin: FaultOrigin = FaultOrigin.SIGNALLED
    trace: str | None = None

    @classmethod
    def signalled(
        cls, error: Any, step: Step | None = None, snapshot: PipelineState | None = None
    ) -> Fault:
        return cls(error=error, step=step, snapshot=snapshot, origin=FaultOrigin.SIGNALLED)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        step: Step | None = None,
        snapshot: PipelineState | None = None,
        origin: FaultOrigin = FaultOrigin.THROWN,
    ) -> Fault:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(error=exc, step=step, snapshot=snapshot, origin=origin, trace=trace)

    @property
    def step_name(self) -> str:
        return self.step.name if self.step is not None else "(unknown step)"

    @property
    def banner_kind(self) -> str:
        # Only thrown and exited faults get their own banner; everything else
        # renders as a throw. Display only, classification stays in ``origin``.
        if self.origin is FaultOrigin.THROWN:
            return "error"
        if self.origin is FaultOrigin.EXITED:
            return "exit"
        return "throw"

    @property
    def message(self) -> str:
        return format_error(self.error)

    def render(self, verbose: bool = False) -> str:
        """Return a human-readable report. Pure: no logging, no mutation."""
        lines = [
            f"[{self.origin.value}] step {self.step_name} failed",
            f"  ** ({self.banner_kind}) {self.message}",
        ]
        if verbose:
            if self.trace:
                lines.append("  Traceback:")
                lines.extend(f"    {line}" for line in self.trace.rstrip().splitlines())
            if self.snapshot is not None:
                lines.append("  Context:")
                ctx = pretty_repr(self.snapshot.context, max_width=88)
                lines.extend(f"    {line}" for line in ctx.splitlines())
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Fault({self.origin.value}, {self.step_name}, {self.message!r})"


def render_faults(faults: Iterable[Fault], verbose: bool = False) -> str:
    return "\n".join(fault.render(verbose=verbose) for fault in faults)
