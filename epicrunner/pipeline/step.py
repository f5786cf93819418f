"""Step descriptors and the unit protocol."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from epicrunner.pipeline.state import PipelineState


@runtime_checkable
class StepUnit(Protocol):
    """Anything that can run a step: ``run(state, step) -> outcome``."""

    def run(self, state: PipelineState, step: Step) -> Any: ...


def unit_name(unit: Any) -> str:
    """Return a stable display name for a unit reference."""
    if isinstance(unit, str):
        return unit
    if inspect.ismodule(unit):
        return unit.__name__
    target = unit if inspect.isclass(unit) or inspect.isroutine(unit) else type(unit)
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or repr(unit)
    return f"{module}:{qualname}" if module else qualname


@dataclass(frozen=True, eq=False)
class Step:
    """One unit of work in a pipeline.

    Equality is identity: the same unit may appear several times in a
    pipeline (with different options) and each occurrence is its own step.
    """

    unit: Any
    options: Mapping[str, Any] = field(default_factory=dict)
    meta: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", dict(self.options))

    @property
    def name(self) -> str:
        return unit_name(self.unit)

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def with_meta(self, meta: Any) -> Step:
        """Return a new descriptor for the same unit and options carrying *meta*."""
        return Step(self.unit, self.options, meta)

    def __repr__(self) -> str:
        opts = f", options={dict(self.options)!r}" if self.options else ""
        return f"Step({self.name}{opts})"
