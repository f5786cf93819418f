"""Pipeline state: what ran, what is left, what failed, and the shared context."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from epicrunner.pipeline.fault import Fault, FaultOrigin
from epicrunner.pipeline.step import Step

# A pending element is a step (run in order) or a tuple of elements (run in parallel).
PendingItem = Step | tuple

OPTIONS_KEY = "options"


def _as_items(items: Step | Iterable[PendingItem]) -> tuple[PendingItem, ...]:
    if isinstance(items, Step):
        return (items,)
    return tuple(items)


@dataclass(frozen=True)
class PipelineState:
    """Immutable pipeline state; every update returns a new instance."""

    done: tuple[Step, ...] = ()
    pending: tuple[PendingItem, ...] = ()
    faults: tuple[Fault, ...] = ()
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(
        cls,
        pending: Iterable[PendingItem] = (),
        context: dict[str, Any] | None = None,
    ) -> PipelineState:
        return cls(pending=tuple(pending), context=dict(context or {}))

    # -- context ---------------------------------------------------------

    @property
    def options(self) -> dict[str, Any]:
        """Run options (``crash``, ``debug``, ``timeout``...) stored in the context."""
        return self.context.get(OPTIONS_KEY) or {}

    @property
    def ok(self) -> bool:
        return not self.faults

    def get(self, key: str, default: Any = None) -> Any:
        return self.context.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.context[key]

    def assign(self, key: str, value: Any) -> PipelineState:
        return replace(self, context={**self.context, key: value})

    def assign_many(self, **values: Any) -> PipelineState:
        return replace(self, context={**self.context, **values})

    def update(self, key: str, default: Any, fn: Callable[[Any], Any]) -> PipelineState:
        """Set *key* to ``fn(current)``, where a missing key reads as *default*."""
        return self.assign(key, fn(self.context.get(key, default)))

    def with_options(self, **options: Any) -> PipelineState:
        return self.assign(OPTIONS_KEY, {**self.options, **options})

    # -- steps -----------------------------------------------------------

    def prepend(self, items: Step | Iterable[PendingItem]) -> PipelineState:
        return replace(self, pending=_as_items(items) + self.pending)

    def append(self, items: Step | Iterable[PendingItem]) -> PipelineState:
        return replace(self, pending=self.pending + _as_items(items))

    def mark_done(self, step: Step) -> PipelineState:
        return replace(self, done=self.done + (step,))

    # -- faults ----------------------------------------------------------

    def add_fault(self, fault: Fault) -> PipelineState:
        return replace(self, faults=self.faults + (fault,))

    def add_error(
        self,
        step: Step | None,
        error: Any,
        origin: FaultOrigin = FaultOrigin.SIGNALLED,
        trace: str | None = None,
    ) -> PipelineState:
        """Record *error* as a fault produced by *step*, snapshotting this state."""
        return self.add_fault(
            Fault(error=error, step=step, snapshot=self, origin=origin, trace=trace)
        )

    # -- branches --------------------------------------------------------

    def fork(self, pending: Iterable[PendingItem] = ()) -> PipelineState:
        """Return a private copy for a parallel branch.

        The context is deep-copied so branches never mutate each other's data;
        steps and faults are immutable and shared.
        """
        return replace(self, pending=tuple(pending), context=copy.deepcopy(self.context))
