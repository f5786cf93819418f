"""Transaction steps: ``begin`` runs everything up to the next ``commit`` in one transaction.

The transaction itself is a context manager supplied through the ``transaction``
step option: a zero-argument callable (or an import path to one) returning a
context manager that commits on normal exit and rolls back when an exception
leaves the block, e.g. SQLAlchemy's ``session.begin``. Without the option the
steps run inside :func:`contextlib.nullcontext`.

Example spec::

    [
        ("begin", {"transaction": "myapp.db:transaction"}),
        insert_post,
        insert_tags,
        "commit",
        notify,
    ]
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from epicrunner.pipeline.debug import emit
from epicrunner.pipeline.errors import SpecError
from epicrunner.pipeline.executor import current_registry, run_pipeline
from epicrunner.pipeline.registry import import_ref
from epicrunner.pipeline.state import PendingItem, PipelineState
from epicrunner.pipeline.step import Step


class _Rollback(Exception):
    """Raised through the transaction context manager to make it roll back."""

    def __init__(self, state: PipelineState) -> None:
        self.state = state
        super().__init__(f"rollback: {len(state.faults)} fault(s)")


def _is_commit(item: PendingItem) -> bool:
    if not isinstance(item, Step):
        return False
    unit = current_registry().resolve(item.unit)
    return unit is Commit or isinstance(unit, Commit)


def split_at_commit(
    pending: tuple[PendingItem, ...],
) -> tuple[tuple[PendingItem, ...], tuple[PendingItem, ...]]:
    """Split *pending* into the steps before the first commit and those after it."""
    for i, item in enumerate(pending):
        if _is_commit(item):
            return pending[:i], pending[i + 1 :]
    return pending, ()


def _transaction_factory(step: Step) -> Callable[[], Any]:
    factory = step.option("transaction")
    if factory is None:
        return contextlib.nullcontext
    if isinstance(factory, str):
        resolved = import_ref(factory)
        if resolved is None:
            raise SpecError(f"Transaction factory not found: {factory!r}")
        factory = resolved
    if not callable(factory):
        raise SpecError(f"Transaction factory is not callable: {factory!r}")
    return factory


class Begin:
    def run(self, state: PipelineState, step: Step) -> PipelineState:
        body, rest = split_at_commit(state.pending)
        nested = replace(state, pending=body)

        # With faults already recorded nothing downstream is expected to write,
        # so the nested steps run without a transaction.
        if state.faults:
            emit(state, step, len(state.faults), "Not entering transaction because of faults")
            return replace(run_pipeline(nested), pending=rest)

        factory = _transaction_factory(step)
        emit(state, step, len(body), "Entering transaction, steps")
        try:
            with factory():
                result = run_pipeline(nested)
                if result.faults:
                    raise _Rollback(result)
        except _Rollback as rb:
            emit(state, step, len(rb.state.faults), "Rolled back because of faults")
            result = rb.state
        else:
            emit(state, step, len(result.done) - len(state.done), "Committed, steps")
        return replace(result, pending=rest)


class Commit:
    """Marker closing a ``begin`` block. Reaching it on its own is an error."""

    def run(self, state: PipelineState, step: Step) -> PipelineState:
        raise RuntimeError(f"Commit without Begin (done: {len(state.done)} steps)")
