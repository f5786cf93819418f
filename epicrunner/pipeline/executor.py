"""Scheduler for pipeline states: sequential steps and parallel groups."""

from __future__ import annotations

import contextvars
import inspect
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Any

from epicrunner.pipeline.debug import maybe_emit
from epicrunner.pipeline.errors import (
    EntryPointError,
    InvalidOutcomeError,
    JoinTimeoutError,
    PipelineError,
    SpecError,
    StepFailedError,
)
from epicrunner.pipeline.fault import Fault
from epicrunner.pipeline.merge import merge_all
from epicrunner.pipeline.outcome import Err, Ok
from epicrunner.pipeline.registry import UnitRegistry, get_registry
from epicrunner.pipeline.state import PipelineState
from epicrunner.pipeline.step import Step, StepUnit

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1000.0

_active_registry: contextvars.ContextVar[UnitRegistry | None] = contextvars.ContextVar(
    "epicrunner_registry", default=None
)


def current_registry() -> UnitRegistry:
    """Registry of the run in progress (or the global one outside a run)."""
    return _active_registry.get() or get_registry()


def run_pipeline(state: PipelineState, registry: UnitRegistry | None = None) -> PipelineState:
    """Run every pending step of *state* and return the final state.

    Signalled and thrown step failures are recorded in ``faults`` and the run
    carries on, unless the ``crash`` option is set. Fatal conditions
    (:class:`PipelineError`) are always raised.
    """
    token = _active_registry.set(registry or current_registry())
    try:
        return _run(state)
    finally:
        _active_registry.reset(token)


def _run(state: PipelineState) -> PipelineState:
    while state.pending:
        head, rest = state.pending[0], state.pending[1:]
        state = replace(state, pending=rest)
        if isinstance(head, Step):
            state = _run_step(head, state)
        elif isinstance(head, (tuple, list)):
            state = _run_group(tuple(head), state)
        else:
            raise SpecError(f"Invalid pending element in pipeline: {head!r}")
    return state


def entry_point(step: Step, unit: Any) -> Callable[[PipelineState, Step], Any]:
    """Return the callable that runs *unit*, or raise :class:`EntryPointError`."""
    if inspect.isclass(unit):
        try:
            unit = unit()
        except TypeError as e:
            raise EntryPointError(step, unit) from e
    if isinstance(unit, StepUnit) and callable(unit.run):
        return unit.run
    if callable(unit) and not inspect.ismodule(unit):
        return unit
    raise EntryPointError(step, unit)


def _run_step(step: Step, state: PipelineState) -> PipelineState:
    options = state.options
    registry = current_registry()

    unit = registry.resolve(step.unit)
    if unit is None:
        logger.warning("Skipping step %s, unit not found", step.name)
        return state
    if registry.is_disabled(step.unit, options.get("disabled") or ()):
        maybe_emit(options, step.options, step.name, "Skipping step, unit disabled")
        return state

    run = entry_point(step, unit)
    maybe_emit(options, step.options, step.name, "Running step")

    if options.get("crash"):
        return _apply_outcome(step, state, run(state, step), crash=True)

    try:
        outcome = run(state, step)
    except PipelineError:
        raise
    except Exception as e:
        logger.debug("Step %s raised %s", step.name, type(e).__name__)
        return state.add_fault(Fault.from_exception(e, step=step, snapshot=state))

    return _apply_outcome(step, state, outcome, crash=False)


def _apply_outcome(step: Step, state: PipelineState, outcome: Any, crash: bool) -> PipelineState:
    """Fold a step's return value into the state, per the step contract."""
    if isinstance(outcome, PipelineState):
        return outcome.mark_done(step)
    if isinstance(outcome, Step):
        return state.mark_done(outcome)
    if isinstance(outcome, Ok):
        if isinstance(outcome.value, PipelineState):
            return outcome.value.mark_done(outcome.step or step)
        if isinstance(outcome.value, Step) and outcome.step is None:
            return state.mark_done(outcome.value)
        raise InvalidOutcomeError(step, outcome)

    if isinstance(outcome, Fault):
        fault = outcome
    elif isinstance(outcome, Err):
        if isinstance(outcome.error, Fault):
            fault = outcome.error
        else:
            fault = Fault.signalled(outcome.error, step=step, snapshot=state)
    else:
        raise InvalidOutcomeError(step, outcome)

    if crash:
        raise StepFailedError(fault)
    logger.debug("Step %s signalled failure: %s", step.name, fault.message)
    return state.add_fault(fault)


def _run_group(group: tuple, state: PipelineState) -> PipelineState:
    """Run each element of *group* on its own copy of *state*, then merge."""
    if not group:
        return state

    options = state.options
    timeout = options.get("timeout", DEFAULT_TIMEOUT)
    workers = min(len(group), options.get("max_parallel") or len(group))

    base = replace(state, pending=())
    branches = [base.fork(pending=(element,)) for element in group]
    maybe_emit(options, None, len(branches), "Running parallel branches")

    pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="epicrunner-branch")
    try:
        futures = [
            pool.submit(contextvars.copy_context().run, _run, branch) for branch in branches
        ]
        _, not_done = wait(futures, timeout=timeout)
    finally:
        # Branches still running are abandoned, not cancelled.
        pool.shutdown(wait=False)

    if not_done:
        raise JoinTimeoutError(
            f"{len(not_done)} of {len(futures)} parallel branches "
            f"did not finish within {timeout}s"
        )

    merged = merge_all((future.result() for future in futures), base)
    maybe_emit(options, None, sorted(merged.context), "Parallel branches merged, context keys")
    return replace(merged, pending=state.pending)
