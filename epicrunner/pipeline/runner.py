"""Invocation entry points: run a named or explicit pipeline and tag the result."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from epicrunner._ids import generate_run_id
from epicrunner._log import bind_run
from epicrunner.pipeline.executor import run_pipeline
from epicrunner.pipeline.fault import render_faults
from epicrunner.pipeline.loader import from_spec
from epicrunner.pipeline.outcome import Err, Ok
from epicrunner.pipeline.registry import UnitRegistry
from epicrunner.pipeline.schema import PipelineConfig, RunOptions
from epicrunner.pipeline.state import OPTIONS_KEY, PipelineState

logger = logging.getLogger(__name__)


def resolve_options(
    options: RunOptions | Mapping[str, Any] | None,
    defaults: RunOptions | None = None,
) -> RunOptions:
    """Overlay caller *options* on *defaults*; only explicitly set fields override."""
    base = defaults.model_dump() if defaults is not None else {}
    if isinstance(options, RunOptions):
        override = options.model_dump(exclude_unset=True)
    else:
        override = dict(options or {})
    return RunOptions.model_validate({**base, **override})


def finish(state: PipelineState, options: RunOptions) -> Ok | Err:
    """Turn a finished state into ``Ok(result)`` or ``Err(reason)``."""
    if state.ok:
        return Ok(state.get(options.on) if options.on else state)
    if options.return_full_state_on_error:
        return Err(state)
    return Err(render_faults(state.faults, verbose=options.verbose))


def run_spec(
    spec: list[Any],
    options: RunOptions | Mapping[str, Any] | None = None,
    *,
    registry: UnitRegistry | None = None,
    context: Mapping[str, Any] | None = None,
    defaults: RunOptions | None = None,
    label: str = "pipeline",
) -> Ok | Err:
    """Load *spec*, run it and return the tagged result."""
    opts = resolve_options(options, defaults)
    state = from_spec(spec, {**(context or {}), OPTIONS_KEY: opts.model_dump()})

    with bind_run(generate_run_id()):
        logger.debug("Running %s (%d top-level steps)", label, len(state.pending))
        start = time.monotonic()
        state = run_pipeline(state, registry)
        duration_ms = int((time.monotonic() - start) * 1000)
        if state.ok:
            logger.debug("%s finished in %dms, %d steps done", label, duration_ms, len(state.done))
        else:
            logger.info(
                "%s finished in %dms with %d fault(s)", label, duration_ms, len(state.faults)
            )
    return finish(state, opts)


def run(
    owner: str,
    name: str,
    options: RunOptions | Mapping[str, Any] | None = None,
    *,
    config: PipelineConfig,
    registry: UnitRegistry | None = None,
    context: Mapping[str, Any] | None = None,
) -> Ok | Err:
    """Run the pipeline *name* configured for *owner*.

    A missing owner or name raises :class:`PipelineLookupError`.
    """
    spec = config.lookup(owner, name)
    opts = resolve_options(options, config.defaults)
    if config.disabled:
        opts = opts.model_copy(update={"disabled": [*config.disabled, *opts.disabled]})
    return run_spec(
        spec,
        opts,
        registry=registry,
        context=context,
        label=f"{owner}.{name}",
    )
