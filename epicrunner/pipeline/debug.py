"""Diagnostics for pipeline runs.

Nothing here affects execution: the executor and step authors call
:func:`maybe_emit` opportunistically and ignore the result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from rich.pretty import pretty_repr

if TYPE_CHECKING:
    from epicrunner.pipeline.state import PipelineState
    from epicrunner.pipeline.step import Step

logger = logging.getLogger(__name__)

_MAX_LENGTH = 20
_MAX_STRING = 200


def merged_options(
    context_options: Mapping[str, Any] | None,
    step_options: Mapping[str, Any] | None,
) -> dict[str, Any]:
    return {**(context_options or {}), **(step_options or {})}


def _format(payload: Any, verbose: bool) -> str:
    if isinstance(payload, str):
        return payload
    if verbose:
        return pretty_repr(payload)
    return pretty_repr(payload, max_length=_MAX_LENGTH, max_string=_MAX_STRING)


def maybe_emit(
    context_options: Mapping[str, Any] | None,
    step_options: Mapping[str, Any] | None,
    payload: Any,
    label: str = "",
) -> None:
    """Log *payload*: at WARNING when ``debug`` is set, at DEBUG otherwise.

    Step options override run options. Payloads are abbreviated unless
    ``verbose`` is set too.
    """
    opts = merged_options(context_options, step_options)
    level = logging.WARNING if opts.get("debug") else logging.DEBUG
    if not logger.isEnabledFor(level):
        return
    text = _format(payload, verbose=bool(opts.get("verbose")))
    if label:
        logger.log(level, "%s: %s", label, text)
    else:
        logger.log(level, "%s", text)


def emit(state: PipelineState | None, step: Step | None, payload: Any, label: str = "") -> None:
    """Convenience form of :func:`maybe_emit` for use inside a step's ``run``."""
    maybe_emit(
        state.options if state is not None else None,
        step.options if step is not None else None,
        payload,
        label,
    )
