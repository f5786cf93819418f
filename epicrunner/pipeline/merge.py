"""Merging the results of parallel branches back into one state.

When the pre-group *base* is known, a side whose value still equals the base
value for a key yields to the other side, so a branch that left a key alone
never undoes another branch's write. Keys both sides changed are combined by
these rules, applied per context key:

- list + list: concatenate, dropping repeated items (first occurrence wins)
- mapping + mapping: deep merge, with the same base check one level down;
  inside mappings the later list replaces the earlier one
- ``None`` on either side: keep the other side
- anything else: the right-hand (later) value wins

Inputs are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from functools import reduce
from typing import Any

from epicrunner.pipeline.state import PipelineState

_MISSING = object()


def _is_list_like(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _unchanged(value: Any, base: Any) -> bool:
    return base is not _MISSING and (value is base or value == base)


def unique(items: Iterable[Any]) -> list[Any]:
    """Order-preserving dedupe using equality, so unhashable items work too."""
    out: list[Any] = []
    for item in items:
        if item not in out:
            out.append(item)
    return out


def merge_values(left: Any, right: Any, base: Any = _MISSING, *, nested: bool = False) -> Any:
    if _unchanged(right, base):
        return left
    if _unchanged(left, base):
        return right
    if left is None:
        return right
    if right is None:
        return left
    if _is_list_like(left) and _is_list_like(right) and not nested:
        merged = unique([*left, *right])
        return tuple(merged) if isinstance(left, tuple) else merged
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return merge_mappings(left, right, base if isinstance(base, Mapping) else None, nested=True)
    return right


def merge_mappings(
    left: Mapping[str, Any],
    right: Mapping[str, Any],
    base: Mapping[str, Any] | None = None,
    *,
    nested: bool = False,
) -> dict[str, Any]:
    result = dict(left)
    for key, value in right.items():
        if key not in result:
            result[key] = value
            continue
        prior = base.get(key, _MISSING) if base is not None else _MISSING
        result[key] = merge_values(result[key], value, prior, nested=nested)
    return result


def merge_states(
    left: PipelineState, right: PipelineState, base: PipelineState | None = None
) -> PipelineState:
    """Merge two branch results forked from *base*; ``pending`` is cleared for the caller."""
    return replace(
        left,
        done=tuple(unique([*left.done, *right.done])),
        pending=(),
        faults=tuple(unique([*left.faults, *right.faults])),
        context=merge_mappings(
            left.context, right.context, base.context if base is not None else None
        ),
    )


def merge_all(states: Iterable[PipelineState], base: PipelineState | None = None) -> PipelineState:
    """Fold branch results left to right, in group order."""
    return reduce(lambda acc, state: merge_states(acc, state, base), states)
