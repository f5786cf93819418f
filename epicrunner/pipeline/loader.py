"""Turn declarative step lists into pipeline states, and load named-pipeline config.

Grammar of a specification::

    spec := [element, ...]
    element := unit                         # Step(unit)
             | (unit, {options})            # Step(unit, options)
             | {unit: ..., options: {...}}  # same, YAML-friendly
             | [element, ...]               # parallel group

Loading is all-or-nothing: the first malformed element raises
:class:`SpecError` before any state is built.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from epicrunner.pipeline.errors import PipelineLoadError, SpecError
from epicrunner.pipeline.state import PendingItem, PipelineState
from epicrunner.pipeline.step import Step

if TYPE_CHECKING:
    from epicrunner.pipeline.schema import PipelineConfig

_MAPPING_KEYS = {"unit", "options", "meta"}


def is_unit_ref(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (bytes, list, tuple, Mapping)) or value is None:
        return False
    return callable(value) or callable(getattr(value, "run", None))


def _load_mapping(item: Mapping[str, Any], path: str) -> Step:
    unknown = set(item) - _MAPPING_KEYS
    if "unit" not in item or unknown:
        raise SpecError(f"Bad step specification at {path}: {dict(item)!r}")
    unit = item["unit"]
    options = item.get("options") or {}
    if not is_unit_ref(unit):
        raise SpecError(f"Bad step unit at {path}: {unit!r}")
    if not isinstance(options, Mapping):
        raise SpecError(f"Step options at {path} must be a mapping, got {options!r}")
    return Step(unit, options, item.get("meta"))


def _load_item(item: Any, path: str) -> PendingItem:
    if isinstance(item, Step):
        return item
    if is_unit_ref(item):
        return Step(item)
    if (
        isinstance(item, tuple)
        and len(item) == 2
        and is_unit_ref(item[0])
        and isinstance(item[1], Mapping)
    ):
        return Step(item[0], item[1])
    if isinstance(item, Mapping):
        return _load_mapping(item, path)
    if isinstance(item, (list, tuple)):
        return _load_group(item, path)
    raise SpecError(f"Bad step specification at {path}: {item!r}")


def _load_group(items: Iterable[Any], path: str) -> tuple[PendingItem, ...]:
    return tuple(_load_item(item, f"{path}[{i}]") for i, item in enumerate(items))


def load_steps(spec: Any) -> tuple[PendingItem, ...]:
    """Load a specification into a tuple of steps and parallel groups."""
    if not isinstance(spec, (list, tuple)):
        raise SpecError(f"Pipeline specification must be a list, got {type(spec).__name__}")
    return _load_group(spec, "")


def from_spec(spec: Any, context: dict[str, Any] | None = None) -> PipelineState:
    """Build a fresh pipeline state whose pending steps come from *spec*."""
    return PipelineState.new(load_steps(spec), context)


def load_config(path: Path | None = None) -> PipelineConfig:
    """Read and validate a named-pipeline YAML file.

    Defaults to :func:`epicrunner.config.get_pipelines_path`.
    """
    from epicrunner._yaml import load_yaml_model
    from epicrunner.config import get_pipelines_path
    from epicrunner.pipeline.schema import PipelineConfig

    return load_yaml_model(path or get_pipelines_path(), PipelineConfig, PipelineLoadError)
