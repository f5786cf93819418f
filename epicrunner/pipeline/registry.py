"""Registry of step units, with lazy entry point discovery.

Units are looked up by reference. A reference is one of:

- a name registered with :meth:`UnitRegistry.register` or ``@register_step``
- an import path, either ``"pkg.module"`` (the module itself is the unit and
  must define ``run``) or ``"pkg.module:attr"``
- the unit object itself

Resolution never raises: a reference that cannot be resolved yields ``None``
and the executor soft-skips the step.
"""

from __future__ import annotations

import importlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from epicrunner.pipeline.step import unit_name

_logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "epicrunner.steps"

_U = TypeVar("_U")


def import_ref(path: str) -> Any | None:
    """Import ``pkg.module`` or ``pkg.module:attr``; ``None`` if it does not exist."""
    module_name, _, attr = path.partition(":")
    if not module_name:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    if not attr:
        return module
    target: Any = module
    for part in attr.split("."):
        target = getattr(target, part, None)
        if target is None:
            return None
    return target


@dataclass
class UnitRegistry:
    """Maps step names to units and tracks administratively disabled units."""

    _units: dict[str, Any] = field(default_factory=dict)
    _disabled: set[str] = field(default_factory=set)
    _discovered: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _discover_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register(self, name: str, unit: Any) -> None:
        with self._lock:
            self._units[name] = unit

    def unregister(self, name: str) -> None:
        with self._lock:
            self._units.pop(name, None)

    def disable(self, name: str) -> None:
        with self._lock:
            self._disabled.add(name)

    def enable(self, name: str) -> None:
        with self._lock:
            self._disabled.discard(name)

    def _discover(self) -> None:
        """Discover units via entry points (lazy, called once)."""
        if self._discovered:
            return

        # Callers block until every entry point is loaded, not just the first caller.
        with self._discover_lock:
            if self._discovered:
                return

            from importlib.metadata import entry_points

            for ep in entry_points(group=ENTRY_POINT_GROUP):
                try:
                    unit = ep.load()
                except Exception:
                    _logger.warning(
                        "Failed to load step unit %s: %s", ep.name, ep, exc_info=True
                    )
                    continue
                with self._lock:
                    self._units.setdefault(ep.name, unit)
            self._discovered = True

    def resolve(self, ref: Any) -> Any | None:
        """Return the unit for *ref*, or ``None`` when it cannot be found."""
        if not isinstance(ref, str):
            return ref
        self._discover()
        with self._lock:
            unit = self._units.get(ref)
        if unit is not None:
            return unit
        return import_ref(ref)

    def is_disabled(self, ref: Any, extra: Iterable[str] = ()) -> bool:
        names = {unit_name(ref)}
        with self._lock:
            if isinstance(ref, str) and ref in self._units:
                names.add(unit_name(self._units[ref]))
            disabled = self._disabled | set(extra)
        return not names.isdisjoint(disabled)

    def names(self) -> list[str]:
        self._discover()
        with self._lock:
            return sorted(self._units)


_registry: UnitRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> UnitRegistry:
    """Get or create the global unit registry."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = UnitRegistry()
            _register_builtins(_registry)
        return _registry


def _register_builtins(registry: UnitRegistry) -> None:
    from epicrunner.steps.transaction import Begin, Commit

    registry.register("begin", Begin)
    registry.register("commit", Commit)


def register_step(name: str, registry: UnitRegistry | None = None) -> Callable[[_U], _U]:
    """Decorator that registers a step unit under *name*.

    Usage::

        @register_step("validate")
        def validate(state, step):
            ...
    """

    def decorator(unit: _U) -> _U:
        (registry or get_registry()).register(name, unit)
        return unit

    return decorator
