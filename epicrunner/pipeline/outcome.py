"""Explicit success/failure tags.

Steps may return ``Ok(...)`` or ``Err(...)`` instead of a bare state, and
:func:`epicrunner.pipeline.runner.run` returns one of them to its caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from epicrunner.pipeline.step import Step


@dataclass(frozen=True)
class Ok:
    value: Any
    step: Step | None = None

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: Any

    @property
    def is_ok(self) -> bool:
        return False


Outcome = Ok | Err
