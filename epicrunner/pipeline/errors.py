"""Fatal pipeline errors.

These signal programming or configuration defects and are always raised,
never recorded as faults on the pipeline state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from epicrunner.pipeline.fault import Fault
    from epicrunner.pipeline.step import Step


class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class SpecError(PipelineError):
    """Raised when a pipeline specification contains a malformed element."""


class PipelineLoadError(PipelineError):
    """Raised when a pipeline config file cannot be loaded or validated."""


class PipelineLookupError(PipelineError):
    """Raised when an owner or pipeline name is missing from the config."""


class EntryPointError(PipelineError):
    """Raised when a resolved unit has no ``run`` entry point."""

    def __init__(self, step: Step, unit: Any) -> None:
        self.step = step
        self.unit = unit
        super().__init__(
            f"Could not run step '{step.name}': {type(unit).__name__} {unit!r} "
            "has no callable 'run'"
        )


class InvalidOutcomeError(PipelineError):
    """Raised when a step returns something outside the outcome contract."""

    def __init__(self, step: Step, outcome: Any) -> None:
        self.step = step
        self.outcome = outcome
        super().__init__(f"Invalid step return from '{step.name}': {outcome!r}")


class JoinTimeoutError(PipelineError):
    """Raised when a parallel group does not finish within the timeout."""


class StepFailedError(PipelineError):
    """Raised in crash mode when a step signals failure."""

    def __init__(self, fault: Fault) -> None:
        self.fault = fault
        super().__init__(fault.render())
