"""Pipeline module: steps, state, scheduler and named-pipeline config."""

from epicrunner.pipeline.debug import emit, maybe_emit
from epicrunner.pipeline.errors import (
    EntryPointError,
    InvalidOutcomeError,
    JoinTimeoutError,
    PipelineError,
    PipelineLoadError,
    PipelineLookupError,
    SpecError,
    StepFailedError,
)
from epicrunner.pipeline.executor import run_pipeline
from epicrunner.pipeline.fault import Fault, FaultOrigin, render_faults
from epicrunner.pipeline.loader import from_spec, load_config, load_steps
from epicrunner.pipeline.merge import merge_states
from epicrunner.pipeline.outcome import Err, Ok
from epicrunner.pipeline.registry import UnitRegistry, get_registry, register_step
from epicrunner.pipeline.runner import run, run_spec
from epicrunner.pipeline.schema import PipelineConfig, RunOptions
from epicrunner.pipeline.state import PipelineState
from epicrunner.pipeline.step import Step, StepUnit

__all__ = [
    "EntryPointError",
    "Err",
    "Fault",
    "FaultOrigin",
    "InvalidOutcomeError",
    "JoinTimeoutError",
    "Ok",
    "PipelineConfig",
    "PipelineError",
    "PipelineLoadError",
    "PipelineLookupError",
    "PipelineState",
    "RunOptions",
    "SpecError",
    "Step",
    "StepFailedError",
    "StepUnit",
    "UnitRegistry",
    "emit",
    "from_spec",
    "get_registry",
    "load_config",
    "load_steps",
    "maybe_emit",
    "merge_states",
    "register_step",
    "render_faults",
    "run",
    "run_pipeline",
    "run_spec",
]
