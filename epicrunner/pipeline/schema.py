"""Pydantic models for run options and named-pipeline configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from epicrunner.pipeline.errors import PipelineLookupError, SpecError


class RunOptions(BaseModel):
    """Per-invocation options. Unknown keys are kept and passed through to steps."""

    model_config = ConfigDict(extra="allow")

    crash: bool = False
    debug: bool = False
    verbose: bool = False
    on: str | None = None
    timeout: float | None = Field(default=1000.0, gt=0)
    return_full_state_on_error: bool = False
    disabled: list[str] = []
    max_parallel: int | None = Field(default=None, ge=1)


class PipelineConfig(BaseModel):
    """Named pipelines grouped by owner.

    Example YAML::

        pipelines:
          posts:
            publish:
              - myapp.steps:validate
              - [myapp.steps:index, myapp.steps:notify]
              - unit: myapp.steps:insert
                options: {key: post}
        disabled: [myapp.steps:notify]
    """

    pipelines: dict[str, dict[str, list[Any]]] = {}
    disabled: list[str] = []
    defaults: RunOptions = RunOptions()

    @model_validator(mode="after")
    def _validate_specs(self) -> PipelineConfig:
        from epicrunner.pipeline.loader import load_steps

        for owner, named in self.pipelines.items():
            for name, spec in named.items():
                try:
                    load_steps(spec)
                except SpecError as e:
                    raise ValueError(f"Pipeline '{owner}.{name}': {e}") from None
        return self

    def lookup(self, owner: str, name: str) -> list[Any]:
        """Return the raw specification for *owner*/*name*."""
        named = self.pipelines.get(owner)
        if named is None:
            raise PipelineLookupError(f"No pipelines configured for owner '{owner}'")
        if name not in named:
            raise PipelineLookupError(f"Pipeline '{name}' not found for owner '{owner}'")
        return named[name]
