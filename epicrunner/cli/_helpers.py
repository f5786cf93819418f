"""Shared CLI helpers: console, config loading and ``key=value`` parsing."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
import yaml
from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from epicrunner.pipeline.schema import PipelineConfig

console = Console()


def load_config_or_exit(path: Path | None) -> PipelineConfig:
    """Load the named-pipeline config, printing the error and exiting on failure."""
    from epicrunner.pipeline.errors import PipelineLoadError
    from epicrunner.pipeline.loader import load_config

    try:
        return load_config(path)
    except PipelineLoadError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


def parse_assignments(items: list[str] | None, flag: str = "--set") -> dict[str, Any]:
    """Parse ``key=value`` pairs; values are read as YAML scalars (``1``, ``true``...)."""
    values: dict[str, Any] = {}
    for item in items or []:
        if "=" not in item:
            console.print(
                f"[red]Error:[/red] Invalid {flag} format: '{escape(item)}'. Use key=value."
            )
            raise typer.Exit(1)
        key, raw = item.split("=", 1)
        try:
            values[key] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            values[key] = raw
    return values
