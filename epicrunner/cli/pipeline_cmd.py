"""Pipeline commands: run, show."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.markup import escape
from rich.pretty import Pretty
from rich.table import Table

from epicrunner.cli._helpers import console, load_config_or_exit, parse_assignments

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to pipelines YAML (default: ~/.epicrunner)"),
]


def run(
    owner: Annotated[str, typer.Argument(help="Owner the pipeline is configured under")],
    name: Annotated[str, typer.Argument(help="Pipeline name")],
    config: ConfigOption = None,
    crash: Annotated[bool, typer.Option(help="Raise on the first failing step")] = False,
    debug: Annotated[bool, typer.Option(help="Emit step diagnostics")] = False,
    verbose: Annotated[bool, typer.Option(help="Full diagnostics and fault traces")] = False,
    on: Annotated[
        str | None, typer.Option("--on", help="Context key to print as the result")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option(help="Seconds to wait for each parallel group")
    ] = None,
    disable: Annotated[
        list[str] | None,
        typer.Option("--disable", help="Unit to skip for this run (repeatable)"),
    ] = None,
    set_: Annotated[
        list[str] | None,
        typer.Option("--set", help="Initial context value in key=value format"),
    ] = None,
) -> None:
    """Run a named pipeline."""
    from epicrunner.pipeline.errors import PipelineError
    from epicrunner.pipeline.fault import render_faults
    from epicrunner.pipeline.outcome import Ok
    from epicrunner.pipeline.runner import run as run_pipeline
    from epicrunner.pipeline.state import PipelineState

    cfg = load_config_or_exit(config)
    context = parse_assignments(set_)

    options: dict[str, Any] = {}
    for key, flag in (("crash", crash), ("debug", debug), ("verbose", verbose)):
        if flag:
            options[key] = True
    if on:
        options["on"] = on
    if timeout is not None:
        options["timeout"] = timeout
    if disable:
        options["disabled"] = disable

    try:
        result = run_pipeline(owner, name, options, config=cfg, context=context)
    except PipelineError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    if isinstance(result, Ok):
        _display_result(result.value)
        console.print(f"\n[green]Pipeline {owner}.{name} succeeded[/green]")
        return

    reason = result.error
    if isinstance(reason, PipelineState):
        reason = render_faults(reason.faults, verbose=verbose)
    console.print(str(reason), markup=False, highlight=False)
    console.print(f"\n[red]Pipeline {owner}.{name} failed[/red]")
    raise typer.Exit(1)


def show(
    owner: Annotated[str, typer.Argument(help="Owner the pipeline is configured under")],
    name: Annotated[str, typer.Argument(help="Pipeline name")],
    config: ConfigOption = None,
) -> None:
    """Validate a named pipeline and display its steps without running it."""
    from epicrunner.pipeline.errors import PipelineLookupError
    from epicrunner.pipeline.loader import load_steps

    cfg = load_config_or_exit(config)
    try:
        steps = load_steps(cfg.lookup(owner, name))
    except PipelineLookupError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    table = Table(title=f"Pipeline: {owner}.{name}")
    table.add_column("#", justify="right")
    table.add_column("Step", style="cyan")
    table.add_column("Mode")
    table.add_column("Options")
    _add_rows(table, steps, prefix="")
    console.print(table)

    if cfg.disabled:
        console.print(f"\n[bold]Disabled:[/bold] {', '.join(cfg.disabled)}")
    console.print("\n[green]Pipeline definition is valid.[/green]")


def _add_rows(table: Table, items: tuple, prefix: str, mode: str = "sequential") -> None:
    from epicrunner.pipeline.step import Step

    for i, item in enumerate(items, 1):
        number = f"{prefix}{i}"
        if isinstance(item, Step):
            opts = ", ".join(f"{k}={v!r}" for k, v in item.options.items()) or "-"
            table.add_row(number, item.name, mode, opts)
        else:
            table.add_row(number, f"[dim]({len(item)} branches)[/dim]", "parallel", "-")
            _add_rows(table, item, prefix=f"{number}.", mode="branch")


def _display_result(value: object) -> None:
    from epicrunner.pipeline.state import OPTIONS_KEY, PipelineState

    if not isinstance(value, PipelineState):
        console.print(Pretty(value))
        return

    table = Table(title="Steps run")
    table.add_column("#", justify="right")
    table.add_column("Step", style="cyan")
    for i, step in enumerate(value.done, 1):
        table.add_row(str(i), step.name)
    console.print(table)

    context = {k: v for k, v in value.context.items() if k != OPTIONS_KEY}
    console.print("[bold]Context:[/bold]")
    console.print(Pretty(context))
