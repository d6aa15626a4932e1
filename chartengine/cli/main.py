"""
ChartEngine - CLI Application
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from chartengine.config import settings
from chartengine.core.exceptions import ChartEngineError
from chartengine.logger import logger
from chartengine.indicators import INDICATOR_REGISTRY, describe_indicator
from chartengine.chart import ChartSession, compute_layout
from chartengine.data import load_ohlc_csv

# Create Typer app
app = typer.Typer(
    name="chartengine",
    help="ChartEngine technical-analysis CLI",
    add_completion=False,
)

# Rich console for beautiful output
console = Console()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit")
):
    """
    ChartEngine CLI

    Compute indicator overlays and pane layouts from OHLC data.
    """
    if version:
        console.print(f"[cyan]{settings.APP_NAME}[/cyan] v{settings.APP_VERSION}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        # Show welcome message when no command is provided
        console.print(Panel.fit(
            f"[bold cyan]{settings.APP_NAME}[/bold cyan]\n"
            f"[dim]Version {settings.APP_VERSION}[/dim]\n\n"
            f"[yellow]Use --help to see available commands[/yellow]",
            box=box.ROUNDED,
            border_style="cyan"
        ))


@app.command("list")
def list_command():
    """
    List registered indicators
    """
    table = Table(title="Indicators", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Category", style="magenta")
    table.add_column("Pane", style="yellow")

    for descriptor in INDICATOR_REGISTRY.descriptors():
        table.add_row(
            descriptor.id,
            descriptor.display_name,
            descriptor.category.value,
            "own" if descriptor.wants_own_pane else "main",
        )

    console.print(table)
    logger.debug("List command executed")


@app.command()
def describe(indicator_id: str = typer.Argument(..., help="Indicator id (e.g. sma)")):
    """
    Show an indicator's parameters
    """
    descriptor = describe_indicator(indicator_id)
    if descriptor is None:
        console.print(f"[red]✗[/red] Unknown indicator: {indicator_id}")
        console.print(f"[dim]Available: {', '.join(INDICATOR_REGISTRY.list_ids())}[/dim]")
        raise typer.Exit(code=1)

    table = Table(title=f"{descriptor.display_name} ({descriptor.id})", box=box.ROUNDED)
    table.add_column("Parameter", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Default", style="green")
    table.add_column("Range", style="yellow")
    table.add_column("Label")

    for spec in descriptor.parameters:
        bounds = ""
        if spec.minimum is not None or spec.maximum is not None:
            bounds = f"{spec.minimum} .. {spec.maximum}"
        table.add_row(spec.name, spec.kind.value, str(spec.default), bounds, spec.label)

    console.print(table)
    if descriptor.description:
        console.print(f"[dim]{descriptor.description}[/dim]")


def _parse_value(raw: str) -> Any:
    """Interpret a CLI value as JSON (numbers, booleans) or fall back to a string"""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_params(params: List[str]) -> Dict[str, Dict[str, Any]]:
    """Parse ID.NAME=VALUE options into an {id: {name: value}} map"""
    parsed: Dict[str, Dict[str, Any]] = {}
    for item in params:
        key, sep, raw = item.partition("=")
        indicator_id, dot, name = key.partition(".")
        if not sep or not dot or not indicator_id or not name:
            raise typer.BadParameter(f"Expected ID.NAME=VALUE, got '{item}'", param_hint="--param")
        parsed.setdefault(indicator_id, {})[name] = _parse_value(raw)
    return parsed


@app.command()
def compute(
    csv_file: Path = typer.Argument(..., help="OHLC CSV file (time,open,high,low,close)"),
    indicators: List[str] = typer.Option([], "--indicator", "-i", help="Indicator id (repeatable)"),
    params: List[str] = typer.Option([], "--param", "-p", help="Parameter as ID.NAME=VALUE (repeatable)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON {id: {name: value}} configuration"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON payload to this file"),
):
    """
    Compute indicators over a CSV file and summarize series and panes
    """
    try:
        points = load_ohlc_csv(csv_file)
    except (FileNotFoundError, ChartEngineError) as e:
        console.print(f"[red]✗[/red] Error: {e}")
        logger.error(f"Failed to load {csv_file}: {e}")
        raise typer.Exit(code=1)

    configuration: Dict[str, Dict[str, Any]] = {}
    if config is not None:
        try:
            configuration = json.loads(config.read_text())
        except (OSError, json.JSONDecodeError) as e:
            console.print(f"[red]✗[/red] Invalid configuration: {e}")
            raise typer.Exit(code=1)

    overrides = _parse_params(params)
    for indicator_id in indicators:
        configuration.setdefault(indicator_id, {})
    for indicator_id, values in overrides.items():
        configuration.setdefault(indicator_id, {}).update(values)

    for indicator_id in configuration:
        if not INDICATOR_REGISTRY.is_registered(indicator_id):
            console.print(f"[yellow]⚠[/yellow] Skipping unknown indicator: {indicator_id}")

    session = ChartSession(points)
    session.load_configuration(configuration)

    table = Table(title=f"Series ({len(points)} bars)", box=box.ROUNDED)
    table.add_column("Indicator", style="cyan")
    table.add_column("Series", style="green")
    table.add_column("Pane", style="yellow")
    table.add_column("Defined", justify="right")
    table.add_column("Last", justify="right")

    for instance in session.instances():
        for s in instance.series:
            defined = s.defined()
            last = next((v for v in reversed(s.values) if v is not None), None)
            table.add_row(
                instance.id,
                s.label,
                s.pane,
                str(len(defined)),
                f"{last:.4f}" if last is not None else "-",
            )
    console.print(table)
    _print_layout(session.layout())

    if output is not None:
        output.write_text(session.payload().model_dump_json(indent=2))
        console.print(f"[green]✓[/green] Payload written to {output}")
        logger.info(f"Payload written to {output}")


@app.command()
def layout(indicator_ids: List[str] = typer.Argument(..., help="Indicator ids in selection order")):
    """
    Show pane domains for a selection of indicators
    """
    descriptors = []
    for indicator_id in indicator_ids:
        descriptor = describe_indicator(indicator_id)
        if descriptor is None:
            console.print(f"[yellow]⚠[/yellow] Skipping unknown indicator: {indicator_id}")
            continue
        descriptors.append(descriptor)

    try:
        pane_layout = compute_layout(descriptors)
    except ChartEngineError as e:
        console.print(f"[red]✗[/red] Error: {e}")
        raise typer.Exit(code=1)
    _print_layout(pane_layout)


def _print_layout(pane_layout):
    table = Table(title="Panes", box=box.ROUNDED)
    table.add_column("Pane", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Domain", style="yellow")
    table.add_column("Height", justify="right")
    table.add_column("Axes", style="magenta")

    for pane in pane_layout.panes:
        table.add_row(
            pane.id,
            pane.title,
            f"{pane.domain[0]:.3f} - {pane.domain[1]:.3f}",
            f"{pane.height:.3f}",
            f"{pane.value_axis}/{pane.time_axis}",
        )
    console.print(table)
    start, end = pane_layout.time_axis_domain
    console.print(f"[dim]Time axis strip: {start:.3f} - {end:.3f}[/dim]")


if __name__ == "__main__":
    app()
