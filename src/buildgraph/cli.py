"""Command-line interface for buildgraph."""

from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import BuildGraphConfig, load_config
from .core.loader import load_manifest
from .core.pipeline import load_project
from .models.project import Project
from .observability import MetricsCollector, ReportGenerator, configure_logging
from .utils.exceptions import BuildGraphError

app = typer.Typer(
    name="buildgraph",
    help="buildgraph - Package dependency graph and build ordering",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


LOG_LEVEL_HELP = "Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR"
LOG_FILTER_HELP = "Filter logs by component (comma-separated, e.g., 'sorter,builder')"


def _prepare(
    config_file: Path | None, log_level: str | None, log_filter: str | None
) -> BuildGraphConfig:
    """Load configuration and configure logging for one command."""
    config = load_config(config_file)

    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
        log_filter=log_filter,
    )
    logger.debug("Configuration loaded", config_file=str(config_file) if config_file else None)
    return config


def _load(
    manifest: Path,
    config_file: Path | None,
    log_level: str | None,
    log_filter: str | None,
    metrics: MetricsCollector,
) -> tuple[BuildGraphConfig, Project]:
    try:
        config = _prepare(config_file, log_level, log_filter)
        declarations = load_manifest(manifest)
        project = load_project(declarations, config=config.resolution, metrics=metrics)
    except (BuildGraphError, FileNotFoundError, ValueError) as e:
        console.print(f"\n[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    return config, project


def _print_project(project: Project) -> None:
    batch_of = {
        package.id: index for index, batch in enumerate(project.batches()) for package in batch
    }

    table = Table(title="Build order")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Package", style="bold")
    table.add_column("Type")
    table.add_column("Batch", justify="right")
    table.add_column("Directory", style="dim")
    table.add_column("Requires")

    for package in project.sorted:
        table.add_row(
            str(package.id),
            escape(package.name),
            package.package_type.value,
            str(batch_of[package.id]),
            escape(package.dirname),
            escape(", ".join(dep.target.name for dep in package.dependencies)),
        )

    console.print(table)

    if project.disabled:
        disabled_table = Table(title="Disabled packages")
        disabled_table.add_column("Package", style="bold red")
        disabled_table.add_column("Type")
        disabled_table.add_column("Reasons")

        for package in project.disabled:
            disabled_table.add_row(
                escape(package.name),
                package.package_type.value,
                escape("; ".join(package.describe_disabled())),
            )

        console.print(disabled_table)

    for cycle in project.cycles:
        console.print(f"[yellow]WARNING:[/yellow] {escape(cycle.describe())}")


@app.command()
def order(
    manifest: Path = typer.Argument(..., help="Package manifest (YAML or JSON)", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    report_file: Path | None = typer.Option(None, "--report", help="Write a JSON report"),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
    log_filter: str | None = typer.Option(None, "--log-filter", help=LOG_FILTER_HELP),
) -> None:
    """
    Print the build order and the disabled packages.

    Examples:
        buildgraph order packages.yaml
        buildgraph order packages.yaml --json
        buildgraph order packages.yaml --report out/order.json
    """
    metrics = MetricsCollector()
    _, project = _load(manifest, config_file, log_level, log_filter, metrics)

    generator = ReportGenerator()
    report = generator.generate_report(project, manifest=manifest, metrics=metrics.get_summary())

    if json_output:
        typer.echo(generator.to_json(report))
    else:
        _print_project(project)
        console.print(
            f"\n[bold]{len(project.sorted)}[/bold] buildable, "
            f"[bold]{len(project.disabled)}[/bold] disabled"
        )

    if report_file:
        generator.write_json_report(report, report_file)
        if not json_output:
            console.print(f"Report written to {escape(str(report_file))}")


@app.command()
def check(
    manifest: Path = typer.Argument(..., help="Package manifest (YAML or JSON)", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    strict: bool = typer.Option(False, "--strict", help="Fail if any package is disabled"),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
    log_filter: str | None = typer.Option(None, "--log-filter", help=LOG_FILTER_HELP),
) -> None:
    """
    Check that a manifest resolves.

    Always fails on duplicate definitions and ambiguous requirements.
    With --strict (or `resolution.strict` in the configuration), disabled
    packages fail the check too.

    Examples:
        buildgraph check packages.yaml
        buildgraph check packages.yaml --strict
    """
    config, project = _load(manifest, config_file, log_level, log_filter, MetricsCollector())
    summary = project.summary()

    table = Table(title="Resolution summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    for key, value in summary.items():
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)

    for package in project.disabled:
        reasons = "; ".join(package.describe_disabled())
        console.print(f"[yellow]WARNING:[/yellow] {escape(package.name)}: {escape(reasons)}")

    if project.disabled and (strict or config.resolution.strict):
        console.print(f"\n[red]ERROR:[/red] {len(project.disabled)} package(s) disabled")
        raise typer.Exit(code=1)

    console.print("\n[green]SUCCESS:[/green] Manifest resolves")


@app.command()
def graph(
    manifest: Path = typer.Argument(..., help="Package manifest (YAML or JSON)", exists=True),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Write DOT here instead of stdout"
    ),
    log_level: str | None = typer.Option(None, "--log-level", help=LOG_LEVEL_HELP),
    log_filter: str | None = typer.Option(None, "--log-filter", help=LOG_FILTER_HELP),
) -> None:
    """
    Render the resolved graph in Graphviz DOT format.

    Examples:
        buildgraph graph packages.yaml | dot -Tsvg > graph.svg
        buildgraph graph packages.yaml -o graph.dot
    """
    _, project = _load(manifest, config_file, log_level, log_filter, MetricsCollector())
    dot = project.to_dot()

    if output_file is None:
        typer.echo(dot)
        return

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(dot + "\n", encoding="utf-8")
    console.print(f"[green]DOT graph written to {escape(str(output_file))}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel.fit(
            "[bold]buildgraph[/bold]\n\n"
            f"Version: [cyan]{__version__}[/cyan]\n\n"
            "[bold]Features:[/bold]\n"
            "- Requirement resolution by provided name\n"
            "- Deterministic dependency-first build order\n"
            "- Cycle and unsatisfied requirement reporting\n"
            "- Optional, link and syntax edges\n"
            "- JSON reports and DOT export",
            title="About",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
