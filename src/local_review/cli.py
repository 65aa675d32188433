"""Command-line interface for local-review."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from local_review import __version__
from local_review.agents.registry import BUILTIN_TASKS, build_tasks
from local_review.config import Config, load_config, validate_config
from local_review.detection.detector import ProjectDetector
from local_review.errors import ConfigError, NoChangesError, RepositoryError
from local_review.models.report import ReviewReport, Verdict
from local_review.orchestrator.pipeline import ReviewPipeline
from local_review.output.formatter import ReportFormatter, format_report_as_json

# Status and log output go to stderr so reports on stdout stay parseable
console = Console(stderr=True)

EXIT_CODES = {
    Verdict.PASSED: 0,
    Verdict.NEEDS_ATTENTION: 1,
    Verdict.FAILED: 2,
}
EXIT_ERROR = 3


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load(config_path: str | None, root: Path | None = None) -> Config:
    try:
        return load_config(Path(config_path) if config_path else None, root=root)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """local-review - Review uncommitted changes before you push."""
    setup_logging(verbose)


@cli.command("review")
@click.argument("path", type=click.Path(file_okay=False, path_type=Path), default=".")
@click.option("--tests", "run_tests", is_flag=True, help="Also run detected test projects")
@click.option(
    "--threshold",
    type=click.IntRange(0, 100),
    default=None,
    help="Minimum confidence for reported findings (default 80)",
)
@click.option(
    "--output", type=click.Choice(["text", "markdown", "json"]), default="text", show_default=True
)
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Ancestor search depth")
def review(
    path: Path,
    run_tests: bool,
    threshold: int | None,
    output: str,
    config_path: str | None,
    max_depth: int | None,
) -> None:
    """Review the uncommitted changes of the working tree at PATH.

    Exit codes: 0 passed, 1 needs attention, 2 failed, 3 could not run.
    """
    config = _load(config_path, root=path)
    if threshold is not None:
        config.aggregator.confidence_threshold = threshold
    if max_depth is not None:
        config.detection.max_ancestor_depth = max_depth

    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(EXIT_ERROR)

    try:
        report = asyncio.run(review_async(path, config, run_tests=run_tests))
    except NoChangesError:
        console.print("[green]No changes to review[/green]")
        sys.exit(0)
    except RepositoryError as e:
        console.print(f"[red]Repository error:[/red] {e}")
        sys.exit(EXIT_ERROR)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(EXIT_ERROR)

    if output == "json":
        print(json.dumps(format_report_as_json(report), indent=2))
    elif output == "markdown":
        print(ReportFormatter().format_report(report))
    else:
        print(ReportFormatter().format_text(report))

    if report.degraded_sources:
        names = ", ".join(o.task_id for o in report.degraded_sources)
        console.print(f"[yellow]⚠️  Degraded analysis sources: {names}[/yellow]")

    sys.exit(EXIT_CODES[report.verdict])


async def review_async(root: Path, config: Config, run_tests: bool = False) -> ReviewReport:
    """Build the pipeline from ``config`` and review ``root``."""
    pipeline = ReviewPipeline.from_config(config, run_tests=run_tests)
    return await pipeline.run(root)


@cli.command("detect")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Ancestor search depth")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def detect(path: Path, max_depth: int | None, config_path: str | None) -> None:
    """Show the project kinds and test targets detected around PATH."""
    config = _load(config_path, root=path)
    detector = ProjectDetector(
        max_depth=max_depth if max_depth is not None else config.detection.max_ancestor_depth,
        test_name_patterns=config.detection.test_name_patterns,
        test_dependency_markers=config.detection.test_dependency_markers,
    )
    context = detector.detect(path)

    table = Table(title=f"Detected projects in {context.root}")
    table.add_column("Kind")
    table.add_column("Descriptor")
    table.add_column("Test targets")

    for solution in sorted(context.solution_paths):
        tests = [p for p in context.dotnet_test_projects if solution.parent in p.parents]
        table.add_row(".NET", str(solution), "\n".join(str(p) for p in tests) or "-")
    for angular_config in sorted(context.angular_config_paths):
        has_tests = angular_config in context.test_project_paths
        table.add_row("Angular", str(angular_config), "test target" if has_tests else "-")

    if context.is_empty:
        console.print("[yellow]No .NET or Angular projects detected[/yellow]")
    else:
        console.print(table)


@cli.command("tasks")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def tasks(config_path: str | None) -> None:
    """List the analysis tasks that a review would run."""
    config = _load(config_path)
    try:
        registered = build_tasks(config)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(EXIT_ERROR)

    table = Table(title="Analysis Tasks")
    table.add_column("Task")
    table.add_column("Type")
    table.add_column("Description")

    for task in registered:
        kind = "built-in" if task.task_id in BUILTIN_TASKS else "remote"
        table.add_row(task.task_id, kind, task.DESCRIPTION)

    console.print(table)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_validate(config_path: str | None) -> None:
    """Validate configuration file."""
    config = _load(config_path)
    errors = validate_config(config)
    try:
        build_tasks(config)
    except ConfigError as e:
        errors.append(str(e))

    if errors:
        console.print("[red]Configuration is invalid:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        sys.exit(1)
    else:
        console.print("[green]✓ Configuration is valid[/green]")


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration."""
    config = _load(config_path)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Enabled Analysis Tasks")
    table.add_column("Name")
    table.add_column("Details")

    for name in config.analysis.enabled_tasks:
        details = ""
        if name == "compliance":
            details = f"{len(config.compliance_rules)} rule(s)"
        table.add_row(name, details)
    for remote in config.remote_tasks:
        table.add_row(remote.name, f"{remote.model} @ {remote.base_url} ({remote.focus})")

    console.print(table)

    console.print(f"\n[bold]Confidence threshold:[/bold] {config.aggregator.confidence_threshold}")
    console.print(f"[bold]Task timeout:[/bold] {config.analysis.task_timeout_seconds}s")
    console.print(f"[bold]Max parallel tasks:[/bold] {config.analysis.max_parallel_tasks}")
    console.print(f"[bold]Ancestor search depth:[/bold] {config.detection.max_ancestor_depth}")
    console.print(f"[bold]Build enabled:[/bold] {config.build.enabled}")
    console.print(f"[bold]Build timeout:[/bold] {config.build.timeout_seconds}s")
    console.print(f"[bold]Test timeout:[/bold] {config.tests.timeout_seconds}s")


if __name__ == "__main__":
    cli()
