"""``uim build`` — build platform files from the canonical models, or reverse."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from uim.cli_commands._output import RichTaskReporter, console, print_error


@click.command()
@click.option(
    "--locale", "-l", "locales", multiple=True, help="Locale to build (repeatable)."
)
@click.option(
    "--platform", "-p", "platforms", multiple=True, help="Platform to build (repeatable)."
)
@click.option("--clean", is_flag=True, help="Delete the platform directories before building.")
@click.option("--force", is_flag=True, help="Overwrite existing models on reverse builds.")
@click.option("--reverse", "-r", is_flag=True, help="Import platform files into models.")
@click.option("--project-id", default=None, help="Google Conversational Actions project id.")
@click.option("--build-directory", default=None, help="Override the build directory.")
@click.option("--stage", default=None, help="Configuration stage to apply.")
@click.option(
    "--on-existing",
    type=click.Choice(["backup", "overwrite", "cancel"]),
    default="backup",
    show_default=True,
    help="What a reverse build does with existing model files.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Maximum number of locales built at once.",
)
@click.option("--telemetry", is_flag=True, help="Enable telemetry.")
@click.option(
    "--project",
    "project_dir",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="Project directory.",
)
def build(
    locales: tuple[str, ...],
    platforms: tuple[str, ...],
    clean: bool,
    force: bool,
    reverse: bool,
    project_id: str | None,
    build_directory: str | None,
    stage: str | None,
    on_existing: str,
    concurrency: int,
    telemetry: bool,
    project_dir: str,
) -> None:
    """Build the interaction models of the project in the current directory."""
    from uim.config import TelemetrySettings
    from uim.context import BuildFlags
    from uim.driver import BuildDriver
    from uim.errors import UimError
    from uim.utils.telemetry import configure_telemetry

    flags = BuildFlags(
        locales=list(locales),
        platforms=list(platforms),
        clean=clean,
        force=force,
        reverse=reverse,
        project_id=project_id,
        build_directory=build_directory,
        stage=stage,
        on_existing=on_existing,  # type: ignore[arg-type]
        concurrency=concurrency,
    )
    driver = BuildDriver(Path(project_dir), flags, reporter=RichTaskReporter())

    try:
        project = driver.load_project()
    except UimError as exc:
        print_error(exc)
        sys.exit(1)

    settings = project.config.telemetry
    if telemetry:
        settings = (settings or TelemetrySettings()).model_copy(update={"enabled": True})
    if settings is not None:
        try:
            configure_telemetry(settings)
        except ImportError as exc:
            console.print(f"[red]Telemetry error:[/red] {escape(str(exc))}")
            sys.exit(1)

    try:
        context = asyncio.run(driver.run())
    except UimError as exc:
        print_error(exc)
        sys.exit(1)

    for error in context.errors:
        print_error(error)

    if not context.succeeded:
        console.print("[red]Build failed.[/red]")
        sys.exit(1)

    action = "Reverse build" if reverse else "Build"
    console.print(f"[green]{action} completed.[/green]")
