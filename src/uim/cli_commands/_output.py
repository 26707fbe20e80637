"""Shared CLI output formatters."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from uim.core.tasks import Task
    from uim.errors import UimError
    from uim.platforms.base import PlatformPlugin

console = Console()


def configure_logging(*, verbose: bool = False) -> None:
    """Route ``uim`` log records to the console."""
    root = logging.getLogger("uim")
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(console=console, show_time=False, show_path=verbose))


class RichTaskReporter:
    """Prints task progress as an indented tree."""

    def __init__(self, out: Console | None = None) -> None:
        self.console = out or console

    def task_started(self, task: Task, depth: int) -> None:
        # Groups get a heading; leaves are printed once they finish
        if task.children:
            self.console.print(f"{_indent(depth)}[bold]{escape(task.title)}[/bold]")

    def task_succeeded(self, task: Task, depth: int) -> None:
        if not task.children:
            self.console.print(f"{_indent(depth)}[green]✔[/green] {escape(task.title)}")

    def task_failed(self, task: Task, depth: int, error: Exception | None) -> None:
        detail = f": {escape(str(error))}" if error else ""
        self.console.print(f"{_indent(depth)}[red]✖[/red] {escape(task.title)}{detail}")

    def task_skipped(self, task: Task, depth: int) -> None:
        self.console.print(f"{_indent(depth)}[dim]– {escape(task.title)} (skipped)[/dim]")


def print_error(error: UimError) -> None:
    """Print a build error with its kind, plugin and hint."""
    plugin = f" ({error.plugin_id})" if error.plugin_id else ""
    console.print(f"[red]{error.kind}{plugin}:[/red] {escape(error.message)}")
    if error.hint:
        console.print(f"  [yellow]hint:[/yellow] {escape(error.hint)}")


def print_platforms_table(
    platforms: dict[str, type[PlatformPlugin]], *, as_json: bool = False
) -> None:
    """Pretty-print the available platforms."""
    if as_json:
        data = [
            {
                "id": plugin.id,
                "name": plugin.name,
                "directory": plugin.platform_directory,
                "locales": list(plugin.supported_locales),
                "generic_locales": plugin.generic_locales,
            }
            for plugin in platforms.values()
        ]
        console.print_json(json.dumps(data))
        return

    table = Table(title="Platforms")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Directory")
    table.add_column("Locales", justify="right")

    for plugin in platforms.values():
        table.add_row(
            plugin.id,
            plugin.name,
            plugin.platform_directory,
            str(len(plugin.supported_locales)),
        )

    console.print(table)


def _indent(depth: int) -> str:
    return "  " * depth
