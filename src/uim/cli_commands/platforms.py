"""``uim platforms`` — list the platforms a project can build for."""

from __future__ import annotations

import click

from uim.cli_commands._output import print_platforms_table


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def platforms(as_json: bool) -> None:
    """List available platforms."""
    from uim.platforms import PLATFORMS

    print_platforms_table(PLATFORMS, as_json=as_json)
