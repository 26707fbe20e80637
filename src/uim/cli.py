"""UIM CLI entrypoint."""

from __future__ import annotations

import click

from uim import __version__


@click.group()
@click.version_option(version=__version__, prog_name="uim")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """UIM — build voice platform interaction models from one canonical model."""
    from uim.cli_commands._output import configure_logging

    configure_logging(verbose=verbose)


# Register subcommands
from uim.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
