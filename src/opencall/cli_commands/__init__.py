"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from opencall.cli_commands.call import call
    from opencall.cli_commands.registry import registry

    cli.add_command(registry)
    cli.add_command(call)
