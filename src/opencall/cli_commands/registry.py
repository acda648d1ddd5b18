"""``opencall registry`` — build and inspect the operation registry."""

from __future__ import annotations

import sys

import click

from opencall.cli_commands._output import (
    configure_logging,
    console,
    enable_tracing,
    print_registry_table,
    resolve_settings,
    tracing_options,
)


@click.group()
def registry() -> None:
    """Build and inspect the operation registry."""


@registry.command("show")
@click.argument("ops_dir", required=False, type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="YAML settings file.")
@click.option("--call-version", default=None, help="Catalog version to stamp on the registry.")
@click.option("--ext", default=None, help="Extension of operation sources (default .py).")
@click.option("--json", "as_json", is_flag=True, help="Print the canonical registry JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@tracing_options
def show(
    ops_dir: str | None,
    config: str | None,
    call_version: str | None,
    ext: str | None,
    as_json: bool,
    verbose: bool,
    trace: bool,
    otlp_endpoint: str | None,
) -> None:
    """Build the registry from OPS_DIR and print it.

    OPS_DIR defaults to the settings file's ``ops_dir`` or $OPENCALL_OPS_DIR.
    """
    configure_logging(verbose)
    try:
        settings = resolve_settings(ops_dir, config, call_version, ext, trace=trace, otlp_endpoint=otlp_endpoint)
        enable_tracing(settings)
        result = settings.build()
    except Exception as exc:
        console.print(f"[red]Build error:[/red] {exc}")
        sys.exit(1)

    if as_json:
        click.echo(result.json)
        return

    if not result.registry.operations:
        console.print("[yellow]No operations found.[/yellow]")
    print_registry_table(result)
