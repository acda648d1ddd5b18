"""``opencall call`` — dispatch one request envelope against local operations."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from opencall.cli_commands._output import (
    configure_logging,
    console,
    enable_tracing,
    print_dispatch_result,
    resolve_settings,
    tracing_options,
)


def _read_envelope(envelope: str) -> Any:
    """Parse ENVELOPE as JSON; ``@path`` reads it from a file."""
    text = Path(envelope[1:]).read_text(encoding="utf-8") if envelope.startswith("@") else envelope
    return json.loads(text)


@click.command()
@click.argument("ops_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("envelope")
@click.option("--config", "-c", type=click.Path(exists=True, dir_okay=False), help="YAML settings file.")
@click.option("--call-version", default=None, help="Catalog version to stamp on the registry.")
@click.option("--ext", default=None, help="Extension of operation sources (default .py).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@tracing_options
def call(
    ops_dir: str,
    envelope: str,
    config: str | None,
    call_version: str | None,
    ext: str | None,
    verbose: bool,
    trace: bool,
    otlp_endpoint: str | None,
) -> None:
    """Dispatch ENVELOPE (JSON, or @file) to the operations in OPS_DIR.

    Exits non-zero when the response status is 400 or above.
    """
    from opencall.protocol.dispatcher import OperationDispatcher

    configure_logging(verbose)
    try:
        body = _read_envelope(envelope)
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Cannot read envelope:[/red] {exc}")
        sys.exit(1)

    try:
        settings = resolve_settings(ops_dir, config, call_version, ext, trace=trace, otlp_endpoint=otlp_endpoint)
        enable_tracing(settings)
        built = settings.build()
    except Exception as exc:
        console.print(f"[red]Build error:[/red] {exc}")
        sys.exit(1)

    dispatcher = OperationDispatcher(built.modules)
    result = asyncio.run(dispatcher.dispatch(body))
    print_dispatch_result(result)
    if result.status >= 400:
        sys.exit(1)
