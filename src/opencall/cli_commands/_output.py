"""Shared CLI output formatters and option handling."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.table import Table

from opencall.config import RegistrySettings, SettingsLoader

if TYPE_CHECKING:
    from opencall.protocol.envelope import DispatchResult
    from opencall.registry.models import BuildResult

console = Console()


def resolve_settings(
    ops_dir: str | None,
    config: str | None,
    call_version: str | None,
    ext: str | None,
    *,
    trace: bool = False,
    otlp_endpoint: str | None = None,
) -> RegistrySettings:
    """Merge a settings file, the environment and command-line options.

    Command-line values win, then the settings file, then the environment.
    ``--trace`` or ``--otlp-endpoint`` turn span export on.
    """
    overrides = {"ops_dir": ops_dir, "call_version": call_version, "ext": ext}
    if config is None:
        settings = RegistrySettings.from_env(**overrides)
    else:
        settings = SettingsLoader(Path(config)).load()
        update = {key: value for key, value in overrides.items() if value is not None}
        if update:
            settings = RegistrySettings.model_validate({**settings.model_dump(), **update})

    if trace or otlp_endpoint:
        current = settings.telemetry
        telemetry = current.model_copy(
            update={
                "enabled": True,
                "export_to_console": trace or (current.enabled and current.export_to_console),
                "otlp_endpoint": otlp_endpoint or current.otlp_endpoint,
            }
        )
        settings = settings.model_copy(update={"telemetry": telemetry})
    return settings


def tracing_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Add ``--trace`` and ``--otlp-endpoint`` to a command."""
    command = click.option("--otlp-endpoint", default=None, help="Export spans via OTLP/gRPC to this endpoint.")(command)
    return click.option("--trace", is_flag=True, help="Print spans to the console.")(command)


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def print_registry_table(result: BuildResult) -> None:
    """Pretty-print the operations of a built registry as a table."""
    table = Table(title=f"Operations (callVersion {result.registry.call_version})")
    table.add_column("Op", style="cyan")
    table.add_column("Execution")
    table.add_column("Timeout (ms)", justify="right")
    table.add_column("Scopes")
    table.add_column("Cache")
    table.add_column("Flags")
    table.add_column("Sunset")

    for entry in result.registry.operations:
        flags = [
            name
            for name, enabled in (
                ("sideEffecting", entry.side_effecting),
                ("idempotencyRequired", entry.idempotency_required),
                ("deprecated", bool(entry.deprecated)),
            )
            if enabled
        ]
        sunset = entry.sunset or "-"
        if entry.replacement:
            sunset += f" → {entry.replacement}"
        table.add_row(
            entry.op,
            entry.execution_model,
            str(entry.max_sync_ms),
            " ".join(entry.auth_scopes) or "-",
            entry.caching_policy,
            ", ".join(flags) or "-",
            sunset,
        )

    console.print(table)
    console.print(f"ETag: {result.etag}", highlight=False)


def print_dispatch_result(result: DispatchResult) -> None:
    """Print the status line and the JSON response body."""
    style = "green" if result.status < 400 else "red"
    console.print(f"[{style}]HTTP {result.status}[/{style}]")
    console.print_json(result.body.model_dump_json(by_alias=True))


def enable_tracing(settings: RegistrySettings) -> None:
    """Apply the settings' telemetry section; exit when the SDK is missing."""
    try:
        settings.apply_telemetry()
    except ImportError as exc:
        console.print(f"[red]Telemetry error:[/red] {exc}")
        sys.exit(1)
