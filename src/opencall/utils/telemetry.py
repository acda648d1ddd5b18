"""OpenTelemetry tracing helpers for OpenCALL.

Thin wrapper around the OpenTelemetry API so registry and dispatch code can
call ``get_tracer()`` without caring whether the SDK is installed.  Without a
configured SDK the API hands out no-op tracers.

Usage::

    from opencall.utils.telemetry import get_tracer

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("opencall.dispatch") as span:
        span.set_attribute(ATTR_OP, "v1:greeting.hello")

To export real spans, call :func:`configure_telemetry` once at startup
(requires the ``otel`` extra: ``pip install opencall[otel]``).
"""

from __future__ import annotations

import importlib
from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Semantic attribute keys used throughout OpenCALL instrumentation
# ---------------------------------------------------------------------------

ATTR_OP = "opencall.op"
ATTR_STATUS = "opencall.status"
ATTR_STATE = "opencall.state"
ATTR_ERROR_CODE = "opencall.error.code"
ATTR_CALL_VERSION = "opencall.call_version"
ATTR_OPERATION_COUNT = "opencall.operation_count"

_INSTRUMENTATION_NAME = "opencall"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return a :class:`~opentelemetry.trace.Tracer` for *name*.

    If the OpenTelemetry SDK has not been configured the returned tracer
    is a no-op.
    """
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(
    *,
    service_name: str = "opencall",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider so registry builds and dispatches emit spans.

    Console export uses a synchronous processor so spans show up next to CLI
    output; OTLP export is batched.

    Raises:
        ImportError: If ``opentelemetry-sdk`` (or, when *otlp_endpoint* is
            set, ``opentelemetry-exporter-otlp``) is not installed.
    """
    sdk = _require(
        "opentelemetry-sdk",
        "opentelemetry.sdk.resources",
        "opentelemetry.sdk.trace",
        "opentelemetry.sdk.trace.export",
    )
    resources, sdk_trace, export = sdk

    provider = sdk_trace.TracerProvider(resource=resources.Resource.create({"service.name": service_name}))
    if export_to_console:
        provider.add_span_processor(export.SimpleSpanProcessor(export.ConsoleSpanExporter()))
    if otlp_endpoint:
        (otlp,) = _require("opentelemetry-exporter-otlp", "opentelemetry.exporter.otlp.proto.grpc.trace_exporter")
        provider.add_span_processor(export.BatchSpanProcessor(otlp.OTLPSpanExporter(endpoint=otlp_endpoint)))

    trace.set_tracer_provider(provider)


def _require(distribution: str, *module_names: str) -> list[Any]:
    """Import optional SDK modules, naming the missing distribution on failure."""
    try:
        return [importlib.import_module(name) for name in module_names]
    except ImportError as exc:
        msg = f"{distribution} is required for tracing export. Install it with: pip install opencall[otel]"
        raise ImportError(msg) from exc
