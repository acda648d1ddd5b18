"""Registry builder — operation sources in, versioned and fingerprinted registry out.

Two entry points share one descriptor-building core:

* :func:`build_registry` scans a directory, reads each source, extracts its
  documentation tags and loads the files that declare an ``@op``.
* :func:`build_registry_from_modules` takes already-imported modules plus
  explicit metadata and skips scanning and tag parsing entirely.

Both return a :class:`~opencall.registry.models.BuildResult` carrying the
registry document, the op → module lookup used for dispatch, the canonical
JSON and its ETag.

Usage::

    result = build_registry("app/operations", call_version="2026-02-10")
    response.headers["ETag"] = result.etag
    dispatcher = OperationDispatcher(result.modules)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from opencall.protocol.schema import issues_from_error
from opencall.registry.errors import DuplicateOperationError, InvalidOperationMetadataError
from opencall.registry.loader import load_module_from_path, resolve_exports
from opencall.registry.models import (
    BuildResult,
    ModuleEntry,
    OperationDescriptor,
    OperationModule,
    Registry,
)
from opencall.registry.tags import parse_doc_tags
from opencall.utils.telemetry import ATTR_CALL_VERSION, ATTR_OPERATION_COUNT, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_CALL_VERSION = "2026-02-10"
DEFAULT_EXTENSION = ".py"
FINGERPRINT_ALGORITHM = "sha256"

# Tag name -> descriptor field, for values passed through as-is.
_SCALAR_TAGS = {
    "execution": "execution_model",
    "timeout": "max_sync_ms",
    "ttl": "ttl_seconds",
    "cache": "caching_policy",
}


# ---------------------------------------------------------------------------
# Injectable I/O
# ---------------------------------------------------------------------------


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _list_dir(path: str) -> list[str]:
    return sorted(os.listdir(path))


@dataclass(frozen=True)
class RuntimeAdapters:
    """I/O primitives used by :func:`build_registry`.

    Each one defaults independently, so overriding a single adapter (an
    in-memory ``read_text`` in tests, say) keeps the others.
    """

    read_text: Callable[[str], str] = _read_text
    list_dir: Callable[[str], Iterable[str]] = _list_dir
    create_hash: Callable[[str], Any] = hashlib.new
    load_module: Callable[[str], Any] = load_module_from_path


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def build_registry(
    ops_dir: str | Path,
    *,
    call_version: str | None = None,
    ext: str = DEFAULT_EXTENSION,
    runtime: RuntimeAdapters | None = None,
) -> BuildResult:
    """Scan *ops_dir* for operation sources and build the registry.

    Files whose extension is not *ext* are ignored, as are files whose first
    documentation block declares no ``@op`` tag.  Every other file must load
    as a module exposing ``args``, ``result`` and ``handler``.

    Raises:
        OperationLoadError: If an ``@op`` file cannot be loaded.
        InvalidOperationMetadataError: If its tags do not form a valid descriptor.
        DuplicateOperationError: If two files declare the same ``@op``.
    """
    adapters = runtime or RuntimeAdapters()
    directory = str(ops_dir)

    sources: list[tuple[Any, Mapping[str, Any], str]] = []
    for name in adapters.list_dir(directory):
        if os.path.splitext(name)[1] != ext:
            continue
        path = os.path.join(directory, name)
        tags = parse_doc_tags(adapters.read_text(path))
        if not tags.get("op"):
            logger.debug("Skipping %s: no @op tag", path)
            continue
        sources.append((adapters.load_module(path), tags, path))

    return _build(sources, call_version, adapters.create_hash)


def build_registry_from_modules(
    entries: Iterable[ModuleEntry | tuple[Any, Mapping[str, Any]]],
    *,
    call_version: str | None = None,
    runtime: RuntimeAdapters | None = None,
) -> BuildResult:
    """Build the registry from pre-imported modules and explicit metadata.

    Raises:
        OperationLoadError: If a module lacks ``args``, ``result`` or ``handler``.
        InvalidOperationMetadataError: If metadata lacks ``op`` or is invalid.
        DuplicateOperationError: If two entries declare the same ``op``.
    """
    adapters = runtime or RuntimeAdapters()
    sources: list[tuple[Any, Mapping[str, Any], str]] = []
    for index, (module, meta) in enumerate(entries):
        if not meta.get("op"):
            raise InvalidOperationMetadataError(f"<entry {index}>", "missing required 'op'")
        sources.append((module, meta, getattr(module, "__name__", f"<entry {index}>")))
    return _build(sources, call_version, adapters.create_hash)


# ---------------------------------------------------------------------------
# Shared core
# ---------------------------------------------------------------------------


def build_operation(
    source: Any, meta: Mapping[str, Any], label: str = "<module>"
) -> tuple[OperationDescriptor, OperationModule]:
    """Turn one operation source and its tags/metadata into descriptor + module.

    Explicit ``sunset``/``replacement`` metadata wins over the module's own
    fallback values; the descriptor and the module always agree on both.
    """
    op = str(meta["op"])
    exports = resolve_exports(source, label)

    sunset = meta.get("sunset") or exports["sunset"]
    replacement = meta.get("replacement") or exports["replacement"]
    flags = set(_words(meta.get("flags")))

    fields: dict[str, Any] = {
        "op": op,
        "args_schema": exports["args"].describe(),
        "result_schema": exports["result"].describe(),
        "side_effecting": "sideEffecting" in flags,
        "idempotency_required": "idempotencyRequired" in flags,
        "auth_scopes": tuple(_words(meta.get("security"))),
    }
    for tag, field in _SCALAR_TAGS.items():
        value = meta.get(tag)
        if value is not None and value != "":
            fields[field] = value
    if "deprecated" in flags:
        fields["deprecated"] = True
    if sunset:
        fields["sunset"] = str(sunset)
    if replacement:
        fields["replacement"] = str(replacement)

    try:
        descriptor = OperationDescriptor(**fields)
    except ValidationError as exc:
        detail = "; ".join(f"{i.path}: {i.message}" for i in issues_from_error(exc))
        raise InvalidOperationMetadataError(op, detail) from exc

    module = OperationModule(
        args=exports["args"],
        result=exports["result"],
        handler=exports["handler"],
        sunset=descriptor.sunset,
        replacement=descriptor.replacement,
    )
    return descriptor, module


def serialize_registry(registry: Registry) -> str:
    """Canonical JSON for *registry*: compact, declaration key order."""
    return json.dumps(registry.to_wire(), separators=(",", ":"), ensure_ascii=False)


def fingerprint(payload: str, create_hash: Callable[[str], Any] = hashlib.new) -> str:
    """Quoted lowercase hex SHA-256 of *payload*, usable as an ETag."""
    digest = create_hash(FINGERPRINT_ALGORITHM)
    digest.update(payload.encode("utf-8"))
    return f'"{digest.hexdigest()}"'


def _build(
    sources: Sequence[tuple[Any, Mapping[str, Any], str]],
    call_version: str | None,
    create_hash: Callable[[str], Any],
) -> BuildResult:
    version = call_version or DEFAULT_CALL_VERSION

    with _tracer.start_as_current_span("opencall.registry.build") as span:
        span.set_attribute(ATTR_CALL_VERSION, version)

        descriptors: list[OperationDescriptor] = []
        modules: dict[str, OperationModule] = {}
        for source, meta, label in sources:
            descriptor, module = build_operation(source, meta, label)
            if descriptor.op in modules:
                raise DuplicateOperationError(descriptor.op)
            modules[descriptor.op] = module
            descriptors.append(descriptor)
            logger.debug("Registered %s from %s", descriptor.op, label)

        registry = Registry(call_version=version, operations=tuple(descriptors))
        payload = serialize_registry(registry)
        etag = fingerprint(payload, create_hash)

        span.set_attribute(ATTR_OPERATION_COUNT, len(descriptors))

    logger.info("Built registry %s with %d operation(s), etag %s", version, len(descriptors), etag)
    return BuildResult(
        registry=registry,
        modules=MappingProxyType(modules),
        json=payload,
        etag=etag,
    )


def _words(value: Any) -> list[str]:
    """Split a space-joined tag value (or a sequence of them) into words."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [word for item in value for word in str(item).split()]

