"""Loading operation sources into runtime modules."""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from opencall.protocol.schema import as_schema
from opencall.registry.errors import OperationLoadError

_MODULE_PREFIX = "_opencall_op_"


def load_module_from_path(path: str) -> ModuleType:
    """Import a Python source file as a fresh, uniquely named module.

    Raises:
        OperationLoadError: If the file cannot be imported.
    """
    file_path = Path(path)
    suffix = hashlib.sha1(str(file_path.resolve()).encode("utf-8")).hexdigest()[:8]
    name = f"{_MODULE_PREFIX}{file_path.stem}_{suffix}"

    spec = importlib.util.spec_from_file_location(name, file_path)
    if spec is None or spec.loader is None:
        raise OperationLoadError(path, "not an importable Python source")

    module = importlib.util.module_from_spec(spec)
    # Registered before exec so pydantic can resolve the module's own annotations.
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(name, None)
        raise OperationLoadError(path, f"{type(exc).__name__}: {exc}") from exc
    return module


def resolve_exports(source: Any, label: str) -> dict[str, Any]:
    """Pull the operation contract out of a loaded module or namespace.

    Returns a dict with ``args`` and ``result`` (as schema adapters),
    ``handler``, and the module's fallback ``sunset``/``replacement``.

    Raises:
        OperationLoadError: If ``args``, ``result`` or a callable ``handler``
            is missing, or a schema cannot be built.
    """
    missing = [name for name in ("args", "result", "handler") if getattr(source, name, None) is None]
    if missing:
        raise OperationLoadError(label, f"missing required export(s): {', '.join(missing)}")

    handler = source.handler
    if not callable(handler):
        raise OperationLoadError(label, "'handler' is not callable")

    try:
        args = as_schema(source.args)
        result = as_schema(source.result)
    except Exception as exc:
        raise OperationLoadError(label, f"invalid schema: {exc}") from exc

    return {
        "args": args,
        "result": result,
        "handler": handler,
        "sunset": getattr(source, "sunset", None),
        "replacement": getattr(source, "replacement", None),
    }
