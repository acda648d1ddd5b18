"""OpenCALL contract layer — operation registry and request dispatch."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from opencall.protocol.dispatcher import OperationDispatcher as OperationDispatcher
    from opencall.protocol.errors import DomainError as DomainError
    from opencall.registry.builder import build_registry as build_registry
    from opencall.registry.builder import build_registry_from_modules as build_registry_from_modules

_LAZY_EXPORTS = {
    "OperationDispatcher": "opencall.protocol.dispatcher",
    "DomainError": "opencall.protocol.errors",
    "build_registry": "opencall.registry.builder",
    "build_registry_from_modules": "opencall.registry.builder",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'opencall' has no attribute {name!r}")
