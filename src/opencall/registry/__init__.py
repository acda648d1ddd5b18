"""Registry layer — tag extraction, descriptor building and fingerprinting."""

from opencall.registry.builder import (
    DEFAULT_CALL_VERSION,
    RuntimeAdapters,
    build_registry,
    build_registry_from_modules,
)
from opencall.registry.errors import (
    DuplicateOperationError,
    InvalidOperationMetadataError,
    OperationLoadError,
    RegistryBuildError,
)
from opencall.registry.models import (
    BuildResult,
    ModuleEntry,
    OperationDescriptor,
    OperationModule,
    Registry,
)
from opencall.registry.tags import parse_doc_tags

__all__ = [
    "DEFAULT_CALL_VERSION",
    "BuildResult",
    "DuplicateOperationError",
    "InvalidOperationMetadataError",
    "ModuleEntry",
    "OperationDescriptor",
    "OperationLoadError",
    "OperationModule",
    "Registry",
    "RegistryBuildError",
    "RuntimeAdapters",
    "build_registry",
    "build_registry_from_modules",
    "parse_doc_tags",
]
