"""Error types raised while building the operation registry."""

from __future__ import annotations


class RegistryBuildError(Exception):
    """Base error for all registry build failures."""


class OperationLoadError(RegistryBuildError):
    """An operation source could not be loaded as a module."""

    def __init__(self, source: str, detail: str = "") -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Cannot load operation from {source}" + (f": {detail}" if detail else ""))


class InvalidOperationMetadataError(RegistryBuildError):
    """Tag or metadata values do not form a valid operation descriptor."""

    def __init__(self, op: str, detail: str = "") -> None:
        self.op = op
        self.detail = detail
        super().__init__(f"Invalid metadata for operation {op}" + (f": {detail}" if detail else ""))


class DuplicateOperationError(RegistryBuildError):
    """Two accepted sources declare the same operation name."""

    def __init__(self, op: str) -> None:
        self.op = op
        super().__init__(f"Operation declared more than once: {op}")
