"""Operation descriptors, runtime modules and build results."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal, NamedTuple

from pydantic import Field, NonNegativeInt, PositiveInt, field_validator

from opencall.protocol.envelope import OperationResult, WireModel
from opencall.protocol.schema import SchemaAdapter

DEFAULT_MAX_SYNC_MS = 5000
DEFAULT_TTL_SECONDS = 0

Handler = Callable[..., Awaitable[OperationResult | Mapping[str, Any]]]


def parse_sunset(value: str) -> datetime:
    """Parse an ISO date (or date-time) into an aware UTC datetime.

    Date-only values mean midnight UTC of that day.

    Raises:
        ValueError: If *value* is not an ISO 8601 date.
    """
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


# ---------------------------------------------------------------------------
# Serialized registry documents
# ---------------------------------------------------------------------------


class OperationDescriptor(WireModel):
    """Registry-visible contract of a single operation.

    Field declaration order is the serialized key order, which keeps the
    registry JSON (and its fingerprint) deterministic.
    """

    op: str = Field(min_length=1)
    args_schema: dict[str, Any] = Field(alias="argsSchema")
    result_schema: dict[str, Any] = Field(alias="resultSchema")
    side_effecting: bool = Field(default=False, alias="sideEffecting")
    idempotency_required: bool = Field(default=False, alias="idempotencyRequired")
    execution_model: Literal["sync", "async"] = Field(default="sync", alias="executionModel")
    max_sync_ms: PositiveInt = Field(default=DEFAULT_MAX_SYNC_MS, alias="maxSyncMs")
    ttl_seconds: NonNegativeInt = Field(default=DEFAULT_TTL_SECONDS, alias="ttlSeconds")
    auth_scopes: tuple[str, ...] = Field(default=(), alias="authScopes")
    caching_policy: Literal["none", "server", "location"] = Field(
        default="none", alias="cachingPolicy"
    )
    # Absent unless flagged; never serialized as ``false``.
    deprecated: Literal[True] | None = None
    sunset: str | None = None
    replacement: str | None = None

    @field_validator("sunset")
    @classmethod
    def _check_sunset(cls, value: str | None) -> str | None:
        if value is not None:
            parse_sunset(value)
        return value


class Registry(WireModel):
    """The document served to clients (``/.well-known/ops``)."""

    call_version: str = Field(alias="callVersion")
    operations: tuple[OperationDescriptor, ...] = ()


# ---------------------------------------------------------------------------
# Runtime bindings (never serialized)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperationModule:
    """Schemas and handler bound to one operation name."""

    args: SchemaAdapter
    result: SchemaAdapter
    handler: Handler
    sunset: str | None = None
    replacement: str | None = None


class ModuleEntry(NamedTuple):
    """A pre-resolved operation source plus the metadata that replaces its tags.

    *module* is anything exposing ``args``, ``result`` and ``handler``
    attributes (an imported module, a namespace, an :class:`OperationModule`).
    *meta* uses the tag vocabulary; numeric values may already be ints and
    ``flags``/``security`` may be strings or sequences of strings.
    """

    module: Any
    meta: Mapping[str, Any]


@dataclass(frozen=True)
class BuildResult:
    """Everything one registry build produces."""

    registry: Registry
    modules: Mapping[str, OperationModule]
    json: str
    etag: str
