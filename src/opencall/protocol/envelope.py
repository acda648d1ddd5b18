"""OpenCALL envelopes — the request body of every call and its response shape.

Attributes are snake_case; the wire form uses the protocol's camelCase keys.
Optional response fields that are not set never appear on the wire (they are
omitted, not serialized as ``null``).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

PositiveStrictInt = Annotated[int, Field(strict=True, gt=0)]

# 8-4-4-4-12 hex, either case. Ids are echoed back exactly as sent.
UuidStr = Annotated[
    str,
    Field(pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"),
]

ResponseState = Literal["complete", "accepted", "pending", "error"]


class WireModel(BaseModel):
    """Base for protocol documents: aliased keys, absent optionals omitted."""

    model_config = {"populate_by_name": True, "frozen": True}

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using the protocol's key names."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Request envelope
# ---------------------------------------------------------------------------


class RequestContext(BaseModel):
    """Per-call context: correlation ids, idempotency and caller hints."""

    model_config = {"populate_by_name": True}

    request_id: UuidStr = Field(alias="requestId")
    session_id: UuidStr | None = Field(default=None, alias="sessionId")
    parent_id: UuidStr | None = Field(default=None, alias="parentId")
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")
    timeout_ms: PositiveStrictInt | None = Field(default=None, alias="timeoutMs")
    locale: str | None = None
    traceparent: str | None = None


class RequestAuth(BaseModel):
    """Caller identity carried with the request (not verified here)."""

    model_config = {"populate_by_name": True}

    iss: str
    sub: str
    credential_type: str = Field(alias="credentialType")
    credential: str | None = None


class MediaRef(BaseModel):
    """A media attachment referenced by the call."""

    model_config = {"populate_by_name": True}

    name: str
    mime_type: str = Field(alias="mimeType")
    ref: str | None = None
    part: str | None = None


class RequestEnvelope(BaseModel):
    """The body of every OpenCALL request."""

    model_config = {"populate_by_name": True}

    op: str = Field(min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)
    ctx: RequestContext | None = None
    auth: RequestAuth | None = None
    media: list[MediaRef] | None = None

    @property
    def request_id(self) -> str | None:
        return self.ctx.request_id if self.ctx else None

    @property
    def session_id(self) -> str | None:
        return self.ctx.session_id if self.ctx else None


# ---------------------------------------------------------------------------
# Handler results and responses
# ---------------------------------------------------------------------------


class LocationAuth(WireModel):
    """Credentials needed to fetch a result from its location."""

    credential_type: str = Field(alias="credentialType")
    credential: str
    expires_at: int | None = Field(default=None, alias="expiresAt")


class Location(WireModel):
    """Where the result of an operation can be retrieved."""

    uri: str
    auth: LocationAuth | None = None


class OperationResult(WireModel):
    """What an operation handler returns."""

    state: Literal["complete", "accepted"]
    result: Any = None
    location: Location | None = None
    retry_after_ms: int | None = Field(default=None, alias="retryAfterMs")
    expires_at: int | None = Field(default=None, alias="expiresAt")


class ErrorDetail(WireModel):
    """The ``error`` member of a response envelope."""

    code: str
    message: str
    cause: Any = None


class ResponseEnvelope(WireModel):
    """Canonical response envelope."""

    request_id: str = Field(alias="requestId")
    session_id: str | None = Field(default=None, alias="sessionId")
    state: ResponseState
    result: Any = None
    error: ErrorDetail | None = None
    location: Location | None = None
    retry_after_ms: int | None = Field(default=None, alias="retryAfterMs")
    expires_at: int | None = Field(default=None, alias="expiresAt")


class DispatchResult(BaseModel):
    """Status code plus response body, handed to the transport layer."""

    model_config = {"frozen": True}

    status: int
    body: ResponseEnvelope
