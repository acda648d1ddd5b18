"""Shared error types and error-envelope constructors for the protocol layer."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from opencall.protocol.envelope import DispatchResult, ErrorDetail, ResponseEnvelope

# ---------------------------------------------------------------------------
# Stable error codes
# ---------------------------------------------------------------------------

INVALID_ENVELOPE = "INVALID_ENVELOPE"
UNKNOWN_OP = "UNKNOWN_OP"
OP_REMOVED = "OP_REMOVED"
SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """A business-level failure raised by an operation handler.

    Dispatch turns it into a ``200`` response with ``state: "error"`` and the
    code, message and cause carried verbatim.
    """

    def __init__(self, code: str, message: str, cause: Any = None) -> None:
        self.code = code
        self.message = message
        self.cause = cause
        super().__init__(message)


def domain_error(
    request_id: str,
    code: str,
    message: str,
    cause: Any = None,
    session_id: str | None = None,
) -> ResponseEnvelope:
    """Build a ``state: "error"`` response envelope."""
    return ResponseEnvelope(
        request_id=request_id,
        session_id=session_id,
        state="error",
        error=ErrorDetail(code=code, message=message, cause=cause),
    )


def protocol_error(
    code: str,
    message: str,
    status: int,
    *,
    request_id: str | None = None,
    session_id: str | None = None,
    cause: Any = None,
) -> DispatchResult:
    """Build an error :class:`DispatchResult` with an HTTP-style *status*.

    A fresh request id is generated when the caller has none (e.g. the
    envelope itself could not be parsed).
    """
    body = domain_error(
        request_id or str(uuid4()),
        code,
        message,
        cause=cause,
        session_id=session_id,
    )
    return DispatchResult(status=status, body=body)
