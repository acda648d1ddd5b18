"""Dispatch pipeline stages — each returns a value to continue or a terminal result.

The stages are usable on their own (a transport layer can run them in its own
order) and are chained by :class:`~opencall.protocol.dispatcher.OperationDispatcher`:

1. :func:`validate_envelope`: 400 ``INVALID_ENVELOPE``
2. operation lookup (dispatcher): 400 ``UNKNOWN_OP``
3. :func:`check_sunset`: 410 ``OP_REMOVED``
4. :func:`validate_args`: 400 ``SCHEMA_VALIDATION_FAILED``
5. :func:`safe_handler_call`: 200 / 202 / 303, 200 domain error, 500 ``INTERNAL_ERROR``
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from opencall.protocol.envelope import DispatchResult, OperationResult, RequestEnvelope, ResponseEnvelope
from opencall.protocol.errors import (
    INTERNAL_ERROR,
    INVALID_ENVELOPE,
    OP_REMOVED,
    SCHEMA_VALIDATION_FAILED,
    DomainError,
    protocol_error,
)
from opencall.protocol.schema import issues_from_error
from opencall.registry.models import OperationModule, parse_sunset

logger = logging.getLogger(__name__)


def validate_envelope(raw_body: Any) -> RequestEnvelope | DispatchResult:
    """Parse *raw_body* into a :class:`RequestEnvelope`.

    Every violation is reported as ``path: message``, joined with ``"; "``.
    A missing or empty ``op`` is reported the same way.
    """
    try:
        return RequestEnvelope.model_validate(raw_body)
    except ValidationError as exc:
        message = "; ".join(f"{i.path}: {i.message}" for i in issues_from_error(exc))
        return protocol_error(INVALID_ENVELOPE, f"Invalid request envelope: {message}", 400)


def check_sunset(
    operation: OperationModule,
    op_name: str,
    request_id: str,
    session_id: str | None = None,
    *,
    now: datetime | None = None,
) -> DispatchResult | None:
    """Return a 410 ``OP_REMOVED`` result once *operation* is past its sunset.

    Operations without a sunset, or with one still ahead, return ``None``.
    A naive *now* is taken as UTC.
    """
    if not operation.sunset:
        return None

    current = now or datetime.now(UTC)
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    if current <= parse_sunset(operation.sunset):
        return None

    logger.warning("Rejected call to %s: removed on %s", op_name, operation.sunset)
    cause: dict[str, Any] = {"removedOp": op_name, "sunset": operation.sunset}
    if operation.replacement:
        cause["replacement"] = operation.replacement
    return protocol_error(
        OP_REMOVED,
        f"Operation {op_name} was removed on {operation.sunset}",
        410,
        request_id=request_id,
        session_id=session_id,
        cause=cause,
    )


def validate_args(
    operation: OperationModule,
    args: Any,
    request_id: str,
    session_id: str | None = None,
) -> Any | DispatchResult:
    """Validate *args* against the operation's argument schema.

    Returns the validated value, or a 400 ``SCHEMA_VALIDATION_FAILED`` result
    whose cause lists every ``{path, message}`` issue.
    """
    outcome = operation.args.validate(args)
    if outcome.success:
        return outcome.data
    return protocol_error(
        SCHEMA_VALIDATION_FAILED,
        "Invalid operation arguments",
        400,
        request_id=request_id,
        session_id=session_id,
        cause={"issues": [issue.model_dump() for issue in outcome.issues]},
    )


def format_response(
    op_result: OperationResult | Mapping[str, Any],
    request_id: str,
    session_id: str | None = None,
) -> DispatchResult:
    """Shape a handler result into a response with the matching status.

    * ``accepted`` → 202
    * ``complete`` with a ``location`` and no ``result`` → 303
    * anything else → 200

    Raises:
        pydantic.ValidationError: If *op_result* is not a valid operation result.
    """
    if not isinstance(op_result, OperationResult):
        op_result = OperationResult.model_validate(op_result)

    if op_result.state == "accepted":
        status = 202
    elif op_result.location is not None and op_result.result is None:
        status = 303
    else:
        status = 200

    body = ResponseEnvelope(
        request_id=request_id,
        session_id=session_id,
        state=op_result.state,
        result=op_result.result,
        location=op_result.location,
        retry_after_ms=op_result.retry_after_ms,
        expires_at=op_result.expires_at,
    )
    return DispatchResult(status=status, body=body)


# ---------------------------------------------------------------------------
# Guarded handler invocation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainFailure:
    """The handler raised a :class:`DomainError`."""

    code: str
    message: str
    cause: Any = None


@dataclass(frozen=True)
class UnexpectedFailure:
    """The handler raised anything else."""

    message: str


HandlerFailure = DomainFailure | UnexpectedFailure


def classify_exception(exc: Exception) -> HandlerFailure:
    """Map an exception raised by a handler onto the closed failure variant."""
    if isinstance(exc, DomainError):
        return DomainFailure(code=exc.code, message=exc.message, cause=exc.cause)
    return UnexpectedFailure(message=str(exc) or type(exc).__name__)


async def safe_handler_call(
    handler: Callable[..., Any],
    handler_args: Sequence[Any],
    request_id: str,
    session_id: str | None = None,
) -> DispatchResult:
    """Invoke *handler* and turn its outcome into a :class:`DispatchResult`.

    Domain errors become ``200`` with ``state: "error"``; any other exception
    becomes ``500 INTERNAL_ERROR``.  Cancellation is not intercepted.
    """
    try:
        outcome = handler(*handler_args)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return format_response(outcome, request_id, session_id)
    except Exception as exc:
        failure = classify_exception(exc)
        if isinstance(failure, UnexpectedFailure):
            logger.exception("Unhandled error in operation handler (request %s)", request_id)

    if isinstance(failure, DomainFailure):
        return protocol_error(
            failure.code,
            failure.message,
            200,
            request_id=request_id,
            session_id=session_id,
            cause=failure.cause,
        )

    return protocol_error(
        INTERNAL_ERROR,
        failure.message,
        500,
        request_id=request_id,
        session_id=session_id,
    )
