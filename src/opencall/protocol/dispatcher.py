"""OperationDispatcher — runs a raw request through the full validation pipeline."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from opentelemetry import trace

from opencall.protocol.envelope import DispatchResult
from opencall.protocol.errors import UNKNOWN_OP, protocol_error
from opencall.protocol.validate import check_sunset, safe_handler_call, validate_args, validate_envelope
from opencall.utils.telemetry import ATTR_ERROR_CODE, ATTR_OP, ATTR_STATE, ATTR_STATUS, get_tracer

if TYPE_CHECKING:
    from opencall.registry.models import OperationModule

_tracer = get_tracer(__name__)


class OperationDispatcher:
    """Validates requests and routes them to operation handlers.

    Usage::

        result = build_registry("app/operations")
        dispatcher = OperationDispatcher(result.modules)

        outcome = await dispatcher.dispatch(request_json)
        return outcome.status, outcome.body.to_wire()

    The module map is only read, so one dispatcher can serve concurrent
    requests.  Handlers run to completion; no timeout is imposed here.
    """

    def __init__(
        self,
        modules: Mapping[str, OperationModule],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._modules = modules
        self._clock = clock

    def operations(self) -> list[str]:
        """Return the names of all dispatchable operations."""
        return list(self._modules)

    def __contains__(self, op: object) -> bool:
        return op in self._modules

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    async def dispatch(self, raw_body: Any, *context: Any) -> DispatchResult:
        """Run *raw_body* through every stage and return the first terminal result.

        Extra positional *context* values are passed to the handler after the
        validated arguments.
        """
        with _tracer.start_as_current_span("opencall.dispatch") as span:
            result = await self._dispatch(raw_body, context)
            span.set_attribute(ATTR_STATUS, result.status)
            span.set_attribute(ATTR_STATE, result.body.state)
            if result.body.error is not None:
                span.set_attribute(ATTR_ERROR_CODE, result.body.error.code)
            return result

    async def _dispatch(self, raw_body: Any, context: tuple[Any, ...]) -> DispatchResult:
        envelope = validate_envelope(raw_body)
        if isinstance(envelope, DispatchResult):
            return envelope

        request_id = envelope.request_id or str(uuid4())
        session_id = envelope.session_id
        trace.get_current_span().set_attribute(ATTR_OP, envelope.op)

        operation = self._modules.get(envelope.op)
        if operation is None:
            return protocol_error(
                UNKNOWN_OP,
                f"Unknown operation: {envelope.op}",
                400,
                request_id=request_id,
                session_id=session_id,
                cause={"op": envelope.op},
            )

        removed = check_sunset(
            operation,
            envelope.op,
            request_id,
            session_id,
            now=self._clock() if self._clock else None,
        )
        if removed is not None:
            return removed

        args = validate_args(operation, envelope.args, request_id, session_id)
        if isinstance(args, DispatchResult):
            return args

        return await safe_handler_call(operation.handler, (args, *context), request_id, session_id)
