"""Protocol layer — envelopes, schema capability, error taxonomy and dispatch."""

from opencall.protocol.dispatcher import OperationDispatcher
from opencall.protocol.envelope import (
    DispatchResult,
    OperationResult,
    RequestEnvelope,
    ResponseEnvelope,
)
from opencall.protocol.errors import DomainError, domain_error, protocol_error
from opencall.protocol.schema import PydanticSchema, SchemaAdapter, SchemaValidation, ValidationIssue
from opencall.protocol.validate import (
    check_sunset,
    format_response,
    safe_handler_call,
    validate_args,
    validate_envelope,
)

__all__ = [
    "DispatchResult",
    "DomainError",
    "OperationDispatcher",
    "OperationResult",
    "PydanticSchema",
    "RequestEnvelope",
    "ResponseEnvelope",
    "SchemaAdapter",
    "SchemaValidation",
    "ValidationIssue",
    "check_sunset",
    "domain_error",
    "format_response",
    "protocol_error",
    "safe_handler_call",
    "validate_args",
    "validate_envelope",
]
