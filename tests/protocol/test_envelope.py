"""Tests for request/response envelope models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from opencall.protocol.envelope import (
    ErrorDetail,
    Location,
    OperationResult,
    RequestEnvelope,
    ResponseEnvelope,
)

REQUEST_ID = "550e8400-e29b-41d4-a716-446655440000"
SESSION_ID = "660e8400-e29b-41d4-a716-446655440000"


class TestRequestEnvelope:
    def test_minimal_envelope(self) -> None:
        envelope = RequestEnvelope.model_validate({"op": "v1:test.op"})
        assert envelope.op == "v1:test.op"
        assert envelope.args == {}
        assert envelope.ctx is None
        assert envelope.request_id is None

    def test_full_envelope(self) -> None:
        envelope = RequestEnvelope.model_validate(
            {
                "op": "v1:test.op",
                "args": {"name": "test", "count": 5},
                "ctx": {
                    "requestId": REQUEST_ID,
                    "sessionId": SESSION_ID,
                    "idempotencyKey": "abc-123",
                    "timeoutMs": 1500,
                    "locale": "en-GB",
                },
                "auth": {"iss": "https://issuer", "sub": "user-1", "credentialType": "bearer"},
                "media": [{"name": "photo.jpg", "mimeType": "image/jpeg", "ref": "https://example.com/photo.jpg"}],
            }
        )
        assert envelope.args == {"name": "test", "count": 5}
        assert envelope.request_id == REQUEST_ID
        assert envelope.session_id == SESSION_ID
        assert envelope.ctx is not None and envelope.ctx.timeout_ms == 1500
        assert envelope.auth is not None and envelope.auth.credential_type == "bearer"
        assert envelope.media is not None and envelope.media[0].mime_type == "image/jpeg"

    def test_missing_op(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"args": {}})

    def test_empty_op(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": ""})

    def test_invalid_request_id(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:test.op", "ctx": {"requestId": "not-a-uuid"}})

    def test_ids_kept_as_sent(self) -> None:
        upper = REQUEST_ID.upper()
        envelope = RequestEnvelope.model_validate(
            {"op": "v1:test.op", "ctx": {"requestId": upper, "sessionId": SESSION_ID.upper()}}
        )
        assert envelope.request_id == upper
        assert envelope.session_id == SESSION_ID.upper()

    @pytest.mark.parametrize(
        "request_id",
        [REQUEST_ID.replace("-", ""), "{" + REQUEST_ID + "}", "urn:uuid:" + REQUEST_ID, REQUEST_ID + " "],
    )
    def test_non_canonical_request_id_rejected(self, request_id: str) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:test.op", "ctx": {"requestId": request_id}})

    def test_invalid_parent_id(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:x", "ctx": {"requestId": REQUEST_ID, "parentId": "p-1"}})

    def test_ctx_requires_request_id(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:test.op", "ctx": {"sessionId": SESSION_ID}})

    @pytest.mark.parametrize("timeout", [0, -5, "100", 1.5])
    def test_timeout_must_be_positive_int(self, timeout: object) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:x", "ctx": {"requestId": REQUEST_ID, "timeoutMs": timeout}})

    def test_null_args_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestEnvelope.model_validate({"op": "v1:x", "args": None})

    def test_unknown_keys_ignored(self) -> None:
        envelope = RequestEnvelope.model_validate({"op": "v1:x", "extra": True})
        assert not hasattr(envelope, "extra")


class TestResponseEnvelope:
    def test_absent_fields_are_omitted(self) -> None:
        body = ResponseEnvelope(request_id="req-1", state="complete", result={"ok": True})
        assert body.to_wire() == {"requestId": "req-1", "state": "complete", "result": {"ok": True}}

    def test_nested_none_inside_result_is_kept(self) -> None:
        body = ResponseEnvelope(request_id="req-1", state="complete", result={"value": None})
        assert body.to_wire()["result"] == {"value": None}

    def test_error_without_cause(self) -> None:
        body = ResponseEnvelope(
            request_id="req-1",
            state="error",
            error=ErrorDetail(code="FAIL", message="oops"),
        )
        assert body.to_wire()["error"] == {"code": "FAIL", "message": "oops"}

    def test_camel_case_keys(self) -> None:
        body = ResponseEnvelope(
            request_id="req-1",
            session_id="sess-1",
            state="accepted",
            location=Location(uri="https://example.com/ops/1"),
            retry_after_ms=250,
            expires_at=1700000000,
        )
        assert body.to_wire() == {
            "requestId": "req-1",
            "sessionId": "sess-1",
            "state": "accepted",
            "location": {"uri": "https://example.com/ops/1"},
            "retryAfterMs": 250,
            "expiresAt": 1700000000,
        }


class TestOperationResult:
    def test_from_wire_keys(self) -> None:
        result = OperationResult.model_validate(
            {
                "state": "accepted",
                "retryAfterMs": 1000,
                "location": {"uri": "https://x", "auth": {"credentialType": "bearer", "credential": "t"}},
            }
        )
        assert result.retry_after_ms == 1000
        assert result.location is not None and result.location.auth is not None
        assert result.location.auth.credential == "t"

    def test_error_state_not_allowed(self) -> None:
        with pytest.raises(ValidationError):
            OperationResult.model_validate({"state": "error"})
