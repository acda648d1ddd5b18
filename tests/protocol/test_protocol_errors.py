"""Tests for the protocol error taxonomy."""

from __future__ import annotations

import re

from opencall.protocol.errors import DomainError, domain_error, protocol_error

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


class TestDomainError:
    def test_code_and_message(self) -> None:
        err = DomainError("NOT_FOUND", "Item not found")
        assert err.code == "NOT_FOUND"
        assert err.message == "Item not found"
        assert str(err) == "Item not found"
        assert err.cause is None
        assert isinstance(err, Exception)

    def test_cause(self) -> None:
        err = DomainError("NOT_FOUND", "Item not found", {"id": "123"})
        assert err.cause == {"id": "123"}


class TestDomainErrorEnvelope:
    def test_error_state(self) -> None:
        body = domain_error("req-1", "ITEM_NOT_FOUND", "Not found")
        assert body.request_id == "req-1"
        assert body.state == "error"
        assert body.error is not None
        assert body.error.code == "ITEM_NOT_FOUND"
        assert body.error.message == "Not found"

    def test_cause_included(self) -> None:
        body = domain_error("req-1", "FAIL", "oops", {"detail": "x"})
        assert body.to_wire()["error"]["cause"] == {"detail": "x"}

    def test_cause_omitted(self) -> None:
        body = domain_error("req-1", "FAIL", "oops")
        assert "cause" not in body.to_wire()["error"]

    def test_session_id(self) -> None:
        assert domain_error("req-1", "FAIL", "oops", session_id="sess-1").session_id == "sess-1"


class TestProtocolError:
    def test_status_and_body(self) -> None:
        result = protocol_error("INVALID_ENVELOPE", "Bad request", 400)
        assert result.status == 400
        assert result.body.state == "error"
        assert result.body.error is not None
        assert result.body.error.code == "INVALID_ENVELOPE"

    def test_generates_request_id(self) -> None:
        result = protocol_error("ERR", "msg", 500)
        assert _UUID_RE.match(result.body.request_id)

    def test_keeps_given_request_id(self) -> None:
        result = protocol_error("ERR", "msg", 500, request_id="req-9")
        assert result.body.request_id == "req-9"
