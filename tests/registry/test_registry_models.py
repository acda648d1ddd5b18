"""Tests for registry documents and sunset parsing."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from opencall.registry.models import OperationDescriptor, Registry, parse_sunset


def _descriptor(**overrides: object) -> OperationDescriptor:
    values: dict[str, object] = {"op": "v1:a.b", "args_schema": {}, "result_schema": {}}
    values.update(overrides)
    return OperationDescriptor(**values)


class TestParseSunset:
    def test_date_only_is_midnight_utc(self) -> None:
        assert parse_sunset("2025-01-01") == datetime(2025, 1, 1, tzinfo=UTC)

    def test_naive_datetime_is_utc(self) -> None:
        assert parse_sunset("2025-01-01T12:30:00") == datetime(2025, 1, 1, 12, 30, tzinfo=UTC)

    def test_keeps_offset(self) -> None:
        moment = parse_sunset("2025-01-01T00:00:00+02:00")
        assert moment.utcoffset() == timedelta(hours=2)
        assert moment == datetime(2024, 12, 31, 22, tzinfo=UTC)

    def test_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_sunset("next tuesday")


class TestOperationDescriptor:
    def test_defaults_on_the_wire(self) -> None:
        assert _descriptor().to_wire() == {
            "op": "v1:a.b",
            "argsSchema": {},
            "resultSchema": {},
            "sideEffecting": False,
            "idempotencyRequired": False,
            "executionModel": "sync",
            "maxSyncMs": 5000,
            "ttlSeconds": 0,
            "authScopes": [],
            "cachingPolicy": "none",
        }

    def test_tag_strings_coerced(self) -> None:
        descriptor = _descriptor(max_sync_ms="3000", ttl_seconds="60")
        assert descriptor.max_sync_ms == 3000
        assert descriptor.ttl_seconds == 60

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            _descriptor(max_sync_ms=0)

    def test_rejects_unknown_execution_model(self) -> None:
        with pytest.raises(ValidationError):
            _descriptor(execution_model="batch")

    def test_rejects_invalid_sunset(self) -> None:
        with pytest.raises(ValidationError):
            _descriptor(sunset="soon")

    def test_optional_fields_present_when_set(self) -> None:
        wire = _descriptor(deprecated=True, sunset="2025-01-01", replacement="v2:a.b").to_wire()
        assert wire["deprecated"] is True
        assert wire["sunset"] == "2025-01-01"
        assert wire["replacement"] == "v2:a.b"
        assert list(wire)[-3:] == ["deprecated", "sunset", "replacement"]


class TestRegistry:
    def test_wire_keys(self) -> None:
        registry = Registry(call_version="2026-02-10", operations=(_descriptor(),))
        wire = registry.to_wire()
        assert list(wire) == ["callVersion", "operations"]
        assert wire["operations"][0]["op"] == "v1:a.b"
