"""Registry settings: where operations live and which catalog version to serve.

The builder itself never reads the environment.  Callers either pass values
explicitly, use :meth:`RegistrySettings.from_env`, or load a YAML file with
:class:`SettingsLoader`::

    # opencall.yaml
    ops_dir: ./operations
    ext: .py
    call_version: ${CALL_VERSION}
    telemetry:
      enabled: true
      otlp_endpoint: http://localhost:4317
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from opencall.registry.builder import DEFAULT_EXTENSION, build_registry
from opencall.utils.telemetry import configure_telemetry

if TYPE_CHECKING:
    from opencall.registry.builder import RuntimeAdapters
    from opencall.registry.models import BuildResult

ENV_OPS_DIR = "OPENCALL_OPS_DIR"
ENV_EXT = "OPENCALL_EXT"
ENV_CALL_VERSION = "CALL_VERSION"
ENV_OTLP_ENDPOINT = "OPENCALL_OTLP_ENDPOINT"


class SettingsError(Exception):
    """Raised when a settings file fails parsing or validation."""


class TelemetrySettings(BaseModel):
    """Optional span export for registry builds and dispatches."""

    enabled: bool = False
    service_name: str = "opencall"
    export_to_console: bool = True
    otlp_endpoint: str | None = None


class RegistrySettings(BaseModel):
    """Configuration surface of the registry builder."""

    ops_dir: Path | None = Field(default=None, description="Directory scanned for operation sources.")
    ext: str = Field(default=DEFAULT_EXTENSION, description="Only files with this extension are scanned.")
    call_version: str | None = Field(
        default=None,
        description="Catalog version; the builder falls back to its default when unset.",
    )
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @field_validator("ext")
    @classmethod
    def _dotted(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"

    @field_validator("call_version", mode="before")
    @classmethod
    def _normalize_version(cls, value: Any) -> Any:
        # YAML reads an unquoted 2026-02-10 as a date.
        if isinstance(value, date):
            return value.isoformat()
        return value or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> RegistrySettings:
        """Read settings from *environ* (default :data:`os.environ`).

        Keyword *overrides* that are not ``None`` win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get(ENV_OPS_DIR):
            values["ops_dir"] = env[ENV_OPS_DIR]
        if env.get(ENV_EXT):
            values["ext"] = env[ENV_EXT]
        if env.get(ENV_CALL_VERSION):
            values["call_version"] = env[ENV_CALL_VERSION]
        if env.get(ENV_OTLP_ENDPOINT):
            values["telemetry"] = {"enabled": True, "otlp_endpoint": env[ENV_OTLP_ENDPOINT]}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls.model_validate(values)

    def apply_telemetry(self) -> bool:
        """Install span export when :attr:`telemetry` is enabled.

        Returns whether tracing was configured.

        Raises:
            ImportError: If the ``otel`` extra is not installed.
        """
        if not self.telemetry.enabled:
            return False
        configure_telemetry(
            service_name=self.telemetry.service_name,
            export_to_console=self.telemetry.export_to_console,
            otlp_endpoint=self.telemetry.otlp_endpoint,
        )
        return True

    def build(self, *, runtime: RuntimeAdapters | None = None) -> BuildResult:
        """Build the registry from :attr:`ops_dir`.

        Raises:
            SettingsError: If no operations directory is configured.
        """
        if self.ops_dir is None:
            raise SettingsError("No operations directory configured")
        return build_registry(
            self.ops_dir,
            call_version=self.call_version,
            ext=self.ext,
            runtime=runtime,
        )


class SettingsLoader:
    """Load and validate a YAML settings file into :class:`RegistrySettings`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> RegistrySettings:
        """Read YAML, interpolate env vars, and validate.

        ``${VAR}`` / ``$VAR`` references are expanded with
        :func:`os.path.expandvars` before parsing.  A relative ``ops_dir`` is
        resolved against the settings file's directory.

        Raises:
            SettingsError: On read, YAML parse or validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot read {self._path}: {exc}") from exc

        try:
            data: Any = yaml.safe_load(os.path.expandvars(raw))
        except yaml.YAMLError as exc:
            raise SettingsError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SettingsError("Settings YAML must be a mapping")

        # Unexpanded references mean the variable was not set.
        if isinstance(data.get("call_version"), str) and data["call_version"].startswith("$"):
            data["call_version"] = None

        try:
            settings = RegistrySettings.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(str(exc)) from exc

        if settings.ops_dir is not None and not settings.ops_dir.is_absolute():
            settings = settings.model_copy(update={"ops_dir": self._path.parent / settings.ops_dir})
        return settings
