"""Schema capability: the validate/describe interface used by registry and dispatch.

The registry and the dispatch pipeline never talk to a validation library
directly.  They go through :class:`SchemaAdapter`, which any schema engine can
satisfy.  :class:`PydanticSchema` is the default adapter and wraps anything
:class:`pydantic.TypeAdapter` understands (``BaseModel`` subclasses,
``TypedDict``, dataclasses, plain annotated types).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError


class ValidationIssue(BaseModel):
    """A single field-level validation failure."""

    model_config = {"frozen": True}

    path: str = ""
    message: str


class SchemaValidation(BaseModel):
    """Outcome of :meth:`SchemaAdapter.validate`."""

    model_config = {"frozen": True}

    success: bool
    data: Any = None
    issues: list[ValidationIssue] = []


@runtime_checkable
class SchemaAdapter(Protocol):
    """Validates values against a declared schema and describes it."""

    def validate(self, value: Any) -> SchemaValidation:
        """Validate *value*; return parsed data on success or typed issues."""
        ...

    def describe(self) -> dict[str, Any]:
        """Return the schema as a JSON Schema document."""
        ...


def issues_from_error(exc: ValidationError) -> list[ValidationIssue]:
    """Flatten a pydantic :class:`ValidationError` into ``{path, message}`` issues.

    Root-level failures yield an empty path.
    """
    return [
        ValidationIssue(
            path=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]


class PydanticSchema:
    """:class:`SchemaAdapter` backed by a :class:`pydantic.TypeAdapter`."""

    def __init__(self, schema_type: Any) -> None:
        self.schema_type = schema_type
        self._adapter: TypeAdapter[Any] = TypeAdapter(schema_type)

    def validate(self, value: Any) -> SchemaValidation:
        try:
            data = self._adapter.validate_python(value)
        except ValidationError as exc:
            return SchemaValidation(success=False, issues=issues_from_error(exc))
        return SchemaValidation(success=True, data=data)

    def describe(self) -> dict[str, Any]:
        return self._adapter.json_schema()

    def __repr__(self) -> str:
        name = getattr(self.schema_type, "__name__", repr(self.schema_type))
        return f"PydanticSchema({name})"


def as_schema(value: Any) -> SchemaAdapter:
    """Coerce an operation's declared contract into a :class:`SchemaAdapter`.

    Objects that already satisfy the protocol are returned unchanged; anything
    else is handed to :class:`PydanticSchema`.

    Raises:
        pydantic.PydanticSchemaGenerationError: If pydantic cannot build a
            schema for *value*.
    """
    if isinstance(value, SchemaAdapter) and not isinstance(value, type):
        return value
    return PydanticSchema(value)
