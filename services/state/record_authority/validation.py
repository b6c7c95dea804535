"""Schema definition parsing and record validation for Record Authority."""

from __future__ import annotations

from typing import Any, Mapping

from services.state.record_authority.domain import FIELD_TYPES, FieldSpec
from services.state.record_authority.errors import (
    SchemaInvalidError,
    SchemaViolationError,
)


def parse_schema_definition(definition: object) -> dict[str, FieldSpec]:
    """Parse ``{field: {type, required}}`` into typed field specs."""
    if not isinstance(definition, Mapping):
        raise SchemaInvalidError(message="schema must be a JSON object of fields")
    if len(definition) == 0:
        raise SchemaInvalidError(message="schema must declare at least one field")

    parsed: dict[str, FieldSpec] = {}
    for name, spec in definition.items():
        if not isinstance(name, str) or name.strip() == "":
            raise SchemaInvalidError(message="field names must be non-empty strings")
        if not isinstance(spec, Mapping):
            raise SchemaInvalidError(
                message=f"field '{name}' must map to an object", field_name=name
            )
        unknown = set(spec) - {"type", "required"}
        if unknown:
            raise SchemaInvalidError(
                message=f"field '{name}' has unknown keys: {sorted(unknown)}",
                field_name=name,
            )
        field_type = spec.get("type")
        if field_type not in FIELD_TYPES:
            raise SchemaInvalidError(
                message=(
                    f"field '{name}' has unsupported type {field_type!r}; "
                    f"expected one of {list(FIELD_TYPES)}"
                ),
                field_name=name,
            )
        required = spec.get("required", False)
        if not isinstance(required, bool):
            raise SchemaInvalidError(
                message=f"field '{name}' has non-boolean 'required'",
                field_name=name,
            )
        parsed[name] = FieldSpec(type=field_type, required=required)
    return parsed


def validate_record(data: object, fields: Mapping[str, FieldSpec]) -> None:
    """Check ``data`` against declared fields; undeclared fields pass through."""
    if not isinstance(data, Mapping):
        raise SchemaViolationError(
            message="record must be a JSON object",
            field_name="",
            reason="not_an_object",
        )

    for name, spec in fields.items():
        present = name in data
        value = data.get(name)
        if spec.required and (not present or value is None):
            raise SchemaViolationError(
                message=f"field '{name}' is required",
                field_name=name,
                reason="required",
            )
        if not present:
            continue
        if not _matches(spec.type, value):
            raise SchemaViolationError(
                message=f"field '{name}' must be {_article(spec.type)} {spec.type}",
                field_name=name,
                reason="type",
            )


def _matches(field_type: str, value: Any) -> bool:
    if field_type == "string":
        return isinstance(value, str)
    if field_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if field_type == "boolean":
        return isinstance(value, bool)
    if field_type == "object":
        return isinstance(value, Mapping)
    if field_type == "array":
        return isinstance(value, list)
    return False


def _article(field_type: str) -> str:
    return "an" if field_type[0] in "aeiou" else "a"
