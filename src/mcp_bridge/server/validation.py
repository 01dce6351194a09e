"""
Argument validation against an `ObjectSchema`, backed by pydantic.

`build_model` turns a schema into a strict pydantic model once; `validate`
turns an untyped argument bag into an instance of that model or raises
`InvalidInput` listing every violated constraint.
"""
from __future__ import annotations

from typing import Any, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    create_model,
)

from mcp_bridge.errors import InvalidInput
from mcp_bridge.types import ObjectSchema, PrimitiveType, PropertySchema

__all__ = ["build_model", "validate"]

_ANNOTATIONS: dict[PrimitiveType, Any] = {
    PrimitiveType.STRING: StrictStr,
    # ints stay ints so results print as "100", not "100.0"
    PrimitiveType.NUMBER: Union[StrictInt, StrictFloat],
    PrimitiveType.INTEGER: StrictInt,
    PrimitiveType.BOOLEAN: StrictBool,
    PrimitiveType.ARRAY: list[Any],
    PrimitiveType.OBJECT: dict[str, Any],
}


def _annotation(prop: PropertySchema) -> Any:
    if prop.enum is not None:
        return Literal[prop.enum]
    if isinstance(prop.type, PrimitiveType):
        return _ANNOTATIONS[prop.type]
    return Any


def build_model(name: str, schema: ObjectSchema) -> type[BaseModel]:
    """Create the pydantic model for a tool or prompt's arguments."""
    fields: dict[str, Any] = {}
    for field_name, prop in schema.properties.items():
        annotation = _annotation(prop)
        if schema.is_required(field_name):
            fields[field_name] = (annotation, Field(description=prop.description))
        else:
            fields[field_name] = (
                Optional[annotation],
                Field(default=None, description=prop.description),
            )
    return create_model(
        f"{name}_arguments",
        __config__=ConfigDict(extra="ignore"),
        **fields,
    )


def validate(model: type[BaseModel], schema: ObjectSchema, arguments: Any) -> BaseModel:
    """
    Validate ``arguments`` against ``model``.

    Raises:
        InvalidInput: with one violation line per offending field.
    """
    try:
        return model.model_validate(arguments)
    except ValidationError as exc:
        raise InvalidInput(describe_errors(exc, schema)) from exc


def describe_errors(exc: ValidationError, schema: ObjectSchema) -> list[str]:
    """One line per field; union members reporting the same field collapse."""
    violations: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ()
        if not loc:
            got = type(error.get("input")).__name__
            violations.setdefault("arguments", f"arguments: expected an object, got {got}")
            continue
        field_name = str(loc[0])
        if field_name in violations:
            continue
        violations[field_name] = _describe(field_name, error, schema.properties.get(field_name))
    return list(violations.values())


def _describe(field_name: str, error: Mapping[str, Any], prop: Optional[PropertySchema]) -> str:
    kind = error.get("type")
    if kind == "missing":
        return f"{field_name}: required field is missing"
    if prop is not None and prop.enum is not None:
        allowed = ", ".join(repr(v) for v in prop.enum)
        return f"{field_name}: must be one of {allowed}, got {error.get('input')!r}"
    if prop is not None:
        got = type(error.get("input")).__name__
        return f"{field_name}: expected {prop.type_name}, got {got}"
    return f"{field_name}: {error.get('msg', 'invalid value')}"
