"""
Translate tool input schemas into provider function-declaration formats.

All functions here are pure: the same declaration always produces the same
output, key order included, so ``json.dumps`` of two translations compares
byte for byte.
"""
from __future__ import annotations

from typing import Any, Final, Sequence, Union

from mcp_bridge.providers import Provider
from mcp_bridge.types import ObjectSchema, PrimitiveType, PropertySchema, ToolDeclaration

__all__ = ["type_tag", "translate_schema", "to_function_declaration", "to_function_declarations"]

# OpenAI, Gemini (OpenAI-compatible endpoint) and Anthropic all take JSON-Schema tags.
_TYPE_TAGS: Final[dict[PrimitiveType, str]] = {
    PrimitiveType.STRING: "string",
    PrimitiveType.NUMBER: "number",
    PrimitiveType.INTEGER: "integer",
    PrimitiveType.BOOLEAN: "boolean",
    PrimitiveType.ARRAY: "array",
    PrimitiveType.OBJECT: "object",
}

_DEFAULT_TAG: Final[str] = _TYPE_TAGS[PrimitiveType.STRING]


def type_tag(kind: Union[PrimitiveType, str]) -> str:
    """Map a primitive kind to the provider type tag; unknown kinds become ``string``."""
    try:
        return _TYPE_TAGS[PrimitiveType(kind)]
    except ValueError:
        return _DEFAULT_TAG


def _translate_property(prop: PropertySchema) -> dict[str, Any]:
    out: dict[str, Any] = {
        "type": type_tag(prop.type),
        "description": prop.description,
    }
    if prop.enum is not None:
        out["enum"] = list(prop.enum)
    return out


def translate_schema(schema: ObjectSchema) -> dict[str, Any]:
    """Render an `ObjectSchema` as a provider ``parameters`` object."""
    return {
        "type": _TYPE_TAGS[PrimitiveType.OBJECT],
        "properties": {
            name: _translate_property(prop) for name, prop in schema.properties.items()
        },
        "required": schema.required_fields,
    }


def to_function_declaration(tool: ToolDeclaration, provider: Provider) -> dict[str, Any]:
    """
    Build the tool entry a provider expects in its ``tools`` request field.

    Args:
        tool: Declaration as listed by the tool server.
        provider: Target API.

    Returns:
        ``{"type": "function", "function": {...}}`` for OpenAI and Gemini,
        ``{"name", "description", "input_schema"}`` for Anthropic.
    """
    parameters = translate_schema(tool.input_schema)
    if provider is Provider.ANTHROPIC:
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": parameters,
        }
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": parameters,
        },
    }


def to_function_declarations(
    tools: Sequence[ToolDeclaration], provider: Provider
) -> list[dict[str, Any]]:
    return [to_function_declaration(tool, provider) for tool in tools]
