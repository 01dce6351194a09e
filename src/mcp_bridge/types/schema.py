"""
Restricted JSON-Schema shape used to declare tool inputs.

Only flat objects are supported: every property has a primitive type, an
optional description and an optional enum of allowed literals.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

__all__ = ["PrimitiveType", "PropertySchema", "ObjectSchema"]


class PrimitiveType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class PropertySchema:
    """A single field of an `ObjectSchema`.

    ``type`` is kept as a plain string when it is not one of the six known
    primitive kinds, so schemas read off the wire survive a round trip.
    """

    type: Union[PrimitiveType, str] = PrimitiveType.STRING
    description: str = ""
    enum: Optional[tuple[Any, ...]] = None

    def __post_init__(self) -> None:
        if self.enum is not None and not isinstance(self.enum, tuple):
            object.__setattr__(self, "enum", tuple(self.enum))

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, PrimitiveType) else str(self.type)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertySchema":
        raw_type = data.get("type", PrimitiveType.STRING.value)
        try:
            kind: Union[PrimitiveType, str] = PrimitiveType(raw_type)
        except ValueError:
            kind = str(raw_type)
        enum = data.get("enum")
        return cls(
            type=kind,
            description=data.get("description") or "",
            enum=tuple(enum) if enum is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type_name}
        if self.description:
            out["description"] = self.description
        if self.enum is not None:
            out["enum"] = list(self.enum)
        return out


@dataclass(frozen=True, slots=True)
class ObjectSchema:
    """Typed properties plus the set of required field names.

    Raises:
        ValueError: if a required name is not a declared property.
    """

    properties: Mapping[str, PropertySchema] = field(default_factory=dict)
    required: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        required = frozenset(self.required)
        unknown = required - set(self.properties)
        if unknown:
            raise ValueError(
                f"Required fields not declared as properties: {sorted(unknown)}"
            )
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "required", required)

    @property
    def required_fields(self) -> list[str]:
        """Required names in property declaration order."""
        return [name for name in self.properties if name in self.required]

    def is_required(self, name: str) -> bool:
        return name in self.required

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ObjectSchema":
        """Parse the ``{"type": "object", "properties": ..., "required": ...}`` wire form."""
        data = data or {}
        properties = {
            name: PropertySchema.from_dict(spec or {})
            for name, spec in (data.get("properties") or {}).items()
        }
        return cls(properties=properties, required=frozenset(data.get("required") or ()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: prop.to_dict() for name, prop in self.properties.items()},
            "required": self.required_fields,
        }
