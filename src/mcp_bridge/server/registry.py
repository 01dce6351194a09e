"""
Tool registration structures.

Tool modules expose a ``registration`` (`ToolRegistration`); the registry
collects them once at start-up and is read-only afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Iterable, Iterator, Mapping, Union

from pydantic import BaseModel

from mcp_bridge.errors import NotFound
from mcp_bridge.types import ObjectSchema, ToolDeclaration

from .validation import build_model

__all__ = ["ToolHandler", "ToolRegistration", "ToolRegistry", "default_registry"]

ToolHandler = Callable[[Any], Union[str, Awaitable[str]]]


@dataclass(frozen=True)
class ToolRegistration:
    name: str
    description: str
    input_schema: ObjectSchema
    handler: ToolHandler
    input_model: type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_model", build_model(self.name, self.input_schema))

    @property
    def declaration(self) -> ToolDeclaration:
        return ToolDeclaration(
            name=self.name, description=self.description, input_schema=self.input_schema
        )


class ToolRegistry(Mapping[str, ToolRegistration]):
    """Immutable name -> registration table with exact, case-sensitive lookup."""

    def __init__(self, registrations: Iterable[ToolRegistration]) -> None:
        table: dict[str, ToolRegistration] = {}
        for registration in registrations:
            if registration.name in table:
                raise ValueError(f"Duplicate tool name: {registration.name}")
            table[registration.name] = registration
        self._table: Mapping[str, ToolRegistration] = MappingProxyType(table)

    def __getitem__(self, name: str) -> ToolRegistration:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, name: str) -> ToolRegistration:
        """
        Raises:
            NotFound: carrying the literal unknown name.
        """
        try:
            return self._table[name]
        except KeyError:
            raise NotFound(f"Unknown tool: {name}", name) from None

    def declarations(self) -> list[ToolDeclaration]:
        return [registration.declaration for registration in self._table.values()]


def default_registry() -> ToolRegistry:
    """The calculator and weather tools."""
    from . import calculator, weather

    return ToolRegistry([calculator.registration, weather.registration])
