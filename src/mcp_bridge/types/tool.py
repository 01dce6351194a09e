"""
Provider-neutral dataclasses for tool declaration and tool use.

Everything provider-specific lives in adapters; everything MCP-specific lives
in `mcp_bridge.server.app` and `mcp_bridge.tool_server`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from mcp_bridge.errors import ErrorKind

from .schema import ObjectSchema

__all__ = ["ToolDeclaration", "ToolCallRequest", "ToolCallResult", "ToolInvocationResult"]


@dataclass(frozen=True, slots=True)
class ToolDeclaration:
    """What a tool looks like from the outside: name, description, input schema."""

    name: str
    description: str
    input_schema: ObjectSchema


@dataclass(slots=True)
class ToolCallRequest:
    """A model-agnostic request emitted by the LLM to call a tool."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""

    id: str  # must match the request id
    name: str
    content: str
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class ToolInvocationResult:
    """Outcome of one tool invocation: either text or an error kind plus message."""

    text: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, text: str) -> "ToolInvocationResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "ToolInvocationResult":
        return cls(error_kind=kind, message=message)

    @classmethod
    def from_error_text(cls, text: str) -> "ToolInvocationResult":
        """Rebuild a failure from its ``"<kind>: <message>"`` wire text.

        Text without a recognised kind prefix is reported as a domain error.
        """
        prefix, sep, rest = text.partition(": ")
        if sep:
            try:
                return cls.failure(ErrorKind(prefix), rest)
            except ValueError:
                pass
        return cls.failure(ErrorKind.DOMAIN_ERROR, text)

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None

    def as_text(self) -> str:
        """Text handed to the model; failures keep their kind prefix."""
        if self.error_kind is not None:
            return f"{self.error_kind.value}: {self.message}"
        return self.text or ""
