"""
Error taxonomy shared by the tool server and the chat client.

Dispatcher-level errors (`NotFound`, `InvalidInput`, `DomainError`) are
caught at the server boundary and travel back to the model as data.
`TransportFailure`, `ProtocolViolation` and `LoopLimitExceeded` abort a
single chat turn. `FatalConfig` aborts the process before any work begins.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import ClassVar, Optional, Sequence

import anthropic
import openai

__all__ = [
    "MCPBridgeError",
    "ErrorKind",
    "DispatchError",
    "NotFound",
    "InvalidInput",
    "DomainError",
    "TransportFailure",
    "FatalConfig",
    "ProtocolViolation",
    "LoopLimitExceeded",
    "classify_error",
]


class MCPBridgeError(RuntimeError):
    """Base class for every error raised by this package."""


class ErrorKind(str, Enum):
    """Kinds of structured errors a tool invocation can report."""

    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"
    DOMAIN_ERROR = "DomainError"


class DispatchError(MCPBridgeError):
    """An error produced while dispatching a tool, resource or prompt request.

    ``str()`` renders as ``"<kind>: <message>"`` which is also the text the
    server puts on the wire for failed tool calls.
    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class NotFound(DispatchError):
    """Unknown tool, resource or prompt."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name


class InvalidInput(DispatchError):
    """Arguments violate the declared schema.

    Attributes:
        violations: One human-readable line per violated constraint, each
            starting with the offending field name.
    """

    kind = ErrorKind.INVALID_INPUT

    def __init__(self, violations: Sequence[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "invalid arguments")


class DomainError(DispatchError):
    """A handler refused the request on business grounds (e.g. divide by zero)."""

    kind = ErrorKind.DOMAIN_ERROR


class TransportFailure(MCPBridgeError):
    """The model provider or the MCP channel could not be reached."""

    def __init__(self, message: str, original_exc: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        if original_exc is not None:
            self.__cause__ = original_exc


class FatalConfig(MCPBridgeError):
    """Missing credential or invalid setting; the process cannot start."""


class ProtocolViolation(MCPBridgeError):
    """Tool results do not pair one-to-one with the model's tool calls."""


class LoopLimitExceeded(MCPBridgeError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, max_rounds: int) -> None:
        super().__init__(
            f"Model requested tools for more than {max_rounds} rounds in one turn"
        )
        self.max_rounds = max_rounds


RATE_LIMIT_ERRORS: tuple[type[Exception], ...] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)

CONN_ERRORS: tuple[type[Exception], ...] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

API_ERRORS: tuple[type[Exception], ...] = (
    openai.APIError,
    anthropic.APIError,
)


def classify_error(exception: Exception, logger: logging.Logger) -> str:
    """
    Classifies a provider exception and returns a concise error message.

    Args:
        exception: The caught exception
        logger: Logger for recording the error

    Returns:
        Formatted error message string
    """
    error_message = str(exception)

    if isinstance(exception, RATE_LIMIT_ERRORS):
        msg = f"Rate limit exceeded: {error_message}"
        logger.warning(msg)
        return msg

    # Connection errors are APIError subclasses in both SDKs, test them first.
    if isinstance(exception, CONN_ERRORS):
        msg = f"Connection error: unable to reach the LLM provider ({error_message})"
        logger.error(msg)
        return msg

    if isinstance(exception, API_ERRORS):
        status_info = getattr(exception, "status_code", "unknown")
        msg = f"API error ({status_info}): {error_message}"
        logger.error(msg)
        return msg

    msg = f"{type(exception).__name__}: {error_message}"
    logger.exception(msg)
    return msg
