"""
MCP Bridge - an MCP tool server and an LLM chat client that drives it.
"""

__version__ = "0.1.0"

from .client import (  # noqa: E402
    BaseAsyncLLM,
    OpenAILLM,
    AnthropicLLM,
    GeminiLLM,
    create_llm,
)
from .config import Settings  # noqa: E402
from .errors import (  # noqa: E402
    DomainError,
    FatalConfig,
    InvalidInput,
    LoopLimitExceeded,
    MCPBridgeError,
    NotFound,
    ProtocolViolation,
    TransportFailure,
)
from .loop import AgentLoop, LoopState  # noqa: E402
from .providers import Provider, get_api_key  # noqa: E402
from .response import ChatResponse  # noqa: E402
from .session import ModelSession  # noqa: E402
from .tool_server import MCPToolServer  # noqa: E402
from .types import (  # noqa: E402
    ObjectSchema,
    PrimitiveType,
    PropertySchema,
    ToolCallRequest,
    ToolCallResult,
    ToolDeclaration,
    ToolInvocationResult,
)

__all__ = [
    "AgentLoop",
    "AnthropicLLM",
    "BaseAsyncLLM",
    "ChatResponse",
    "DomainError",
    "FatalConfig",
    "GeminiLLM",
    "InvalidInput",
    "LoopLimitExceeded",
    "LoopState",
    "MCPBridgeError",
    "MCPToolServer",
    "ModelSession",
    "NotFound",
    "ObjectSchema",
    "OpenAILLM",
    "PrimitiveType",
    "PropertySchema",
    "ProtocolViolation",
    "Provider",
    "Settings",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDeclaration",
    "ToolInvocationResult",
    "TransportFailure",
    "create_llm",
    "get_api_key",
]
