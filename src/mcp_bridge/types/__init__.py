from .schema import ObjectSchema, PrimitiveType, PropertySchema
from .tool import ToolCallRequest, ToolCallResult, ToolDeclaration, ToolInvocationResult

__all__ = [
    "ObjectSchema",
    "PrimitiveType",
    "PropertySchema",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDeclaration",
    "ToolInvocationResult",
]
