"""calculator: basic arithmetic on two numbers."""
from __future__ import annotations

from typing import Any, Union

from mcp_bridge.errors import DomainError
from mcp_bridge.types import ObjectSchema, PrimitiveType, PropertySchema

from .registry import ToolRegistration

Number = Union[int, float]

OPERATIONS = ("add", "subtract", "multiply", "divide")

INPUT_SCHEMA = ObjectSchema(
    properties={
        "operation": PropertySchema(
            PrimitiveType.STRING,
            "The arithmetic operation to perform",
            enum=OPERATIONS,
        ),
        "a": PropertySchema(PrimitiveType.NUMBER, "The first number"),
        "b": PropertySchema(PrimitiveType.NUMBER, "The second number"),
    },
    required=frozenset({"operation", "a", "b"}),
)


def format_number(value: Number) -> str:
    """Whole floats print without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def calculate(operation: str, a: Number, b: Number) -> Number:
    if operation == "add":
        return a + b
    if operation == "subtract":
        return a - b
    if operation == "multiply":
        return a * b
    if operation == "divide":
        if b == 0:
            raise DomainError("Cannot divide by zero")
        return a / b
    raise DomainError(f"Unsupported operation: {operation}")


def handle(args: Any) -> str:
    result = calculate(args.operation, args.a, args.b)
    return f"{format_number(args.a)} {args.operation} {format_number(args.b)} = {format_number(result)}"


registration = ToolRegistration(
    name="calculator",
    description=(
        "Perform basic arithmetic operations: add, subtract, multiply, or divide two numbers."
    ),
    input_schema=INPUT_SCHEMA,
    handler=handle,
)
