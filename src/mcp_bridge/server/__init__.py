"""Stdio MCP server exposing tools, note resources and prompt templates."""

from .app import create_server, main, serve
from .dispatcher import Dispatcher
from .registry import ToolRegistration, ToolRegistry, default_registry

__all__ = [
    "Dispatcher",
    "ToolRegistration",
    "ToolRegistry",
    "create_server",
    "default_registry",
    "main",
    "serve",
]
