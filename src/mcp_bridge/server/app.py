"""
MCP wiring for the tool server: stdio transport, request handlers, entry point.

stdout carries JSON-RPC only. Every log line goes to stderr.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

import anyio
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl

from mcp_bridge import __version__
from mcp_bridge.errors import InvalidInput, NotFound

from .dispatcher import Dispatcher
from .registry import default_registry

__all__ = ["SERVER_NAME", "ToolCallFailed", "create_server", "serve", "main"]

SERVER_NAME = "mcp-bridge-server"

logger = logging.getLogger("mcp_bridge.server")


class ToolCallFailed(Exception):
    """Raised inside the call_tool handler so the SDK replies with ``isError``.

    The message is ``"<kind>: <message>"`` and is parsed back by the client.
    """


def create_server(dispatcher: Optional[Dispatcher] = None) -> Server:
    dispatcher = dispatcher or Dispatcher(default_registry())
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema.to_dict(),
            )
            for tool in dispatcher.list_tools()
        ]

    # Arguments are validated by the dispatcher so violations come back as InvalidInput.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        result = await dispatcher.invoke_tool(name, arguments or {})
        if result.is_error:
            raise ToolCallFailed(result.as_text())
        return [types.TextContent(type="text", text=result.text or "")]

    @server.list_resources()
    async def handle_list_resources() -> list[types.Resource]:
        return [
            types.Resource(
                uri=entry.uri,
                name=entry.name,
                description=entry.description,
                mimeType=entry.mime_type,
            )
            for entry in dispatcher.list_resources()
        ]

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        try:
            text = dispatcher.read_resource(str(uri))
        except NotFound as exc:
            raise McpError(types.ErrorData(code=types.INVALID_REQUEST, message=str(exc))) from exc
        return [ReadResourceContents(content=text, mime_type="text/plain")]

    @server.list_prompts()
    async def handle_list_prompts() -> list[types.Prompt]:
        return [
            types.Prompt(
                name=prompt.name,
                description=prompt.description,
                arguments=[
                    types.PromptArgument(
                        name=arg_name,
                        description=prop.description,
                        required=prompt.arguments.is_required(arg_name),
                    )
                    for arg_name, prop in prompt.arguments.properties.items()
                ],
            )
            for prompt in dispatcher.list_prompts()
        ]

    @server.get_prompt()
    async def handle_get_prompt(
        name: str, arguments: dict[str, str] | None
    ) -> types.GetPromptResult:
        try:
            rendered = dispatcher.get_prompt(name, arguments)
        except NotFound as exc:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(exc))) from exc
        except InvalidInput as exc:
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(exc))) from exc
        return types.GetPromptResult(
            description=rendered.description,
            messages=[
                types.PromptMessage(role=role, content=types.TextContent(type="text", text=text))
                for role, text in rendered.messages
            ],
        )

    return server


async def serve(dispatcher: Optional[Dispatcher] = None) -> None:
    server = create_server(dispatcher)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def configure_logging(level: Optional[str] = None) -> None:
    level_name = (level or os.getenv("MCP_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def main() -> int:
    configure_logging()
    dispatcher = Dispatcher(default_registry())
    logger.info("Starting %s %s (transport=stdio)", SERVER_NAME, __version__)
    logger.info("  Tools     : %s", ", ".join(t.name for t in dispatcher.list_tools()))
    logger.info("  Resources : %s", ", ".join(r.uri for r in dispatcher.list_resources()))
    logger.info("  Prompts   : %s", ", ".join(p.name for p in dispatcher.list_prompts()))

    try:
        anyio.run(serve, dispatcher)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except Exception:
        logger.critical("Fatal server error", exc_info=True)
        return 1
    return 0
