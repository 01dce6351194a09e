"""
Client side of the MCP connection: spawn the tool server and talk to it.
"""
from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import Any, Mapping, Optional, Sequence

import mcp.types as types
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.shared.exceptions import McpError

from mcp_bridge.errors import TransportFailure
from mcp_bridge.types import ObjectSchema, ToolDeclaration, ToolInvocationResult

__all__ = ["MCPToolServer"]

logger = logging.getLogger(__name__)


class MCPToolServer:
    """
    An MCP server reached over stdio, exposing the two calls the agent loop needs.

    Use as an async context manager::

        async with MCPToolServer(sys.executable, ["-m", "mcp_bridge.server"]) as server:
            tools = await server.list_tools()
            result = await server.invoke_tool("calculator", {...})
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.command = command
        self.args = list(args)
        self.env = {**get_default_environment(), **(env or {})}
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None

    @classmethod
    def from_session(cls, session: ClientSession) -> "MCPToolServer":
        """Wrap an already initialized session (in-process servers, tests)."""
        self = cls.__new__(cls)
        self.command = "<session>"
        self.args = []
        self.env = {}
        self._stack = None
        self._session = session
        return self

    async def __aenter__(self) -> "MCPToolServer":
        stack = AsyncExitStack()
        params = StdioServerParameters(command=self.command, args=self.args, env=self.env)
        try:
            read_stream, write_stream = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
            init = await session.initialize()
        except Exception as exc:
            await stack.aclose()
            raise TransportFailure(
                f"Unable to start MCP server {self.command!r}: {exc}", exc
            ) from exc
        logger.info(
            "Connected to MCP server %s %s", init.serverInfo.name, init.serverInfo.version
        )
        self._stack = stack
        self._session = session
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stack is not None:
            stack, self._stack = self._stack, None
            self._session = None
            await stack.aclose()

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise TransportFailure("MCP session is not connected")
        return self._session

    async def list_tools(self) -> list[ToolDeclaration]:
        try:
            listing = await self.session.list_tools()
        except McpError as exc:
            raise TransportFailure(f"tools/list failed: {exc}", exc) from exc
        return [
            ToolDeclaration(
                name=tool.name,
                description=tool.description or "",
                input_schema=ObjectSchema.from_dict(tool.inputSchema),
            )
            for tool in listing.tools
        ]

    async def invoke_tool(self, name: str, arguments: dict[str, Any]) -> ToolInvocationResult:
        """
        Call a tool and fold every server-reported failure into the result.

        Raises:
            TransportFailure: if the channel to the server is broken.
        """
        try:
            result = await self.session.call_tool(name, arguments)
        except McpError as exc:
            # JSON-RPC level error from the server: still data for the model.
            return ToolInvocationResult.from_error_text(exc.error.message)
        except Exception as exc:
            raise TransportFailure(f"tools/call {name!r} failed: {exc}", exc) from exc

        text = _joined_text(result.content)
        if result.isError:
            return ToolInvocationResult.from_error_text(text)
        return ToolInvocationResult.ok(text)


def _joined_text(content: Sequence[Any]) -> str:
    return "\n".join(item.text for item in content if isinstance(item, types.TextContent))
