"""
Terminal chat: spawn the tool server, then let the model use its tools.

    $ mcp-bridge-chat --provider gemini
    You: what is 25 times 4?
    Calling tool: calculator({"operation": "multiply", "a": 25, "b": 4})
       Result: 25 multiply 4 = 100
    Assistant: 25 times 4 is 100.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Callable, Optional, Sequence, TextIO

from mcp_bridge.client import create_llm
from mcp_bridge.config import Settings
from mcp_bridge.errors import FatalConfig, LoopLimitExceeded, ProtocolViolation, TransportFailure
from mcp_bridge.loop import AgentLoop
from mcp_bridge.providers import Provider, get_api_key
from mcp_bridge.session import ModelSession
from mcp_bridge.tool_server import MCPToolServer
from mcp_bridge.types import ToolCallRequest, ToolInvocationResult

logger = logging.getLogger("mcp_bridge.chat")

EXIT_COMMANDS = {"exit", "quit"}


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with an LLM that can call the tools of an MCP server."
    )
    parser.add_argument("--provider", choices=[p.value for p in Provider], help="LLM provider")
    parser.add_argument("--model", help="Model identifier (default depends on provider)")
    parser.add_argument(
        "--max-rounds",
        type=int,
        dest="max_rounds",
        help="Maximum tool rounds per turn, 0 for no limit (default: 10)",
    )
    parser.add_argument("--timeout", type=float, help="Model request timeout in seconds")
    parser.add_argument(
        "--server",
        dest="server_command",
        help="Command that starts the MCP server (default: bundled server)",
    )
    parser.add_argument("--system", dest="system_prompt", help="Optional system prompt")
    parser.add_argument("--log-level", dest="log_level", help="Logging level for both processes")
    return parser


class ConsoleReporter:
    """Echoes tool activity so the user can follow the loop."""

    def __init__(self, out: TextIO = sys.stdout) -> None:
        self.out = out

    def tool_call(self, call: ToolCallRequest) -> None:
        print(f"\nCalling tool: {call.name}({json.dumps(call.arguments)})", file=self.out)

    def tool_result(self, call: ToolCallRequest, result: ToolInvocationResult) -> None:
        label = "Error" if result.is_error else "Result"
        print(f"   {label}: {result.as_text()}", file=self.out)


async def run_chat(
    settings: Settings,
    api_key: str,
    *,
    read_line: Optional[Callable[[str], str]] = None,
    out: TextIO = sys.stdout,
) -> int:
    command, *args = settings.server_command
    reporter = ConsoleReporter(out)

    print("Connecting to MCP server...", file=out)
    async with MCPToolServer(command, args, env={"MCP_LOG_LEVEL": settings.log_level}) as server:
        llm = create_llm(
            settings.provider, settings.model, api_key=api_key, timeout=settings.timeout
        )
        async with llm:
            session = ModelSession(llm, system_prompt=settings.system_prompt)
            loop = await AgentLoop.create(
                session,
                server,
                max_rounds=settings.max_rounds,
                on_tool_call=reporter.tool_call,
                on_tool_result=reporter.tool_result,
            )
            print(f"Chatting with {settings.provider.value}:{settings.model}", file=out)
            await repl(loop, read_line=read_line, out=out)
    return 0


async def repl(
    loop: AgentLoop,
    *,
    read_line: Optional[Callable[[str], str]] = None,
    out: TextIO = sys.stdout,
) -> None:
    """Read user lines until exit/quit/EOF; a failed turn is reported and skipped."""
    read_line = read_line or input
    print(f"Available tools: {', '.join(t.name for t in loop.tools)}\n", file=out)
    print('Type "exit" to quit', file=out)
    print("-" * 60, file=out)

    while True:
        try:
            line = await asyncio.to_thread(read_line, "\nYou: ")
        except EOFError:
            break
        text = line.strip()
        if not text:
            continue
        if text.lower() in EXIT_COMMANDS:
            break

        try:
            answer = await loop.run_turn(text)
        except (TransportFailure, ProtocolViolation, LoopLimitExceeded) as exc:
            logger.debug("Turn aborted", exc_info=True)
            print(f"\nError: {exc}", file=out)
            continue
        print(f"\nAssistant: {answer}", file=out)

    print("\nGoodbye!", file=out)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        settings = Settings.from_env(**vars(args))
        api_key = get_api_key(settings.provider)
    except FatalConfig as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )

    try:
        return asyncio.run(run_chat(settings, api_key))
    except TransportFailure as exc:
        logger.critical("Fatal: %s", exc)
        return 1
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
