from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from mcp_bridge import (
    AgentLoop,
    MCPToolServer,
    ModelSession,
    Provider,
    ToolCallRequest,
    ToolInvocationResult,
    create_llm,
)
from mcp_bridge.providers import DEFAULT_MODELS

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def log_call(call: ToolCallRequest) -> None:
    logger.info("-> %s(%s) [%s]", call.name, call.arguments, call.id)


def log_result(call: ToolCallRequest, result: ToolInvocationResult) -> None:
    logger.info("<- %s: %s", call.name, result.as_text())


async def single_turn(provider: Provider, model: str, question: str) -> None:
    """
    Run one user turn against the bundled tool server.

    1) Spawn the server over stdio and list its tools
    2) Send the question with the tools declared for the provider
    3) Let the loop execute every requested call and feed the results back
    4) Print the final answer
    """
    async with MCPToolServer(sys.executable, ["-m", "mcp_bridge.server"]) as server:
        async with create_llm(provider, model) as llm:
            loop = await AgentLoop.create(
                ModelSession(llm),
                server,
                on_tool_call=log_call,
                on_tool_result=log_result,
            )
            answer = await loop.run_turn(question)
            logger.info("%s says: %s", provider.value.capitalize(), answer)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--provider",
        choices=[p.value for p in Provider],
        default=Provider.GEMINI.value,
    )
    parser.add_argument("--model", default=None)
    parser.add_argument(
        "question",
        nargs="?",
        default="What is 25 times 4, and what's the weather in Tokyo in fahrenheit?",
    )
    args = parser.parse_args()

    provider = Provider(args.provider)
    asyncio.run(single_turn(provider, args.model or DEFAULT_MODELS[provider], args.question))
