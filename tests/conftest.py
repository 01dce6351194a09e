"""Shared fixtures: scripted LLMs, canned provider responses, an in-process tool server."""

from __future__ import annotations

import copy
import json
from typing import Any, Sequence

import pytest
from anthropic.types import Message
from openai.types.chat import ChatCompletion

from mcp_bridge.adapters import AnthropicRequestAdapter, OpenAIRequestAdapter
from mcp_bridge.client import BaseAsyncLLM, RequestAdapter
from mcp_bridge.params import ChatMessage
from mcp_bridge.server import Dispatcher, default_registry
from mcp_bridge.types import ToolDeclaration, ToolInvocationResult


@pytest.fixture
def anyio_backend():
    return "asyncio"


def completion(content: str | None = None, tool_calls: Sequence[tuple[str, str, Any]] = ()) -> ChatCompletion:
    """Build an OpenAI ChatCompletion; tool_calls are (id, name, arguments) triples.

    String arguments are passed through verbatim so malformed JSON can be tested.
    """
    calls = [
        {
            "id": call_id,
            "type": "function",
            "function": {
                "name": name,
                "arguments": args if isinstance(args, str) else json.dumps(args),
            },
        }
        for call_id, name, args in tool_calls
    ]
    return ChatCompletion.model_validate(
        {
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "tool_calls" if calls else "stop",
                    "message": {
                        "role": "assistant",
                        "content": content,
                        "tool_calls": calls or None,
                    },
                }
            ],
        }
    )


def anthropic_message(text: str | None = None, tool_uses: Sequence[tuple[str, str, dict]] = ()) -> Message:
    content: list[dict[str, Any]] = []
    if text:
        content.append({"type": "text", "text": text})
    content.extend(
        {"type": "tool_use", "id": use_id, "name": name, "input": args}
        for use_id, name, args in tool_uses
    )
    return Message.model_validate(
        {
            "id": "msg_1",
            "type": "message",
            "role": "assistant",
            "model": "test-model",
            "content": content,
            "stop_reason": "tool_use" if tool_uses else "end_turn",
            "stop_sequence": None,
            "usage": {"input_tokens": 1, "output_tokens": 1},
        }
    )


class ScriptedLLM(BaseAsyncLLM):
    """Returns canned raw responses in order and records every request.

    An exception in the script is raised from the provider call instead.
    """

    def __init__(self, replies: Sequence[Any], adapter: RequestAdapter | None = None) -> None:
        super().__init__("test-model")
        self.replies = list(replies)
        self.requests: list[dict[str, Any]] = []
        self._adapter = adapter or OpenAIRequestAdapter()

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(self, messages: Sequence[ChatMessage], params: dict[str, Any]) -> Any:
        self.requests.append({"messages": copy.deepcopy(list(messages)), "params": params})
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class InProcessToolServer:
    """Tool server backed directly by a Dispatcher, no subprocess."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def list_tools(self) -> list[ToolDeclaration]:
        return self.dispatcher.list_tools()

    async def invoke_tool(self, name: str, arguments: dict[str, Any]) -> ToolInvocationResult:
        self.calls.append((name, arguments))
        return await self.dispatcher.invoke_tool(name, arguments)


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher(default_registry())


@pytest.fixture
def tool_server(dispatcher: Dispatcher) -> InProcessToolServer:
    return InProcessToolServer(dispatcher)


@pytest.fixture
def openai_adapter() -> OpenAIRequestAdapter:
    return OpenAIRequestAdapter()


@pytest.fixture
def anthropic_adapter() -> AnthropicRequestAdapter:
    return AnthropicRequestAdapter()
