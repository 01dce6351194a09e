"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from openai.types.chat import ChatCompletion

from mcp_bridge.params import ChatMessage
from mcp_bridge.providers import Provider
from mcp_bridge.response import ChatResponse
from mcp_bridge.schema import to_function_declarations
from mcp_bridge.types import ToolCallRequest, ToolCallResult, ToolDeclaration


class OpenAIRequestAdapter:
    """Adapter for converting between generic format and OpenAI format."""

    provider = Provider.OPENAI

    def declare_tools(self, tools: Sequence[ToolDeclaration]) -> list[dict[str, Any]]:
        """Translate tool declarations into OpenAI ``function`` tools."""
        return to_function_declarations(tools, self.provider)

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and params to OpenAI request format."""
        openai_messages: list[dict[str, Any]] = []
        for msg in messages:
            openai_msg: dict[str, Any] = {"role": msg["role"]}

            if msg.get("content") is not None:
                openai_msg["content"] = msg["content"]

            # Assistant messages carrying function calls
            if msg.get("tool_calls"):
                openai_msg["tool_calls"] = msg["tool_calls"]
                # OpenAI API: content should be null when tool_calls is present
                openai_msg.setdefault("content", None)

            # Tool response messages
            if msg.get("tool_call_id"):
                openai_msg["tool_call_id"] = msg["tool_call_id"]

            if "content" not in openai_msg:
                openai_msg["content"] = ""

            openai_messages.append(openai_msg)

        base_params = dict(params)
        extras = base_params.pop("extra", {})
        # An empty tools list is rejected by the API
        if not base_params.get("tools"):
            base_params.pop("tools", None)
        for k, v in extras.items():
            base_params.setdefault(k, v)

        return {"messages": openai_messages, **base_params}

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert OpenAI response to unified ChatResponse."""
        content = ""
        tool_calls = None

        if raw.choices and raw.choices[0].message:
            message = raw.choices[0].message
            content = message.content or ""

            if message.tool_calls:
                tool_calls = []
                for tc in message.tool_calls:
                    tool_calls.append(
                        ToolCallRequest(
                            id=tc.id,
                            name=tc.function.name,
                            arguments=_parse_arguments(tc.function.arguments),
                        )
                    )

        return ChatResponse(content=content, tool_calls=tool_calls, raw=raw)

    def assistant_message_from(self, raw: ChatCompletion) -> ChatMessage:
        """Convert OpenAI response to assistant ChatMessage."""
        if not raw.choices or not raw.choices[0].message:
            return {"role": "assistant", "content": ""}

        message = raw.choices[0].message
        chat_message: ChatMessage = {"role": "assistant"}

        if message.content:
            chat_message["content"] = message.content

        if message.tool_calls:
            chat_message["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": tc.type,
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments,
                    },
                }
                for tc in message.tool_calls
            ]
            chat_message.setdefault("content", None)

        return chat_message

    def tool_results_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        """One ``tool`` message per result, in request order.

        The chat completions API has no multi-result message; the batch is
        the consecutive run of tool messages sent in a single request.
        """
        return [
            {"role": "tool", "tool_call_id": result.id, "content": result.content}
            for result in results
        ]


def _parse_arguments(raw_args: Any) -> dict[str, Any]:
    # Malformed JSON becomes {} so the call still gets a (validation error) result.
    if isinstance(raw_args, dict):
        return raw_args
    if isinstance(raw_args, str) and raw_args.strip():
        try:
            parsed = json.loads(raw_args)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}
