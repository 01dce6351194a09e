"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

from typing import Any, Sequence

from anthropic.types import Message

from mcp_bridge.params import ChatMessage
from mcp_bridge.providers import Provider
from mcp_bridge.response import ChatResponse
from mcp_bridge.schema import to_function_declarations
from mcp_bridge.types import ToolCallRequest, ToolCallResult, ToolDeclaration

DEFAULT_MAX_TOKENS = 4096


class AnthropicRequestAdapter:
    """Adapter for converting between generic format and Anthropic format."""

    provider = Provider.ANTHROPIC

    def declare_tools(self, tools: Sequence[ToolDeclaration]) -> list[dict[str, Any]]:
        """Translate tool declarations into Anthropic ``input_schema`` tools."""
        return to_function_declarations(tools, self.provider)

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and params to Anthropic request format."""
        anthropic_messages: list[dict[str, Any]] = []
        system_prompt: Any = None

        for msg in messages:
            # System prompt is a top-level request field, not a message
            if msg["role"] == "system":
                system_prompt = msg.get("content") or None
                continue

            content = msg.get("content")
            anthropic_messages.append(
                {
                    "role": msg["role"],
                    "content": content if isinstance(content, (str, list)) else str(content or ""),
                }
            )

        base_params = dict(params)
        extras = base_params.pop("extra", {})

        # Anthropic requires max_tokens
        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        if not base_params.get("tools"):
            base_params.pop("tools", None)

        for k, v in extras.items():
            base_params.setdefault(k, v)

        request: dict[str, Any] = {"messages": anthropic_messages, **base_params}
        if system_prompt:
            request["system"] = system_prompt
        return request

    def from_provider(self, raw: Message) -> ChatResponse:
        """Convert Anthropic response to unified ChatResponse."""
        text_parts: list[str] = []
        tool_calls: list[ToolCallRequest] = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=block.id,
                        name=block.name,
                        arguments=dict(block.input) if hasattr(block.input, "items") else {},
                    )
                )

        return ChatResponse(
            content="".join(text_parts), tool_calls=tool_calls or None, raw=raw
        )

    def assistant_message_from(self, raw: Message) -> ChatMessage:
        """Convert Anthropic response to assistant ChatMessage."""
        chat_message: ChatMessage = {"role": "assistant"}

        if not raw.content:
            chat_message["content"] = ""
            return chat_message

        text_parts = []
        tool_use_blocks = []

        for block in raw.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_use_blocks.append(
                    {
                        "type": "tool_use",
                        "id": block.id,
                        "name": block.name,
                        "input": dict(block.input) if hasattr(block.input, "items") else {},
                    }
                )

        if tool_use_blocks:
            content_list: list[dict[str, Any]] = []
            if text_parts:
                content_list.append({"type": "text", "text": "".join(text_parts)})
            content_list.extend(tool_use_blocks)
            chat_message["content"] = content_list
        else:
            chat_message["content"] = "".join(text_parts)

        return chat_message

    def tool_results_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        """All results of one round as ``tool_result`` blocks of a single user message."""
        return [
            {
                "role": "user",
                "content": [_tool_result_block(result) for result in results],
            }
        ]


def _tool_result_block(result: ToolCallResult) -> dict[str, Any]:
    block: dict[str, Any] = {
        "type": "tool_result",
        "tool_use_id": result.id,
        "content": result.content,
    }
    if result.is_error:
        block["is_error"] = True
    return block
