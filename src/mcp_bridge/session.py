"""The conversation held with one model for the life of the chat process."""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from mcp_bridge.client import BaseAsyncLLM
from mcp_bridge.params import ChatMessage
from mcp_bridge.response import ChatResponse
from mcp_bridge.types import ToolCallResult

__all__ = ["ModelSession"]

logger = logging.getLogger(__name__)


class ModelSession:
    """
    Chat history plus the model it is sent to.

    Every exchange sends the full history; the assistant reply is appended in
    the provider's own message shape so tool-call ids survive for pairing.
    History only shrinks when an aborted turn is rolled back.
    """

    def __init__(
        self,
        llm: BaseAsyncLLM,
        *,
        system_prompt: Optional[str] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        self.llm = llm
        self.params = dict(params or {})
        self._history: list[ChatMessage] = []
        if system_prompt:
            self._history.append({"role": "system", "content": system_prompt})

    @property
    def history(self) -> tuple[ChatMessage, ...]:
        return tuple(self._history)

    def mark(self) -> int:
        """Position to roll back to if the next exchange has to be abandoned."""
        return len(self._history)

    def rollback(self, mark: int) -> None:
        """Drop every message appended since ``mark``."""
        if len(self._history) > mark:
            logger.debug("Discarding %d message(s) of an aborted turn", len(self._history) - mark)
            del self._history[mark:]

    async def send_user(self, text: str, tools: Sequence[dict[str, Any]]) -> ChatResponse:
        """Append a user message and ask the model for the next step.

        Raises:
            TransportFailure: if the provider request failed.
        """
        self._history.append({"role": "user", "content": text})
        return await self._exchange(tools)

    async def send_tool_results(
        self, results: Sequence[ToolCallResult], tools: Sequence[dict[str, Any]]
    ) -> ChatResponse:
        """Append one round of tool results as a single batch and continue.

        Raises:
            TransportFailure: if the provider request failed.
        """
        self._history.extend(self.llm.adapter.tool_results_messages(results))
        return await self._exchange(tools)

    async def _exchange(self, tools: Sequence[dict[str, Any]]) -> ChatResponse:
        response = await self.llm.chat(self._history, params={**self.params, "tools": list(tools)})
        response.raise_for_error()
        self._history.append(self.llm.adapter.assistant_message_from(response.raw))
        logger.debug(
            "Model replied with %d tool call(s); history has %d messages",
            len(response.tool_calls or ()),
            len(self._history),
        )
        return response
