"""
The agentic loop: model -> tool calls -> results -> model ... -> final text.

One `AgentLoop` serves every turn of a chat. A turn runs until the model
answers without requesting tools, or aborts with `TransportFailure`,
`ProtocolViolation` or `LoopLimitExceeded`; an aborted turn is removed
from the history. Tool calls of one model response run sequentially in the
order the model listed them, and their results go back as a single batch.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Sequence

from mcp_bridge.errors import LoopLimitExceeded, ProtocolViolation
from mcp_bridge.session import ModelSession
from mcp_bridge.types import (
    ToolCallRequest,
    ToolCallResult,
    ToolDeclaration,
    ToolInvocationResult,
)

__all__ = ["LoopState", "ToolServer", "AgentLoop", "check_pairing"]

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    MODEL_REQUESTED = "model_requested"
    TOOLS_REQUESTED = "tools_requested"
    TOOLS_EXECUTING = "tools_executing"
    FINAL_ANSWER = "final_answer"


class ToolServer(Protocol):
    """What the loop needs from the tool-executing side."""

    async def list_tools(self) -> list[ToolDeclaration]: ...

    async def invoke_tool(self, name: str, arguments: dict[str, Any]) -> ToolInvocationResult: ...


ToolCallHook = Callable[[ToolCallRequest], None]
ToolResultHook = Callable[[ToolCallRequest, ToolInvocationResult], None]


def check_pairing(
    requests: Sequence[ToolCallRequest], results: Sequence[ToolCallResult]
) -> None:
    """Every request has exactly one result, at the same position, with the same id.

    Raises:
        ProtocolViolation: on any count, id or name mismatch.
    """
    if len(requests) != len(results):
        raise ProtocolViolation(
            f"{len(requests)} tool call(s) requested but {len(results)} result(s) produced"
        )
    for index, (request, result) in enumerate(zip(requests, results)):
        if request.id != result.id or request.name != result.name:
            raise ProtocolViolation(
                f"Result #{index} ({result.name}, id={result.id!r}) does not match "
                f"request ({request.name}, id={request.id!r})"
            )


class AgentLoop:
    """
    Drives user turns through the model and the tool server.

    Args:
        session: Conversation with the model.
        tool_server: Executes tool calls.
        tools: Declarations listed by the tool server; translated once for the
            session's provider.
        max_rounds: Maximum tool rounds per turn, ``0`` for no limit.
        on_tool_call: Called before each tool invocation.
        on_tool_result: Called after each tool invocation.
    """

    def __init__(
        self,
        session: ModelSession,
        tool_server: ToolServer,
        tools: Sequence[ToolDeclaration],
        *,
        max_rounds: int = 10,
        on_tool_call: Optional[ToolCallHook] = None,
        on_tool_result: Optional[ToolResultHook] = None,
    ) -> None:
        self.session = session
        self.tool_server = tool_server
        self.tools = tuple(tools)
        self.max_rounds = max_rounds
        self.on_tool_call = on_tool_call
        self.on_tool_result = on_tool_result
        self._declarations = session.llm.adapter.declare_tools(self.tools)
        self._state = LoopState.AWAITING_USER_INPUT

    @classmethod
    async def create(
        cls, session: ModelSession, tool_server: ToolServer, **kwargs: Any
    ) -> "AgentLoop":
        """Build a loop from the tools the server currently lists."""
        tools = await tool_server.list_tools()
        return cls(session, tool_server, tools, **kwargs)

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def declarations(self) -> list[dict[str, Any]]:
        return list(self._declarations)

    def _transition(self, state: LoopState) -> None:
        logger.debug("loop %s -> %s", self._state.value, state.value)
        self._state = state

    async def run_turn(self, text: str) -> str:
        """
        Run one user turn to completion and return the model's final text.

        Raises:
            TransportFailure: the model or the tool server could not be reached.
            ProtocolViolation: results did not pair with the requested calls.
            LoopLimitExceeded: more than ``max_rounds`` tool rounds.
        """
        mark = self.session.mark()
        try:
            self._transition(LoopState.MODEL_REQUESTED)
            response = await self.session.send_user(text, self._declarations)

            rounds = 0
            while response.has_tool_calls:
                rounds += 1
                if self.max_rounds and rounds > self.max_rounds:
                    raise LoopLimitExceeded(self.max_rounds)

                self._transition(LoopState.TOOLS_REQUESTED)
                calls = list(response.tool_calls or ())
                results = await self._execute(calls)
                check_pairing(calls, results)

                self._transition(LoopState.MODEL_REQUESTED)
                response = await self.session.send_tool_results(results, self._declarations)

            self._transition(LoopState.FINAL_ANSWER)
            return response.content
        except BaseException:
            # Drop the whole turn, user message included.
            self.session.rollback(mark)
            raise
        finally:
            self._transition(LoopState.AWAITING_USER_INPUT)

    async def _execute(self, calls: Sequence[ToolCallRequest]) -> list[ToolCallResult]:
        results: list[ToolCallResult] = []
        for call in calls:
            self._transition(LoopState.TOOLS_EXECUTING)
            if self.on_tool_call:
                self.on_tool_call(call)
            outcome = await self.tool_server.invoke_tool(call.name, call.arguments)
            if outcome.is_error:
                logger.info("Tool %s reported %s: %s", call.name, outcome.error_kind.value, outcome.message)
            if self.on_tool_result:
                self.on_tool_result(call, outcome)
            results.append(
                ToolCallResult(
                    id=call.id,
                    name=call.name,
                    content=outcome.as_text(),
                    is_error=outcome.is_error,
                )
            )
        return results
