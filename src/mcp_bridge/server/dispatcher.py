"""
Transport-independent request dispatch for the tool server.

`Dispatcher.invoke_tool` never raises: lookup, validation and handler errors
all come back as a failed `ToolInvocationResult`. `read_resource` and
`get_prompt` raise `DispatchError` subclasses, which the MCP layer turns into
JSON-RPC errors.
"""
from __future__ import annotations

import inspect
import logging
import time
import uuid
from typing import Any, Mapping, Optional

from mcp_bridge.errors import DispatchError, ErrorKind
from mcp_bridge.types import ToolDeclaration, ToolInvocationResult

from . import notes as notes_module
from .prompts import PROMPTS, PromptTemplate, RenderedPrompt, find_prompt
from .registry import ToolRegistry
from .validation import validate

__all__ = ["Dispatcher"]


class Dispatcher:
    def __init__(
        self,
        registry: ToolRegistry,
        *,
        notes: tuple[notes_module.Note, ...] = notes_module.NOTES,
        prompts: tuple[PromptTemplate, ...] = PROMPTS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.registry = registry
        self.notes = notes
        self.prompts = prompts
        self.logger = logger or logging.getLogger(__name__)

    # --- queries -----------------------------------------------------------
    def list_tools(self) -> list[ToolDeclaration]:
        return self.registry.declarations()

    def list_resources(self) -> list[notes_module.ResourceEntry]:
        return notes_module.list_resources(self.notes)

    def list_prompts(self) -> list[PromptTemplate]:
        return list(self.prompts)

    # --- actions -----------------------------------------------------------
    async def invoke_tool(self, name: str, arguments: Any) -> ToolInvocationResult:
        """Look up, validate and run a tool; every failure becomes a result."""
        call_id = uuid.uuid4().hex[:8]
        self.logger.info("tool:call name=%s id=%s", name, call_id)
        started = time.perf_counter()

        try:
            registration = self.registry.lookup(name)
            args = validate(registration.input_model, registration.input_schema, arguments)
            output = registration.handler(args)
            if inspect.isawaitable(output):
                output = await output
        except DispatchError as exc:
            elapsed = time.perf_counter() - started
            self.logger.warning("[%s] %s failed after %.3fs: %s", call_id, name, elapsed, exc)
            return ToolInvocationResult.failure(exc.kind, exc.message)
        except Exception as exc:
            # Unexpected handler bug: log the traceback, keep internals out of the reply.
            self.logger.exception("[%s] %s raised unexpectedly", call_id, name)
            return ToolInvocationResult.failure(
                ErrorKind.DOMAIN_ERROR, f"Tool {name!r} failed: {type(exc).__name__}"
            )

        elapsed = time.perf_counter() - started
        self.logger.debug("[%s] %s succeeded in %.3fs", call_id, name, elapsed)
        return ToolInvocationResult.ok(str(output))

    def read_resource(self, uri: str) -> str:
        """
        Raises:
            NotFound: unknown URI or note id.
        """
        self.logger.info("resource:read uri=%s", uri)
        return notes_module.read_note(uri, self.notes)

    def get_prompt(
        self, name: str, arguments: Optional[Mapping[str, str]] = None
    ) -> RenderedPrompt:
        """
        Raises:
            NotFound: unknown prompt name.
            InvalidInput: arguments violate the template's schema.
        """
        self.logger.info("prompt:get name=%s", name)
        return find_prompt(name, self.prompts).instantiate(arguments)

