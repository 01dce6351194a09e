"""
Async LLM clients with a unified chat() method.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from mcp_bridge.adapters import (
    AnthropicRequestAdapter,
    GeminiRequestAdapter,
    OpenAIRequestAdapter,
)
from mcp_bridge.errors import classify_error
from mcp_bridge.params import ChatMessage, normalize_params
from mcp_bridge.providers import Provider, get_api_key
from mcp_bridge.response import ChatResponse
from mcp_bridge.types import ToolCallResult, ToolDeclaration

__all__ = [
    "RequestAdapter",
    "BaseAsyncLLM",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "create_llm",
]

DEFAULT_TIMEOUT = 60.0
# Failures are reported once to the user; the SDKs must not retry behind our back.
DEFAULT_MAX_RETRIES = 0


class RequestAdapter(Protocol):
    """Protocol for adapting between generic chat format and provider-specific format."""

    provider: Provider

    def declare_tools(self, tools: Sequence[ToolDeclaration]) -> list[dict[str, Any]]:
        """Translate tool declarations into the provider's ``tools`` entries."""
        ...

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and normalized params to provider-specific request format."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...

    def assistant_message_from(self, raw: Any) -> ChatMessage:
        """Convert a provider response to a provider-specific assistant ChatMessage."""
        ...

    def tool_results_messages(self, results: Sequence[ToolCallResult]) -> list[ChatMessage]:
        """Convert one round of ToolCallResults to provider-specific ChatMessages."""
        ...


class BaseAsyncLLM(ABC):
    """
    Abstract base class for async-first LLM wrappers.
    """

    def __init__(
        self,
        model: str,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> Any:
        """
        Core asynchronous implementation for sending chat messages to the LLM.
        This method must be implemented by subclasses.

        Args:
            messages: A sequence of chat messages forming the conversation history.
            params: Normalized parameters for the chat completion request.

        Returns:
            The raw provider response.
        """
        ...

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """
        Send chat request and return a single response.

        Provider exceptions never escape: they come back as a ChatResponse
        whose ``error`` is set.
        """
        normalized_params = normalize_params(params)

        try:
            raw = await self._chat_impl(messages, normalized_params)
            return self.adapter.from_provider(raw)
        except Exception as exc:
            return self._wrap_error(exc)

    def _wrap_error(self, exc: Exception) -> ChatResponse:
        """Wrap exception into an error response."""
        msg = classify_error(exc, self.logger)
        return ChatResponse(content="", error=msg)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients. Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseAsyncLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI LLM implementation (async-only).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    adapter_class: type[OpenAIRequestAdapter] = OpenAIRequestAdapter
    default_base_url: Optional[str] = None

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name)
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url or self.default_base_url,
        )
        self._adapter = self.adapter_class()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build the LLM around an already-configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = cls.adapter_class()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> ChatCompletion:
        request_data = self._adapter.to_provider(messages, params)

        args = {"model": self.model, **request_data}

        self._log(
            f"Sending request to model {self.model} "
            f"({len(messages)} messages, {len(args.get('tools', []))} tools)",
            logging.DEBUG,
        )
        response: ChatCompletion = await self._client.chat.completions.create(**args)
        return response


_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class GeminiLLM(OpenAILLM):
    """
    Gemini LLM implementation via the OpenAI-compatible endpoint.
    """

    adapter_class = GeminiRequestAdapter
    default_base_url = _DEFAULT_GEMINI_BASE_URL


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic LLM implementation (async-only).

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name)
        self._client = AsyncAnthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
            base_url=base_url,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> Message:
        request_data = self._adapter.to_provider(messages, params)

        args = {"model": self.model, **request_data}

        self._log(
            f"Sending request to model {self.model} "
            f"({len(messages)} messages, {len(args.get('tools', []))} tools)",
            logging.DEBUG,
        )
        response: Message = await self._client.messages.create(**args)
        return response


# map Provider enum to its LLM implementation
_LLM_REGISTRY: dict[Provider, type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GEMINI: GeminiLLM,
}


def create_llm(
    provider: Provider,
    model: str,
    *,
    api_key: str | None = None,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    logger: logging.Logger | None = None,
    **provider_kwargs: Any,
) -> BaseAsyncLLM:
    """
    Factory for creating any supported LLM.

    Args:
        provider: Which provider to use (OPENAI, ANTHROPIC, GEMINI).
        model: Model identifier (e.g. "gemini-2.5-flash").
        api_key: Overrides automatic lookup; if omitted, pulled from env.
        client: Optional pre-configured SDK client (AsyncOpenAI for OpenAI and
            Gemini, AsyncAnthropic for Anthropic).
        logger: Optional custom logger.
        **provider_kwargs: Any extra args to pass through (timeout, max_retries).

    Raises:
        FatalConfig: if no API key is given and none is configured.
    """
    try:
        llm_cls = _LLM_REGISTRY[Provider(provider)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unsupported provider: {provider}") from exc

    if client is not None:  # use caller-supplied client verbatim
        return llm_cls.from_client(model, client, logger=logger)

    key = api_key or get_api_key(Provider(provider))
    return llm_cls(model, api_key=key, logger=logger, **provider_kwargs)
