"""Gemini adapter for pure request/response transformations.

Gemini is reached through its OpenAI-compatible endpoint, so it shares the
OpenAI wire format and only differs in the provider tag.
"""

from mcp_bridge.providers import Provider

from .openai import OpenAIRequestAdapter


class GeminiRequestAdapter(OpenAIRequestAdapter):
    provider = Provider.GEMINI
