from __future__ import annotations

import os
from enum import Enum
from typing import Mapping, Optional

from dotenv import load_dotenv

from mcp_bridge.errors import FatalConfig


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


_ENV_VARS: dict[Provider, str] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.ANTHROPIC: "ANTHROPIC_API_KEY",
    Provider.GEMINI: "GEMINI_API_KEY",
}

DEFAULT_MODELS: dict[Provider, str] = {
    Provider.OPENAI: "gpt-4.1-mini",
    Provider.ANTHROPIC: "claude-3-5-haiku-latest",
    Provider.GEMINI: "gemini-2.5-flash",
}


def _is_placeholder(value: str) -> bool:
    # .env templates ship values like "your_gemini_api_key_here"
    lowered = value.strip().lower()
    return lowered.startswith("your_") and lowered.endswith("_here")


def get_api_key(provider: Provider, environ: Optional[Mapping[str, str]] = None) -> str:
    if environ is None:
        load_dotenv()
        environ = os.environ
    env = _ENV_VARS.get(provider)
    if not env:
        raise FatalConfig(f"No credential configured for provider {provider!r}")
    key = environ.get(env, "")
    if not key.strip() or _is_placeholder(key):
        raise FatalConfig(f"{env} is not set (add it to your environment or .env file)")
    return key
