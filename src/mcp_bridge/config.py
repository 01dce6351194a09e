"""
Runtime settings for the chat client, read from the environment (and `.env`).

CLI flags override individual values through `Settings.from_env(**overrides)`.
"""
from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from mcp_bridge.errors import FatalConfig
from mcp_bridge.providers import DEFAULT_MODELS, Provider

__all__ = ["Settings", "default_server_command"]

DEFAULT_MAX_ROUNDS = 10
DEFAULT_TIMEOUT = 60.0


def default_server_command() -> tuple[str, ...]:
    """Spawn the bundled tool server with the current interpreter."""
    return (sys.executable, "-m", "mcp_bridge.server")


@dataclass(frozen=True)
class Settings:
    provider: Provider = Provider.GEMINI
    model: str = DEFAULT_MODELS[Provider.GEMINI]
    max_rounds: int = DEFAULT_MAX_ROUNDS  # 0 = unbounded
    timeout: float = DEFAULT_TIMEOUT
    server_command: tuple[str, ...] = field(default_factory=default_server_command)
    system_prompt: Optional[str] = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.max_rounds < 0:
            raise FatalConfig(f"max_rounds must be >= 0, got {self.max_rounds}")
        if self.timeout <= 0:
            raise FatalConfig(f"timeout must be positive, got {self.timeout}")
        if not self.server_command:
            raise FatalConfig("server command is empty")

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "Settings":
        """
        Build settings from ``MCP_BRIDGE_*`` variables, then apply overrides.

        Overrides whose value is ``None`` are ignored so argparse namespaces can
        be passed straight through.

        Raises:
            FatalConfig: on an unknown provider or a malformed number.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        raw: dict[str, Any] = {
            "provider": environ.get("MCP_BRIDGE_PROVIDER"),
            "model": environ.get("MCP_BRIDGE_MODEL"),
            "max_rounds": environ.get("MCP_BRIDGE_MAX_ROUNDS"),
            "timeout": environ.get("MCP_BRIDGE_TIMEOUT"),
            "server_command": environ.get("MCP_BRIDGE_SERVER_COMMAND"),
            "system_prompt": environ.get("MCP_BRIDGE_SYSTEM_PROMPT"),
            "log_level": environ.get("MCP_LOG_LEVEL"),
        }
        raw.update({k: v for k, v in overrides.items() if v is not None})

        values: dict[str, Any] = {}
        if raw["provider"]:
            values["provider"] = _parse_provider(raw["provider"])
        provider = values.get("provider", cls.provider)
        values["model"] = raw["model"] or DEFAULT_MODELS[provider]
        if raw["max_rounds"] not in (None, ""):
            values["max_rounds"] = _parse_number(int, "max_rounds", raw["max_rounds"])
        if raw["timeout"] not in (None, ""):
            values["timeout"] = _parse_number(float, "timeout", raw["timeout"])
        if raw["server_command"]:
            command = raw["server_command"]
            values["server_command"] = (
                tuple(shlex.split(command)) if isinstance(command, str) else tuple(command)
            )
        if raw["system_prompt"]:
            values["system_prompt"] = raw["system_prompt"]
        if raw["log_level"]:
            values["log_level"] = str(raw["log_level"]).upper()

        return cls(**values)


def _parse_provider(value: Any) -> Provider:
    try:
        return Provider(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in Provider)
        raise FatalConfig(f"Unknown provider {value!r} (expected one of: {choices})") from exc


def _parse_number(kind: type, name: str, value: Any) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise FatalConfig(f"{name} must be a {kind.__name__}, got {value!r}") from exc
