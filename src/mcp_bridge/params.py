"""
Parameter normalization for model requests.

Contract
- Standard keys work across providers:
  temperature: float
  max_tokens: int
  top_p: float
  tools: list
  tool_choice: str | dict
  stop: str | list[str]

- Provider specific keys go under `extra` and pass through unchanged.
  Unknown top-level keys are moved into extra.
"""

from __future__ import annotations

from typing import Any

# Type alias for chat messages
ChatMessage = dict[str, Any]

STANDARD_KEYS = {
    "temperature",
    "max_tokens",
    "top_p",
    "tools",
    "tool_choice",
    "stop",
    "parallel_tool_calls",
    "seed",
}


def normalize_params(params: dict | None) -> dict:
    """
    Normalize a user-supplied params dict to a single internal shape.

    Returns a dict with only standard keys plus an `extra` dict.
    Rules:
      - Keys not in STANDARD_KEYS are moved into extra
      - If the caller already passed an `extra` dict it is merged last
      - None values are dropped

    Example
    -------
    >>> normalize_params({"temperature": 0.2, "reasoning_effort": "high"})
    {'temperature': 0.2, 'extra': {'reasoning_effort': 'high'}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    std: dict = {}
    extra: dict = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    std["extra"] = {**extra, **user_extra}
    return std
