"""get_weather: mock current conditions for a city."""
from __future__ import annotations

import json
import random
from datetime import datetime, timezone
from typing import Any, Optional

import anyio

from mcp_bridge.errors import InvalidInput
from mcp_bridge.types import ObjectSchema, PrimitiveType, PropertySchema

from .registry import ToolRegistration

UNITS = ("celsius", "fahrenheit")
CONDITIONS = ("Sunny", "Cloudy", "Rainy", "Windy")

# Stand-in for a real weather API
MOCK_WEATHER: dict[str, dict[str, Any]] = {
    "london": {"temp_c": 12, "humidity": 80, "condition": "Cloudy"},
    "new york": {"temp_c": 18, "humidity": 60, "condition": "Sunny"},
    "tokyo": {"temp_c": 22, "humidity": 55, "condition": "Partly Cloudy"},
    "paris": {"temp_c": 14, "humidity": 70, "condition": "Rainy"},
    "sydney": {"temp_c": 25, "humidity": 50, "condition": "Sunny"},
}

SIMULATED_LATENCY = 0.1

INPUT_SCHEMA = ObjectSchema(
    properties={
        "city": PropertySchema(PrimitiveType.STRING, "Name of the city to get weather for"),
        "unit": PropertySchema(
            PrimitiveType.STRING, "Temperature unit (default: celsius)", enum=UNITS
        ),
    },
    required=frozenset({"city"}),
)


def lookup(city: str, rng: Optional[random.Random] = None) -> dict[str, Any]:
    """Known cities come from the table, anything else is made up."""
    known = MOCK_WEATHER.get(city.lower())
    if known is not None:
        return dict(known)
    rng = rng or random.Random()
    return {
        "temp_c": round(15 + rng.random() * 15),
        "humidity": round(40 + rng.random() * 40),
        "condition": rng.choice(CONDITIONS),
    }


def build_report(
    city: str, unit: str, data: dict[str, Any], now: Optional[datetime] = None
) -> dict[str, str]:
    if unit == "fahrenheit":
        temperature = f"{round(data['temp_c'] * 1.8 + 32)}°F"
    else:
        temperature = f"{data['temp_c']}°C"
    now = now or datetime.now(timezone.utc)
    return {
        "city": city[:1].upper() + city[1:],
        "temperature": temperature,
        "humidity": f"{data['humidity']}%",
        "condition": data["condition"],
        "timestamp": now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


async def handle(args: Any) -> str:
    city = args.city.strip()
    if not city:
        raise InvalidInput(["city: must not be empty"])
    unit = args.unit or "celsius"

    await anyio.sleep(SIMULATED_LATENCY)

    report = build_report(city, unit, lookup(city))
    return json.dumps(report, indent=2, ensure_ascii=False)


registration = ToolRegistration(
    name="get_weather",
    description=(
        "Get the current weather for a city. Returns temperature, humidity, and conditions."
    ),
    input_schema=INPUT_SCHEMA,
    handler=handle,
)
