"""Tool protocol, the built-in tools and the registry that runs them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime, timezone, tzinfo
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from .config import (
    HTTP_TIMEOUT,
    OPENWEATHER_API_KEY,
    OPENWEATHER_URL,
    TOOL_TIMEZONE,
    WEATHER_LANGUAGE,
)
from .models import ToolDef, ToolResult

logger = logging.getLogger(__name__)

TOOL_NOT_FOUND = "tool not found"


class BaseTool(ABC):
    """Base class for orchestrator tools."""

    # Keys every ok payload of this tool must carry.
    result_keys: tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for parameters."""
        ...

    @abstractmethod
    async def execute(self, params: dict[str, Any]) -> ToolResult:
        ...

    def to_def(self) -> ToolDef:
        return ToolDef(name=self.name, description=self.description, parameters=self.parameters)


# ---------------------------------------------------------------------------
# getCurrentTime
# ---------------------------------------------------------------------------


class GetCurrentTimeTool(BaseTool):
    """Returns the current date and time in the configured timezone."""

    result_keys = ("dateTimeInfo",)

    def __init__(
        self,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._tz = tz or ZoneInfo(TOOL_TIMEZONE)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return "getCurrentTime"

    @property
    def description(self) -> str:
        return "Get the current date and time in Brazil (São Paulo) time."

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        now = self._clock().astimezone(self._tz)
        info = f"Date: {now:%d/%m/%Y}, Time: {now:%H:%M}"
        return ToolResult.success(dateTimeInfo=info)


# ---------------------------------------------------------------------------
# getWeather
# ---------------------------------------------------------------------------


class GetWeatherTool(BaseTool):
    """Current weather for a city, from OpenWeatherMap."""

    result_keys = ("weatherInfo",)

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = OPENWEATHER_URL,
        language: str = WEATHER_LANGUAGE,
        timeout: float = HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = OPENWEATHER_API_KEY if api_key is None else api_key
        self._base_url = base_url
        self._language = language
        self._timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "getWeather"

    @property
    def description(self) -> str:
        return "Get the current weather for a specific city."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "The city to get the weather for, e.g. 'São Paulo'.",
                }
            },
            "required": ["location"],
        }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        location = str(params.get("location") or "").strip()
        if not location:
            return ToolResult.failure("City name not provided.")
        if not self._api_key:
            return ToolResult.failure("Weather service is not configured.")
        query = {
            "q": location,
            "appid": self._api_key,
            "units": "metric",
            "lang": self._language,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._base_url, params=query)
                resp.raise_for_status()
                data = resp.json()
            info = (
                f"Weather in {data['name']}: {data['weather'][0]['description']}, "
                f"temperature {data['main']['temp']}°C (feels like {data['main']['feels_like']}°C)."
            )
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.warning("getWeather failed for %r: %s", location, e)
            return ToolResult.failure("Could not find the weather for that city.")
        return ToolResult.success(weatherInfo=info)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """Fixed name → tool mapping. ``invoke`` never raises."""

    def __init__(self, tools: Iterable[BaseTool]) -> None:
        self._tools: dict[str, BaseTool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    def declarations(self) -> list[dict[str, Any]]:
        """Function declarations for the model, in registration order."""
        return [t.to_def().to_declaration() for t in self._tools.values()]

    async def invoke(self, name: str, args: dict[str, Any] | None = None) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", name)
            return ToolResult.failure(TOOL_NOT_FOUND)
        params = dict(args or {})
        for key in tool.parameters.get("required", []):
            if key not in params:
                return ToolResult.failure(f"missing required argument: {key}")
        try:
            result = await tool.execute(params)
        except Exception as e:
            logger.exception("Tool %s raised", name)
            return ToolResult.failure(f"Error while running the tool: {e}")
        if result.ok is not None:
            missing = [k for k in tool.result_keys if k not in result.ok]
            if missing:
                logger.error("Tool %s returned a malformed payload (missing %s)", name, missing)
                return ToolResult.failure(f"tool returned malformed result: missing {', '.join(missing)}")
        return result


def default_tools() -> list[BaseTool]:
    return [GetCurrentTimeTool(), GetWeatherTool()]


_default_registry: ToolRegistry | None = None


def get_default_registry() -> ToolRegistry:
    """Return the process-wide registry with the default tool catalog."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ToolRegistry(default_tools())
    return _default_registry
