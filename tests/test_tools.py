"""Unit tests for the tool registry and the built-in tools."""
from __future__ import annotations

import unittest
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from src.chat_orchestrator.models import ToolResult
from src.chat_orchestrator.tools import (
    TOOL_NOT_FOUND,
    BaseTool,
    GetCurrentTimeTool,
    GetWeatherTool,
    ToolRegistry,
)


class _EchoTool(BaseTool):
    result_keys = ("echo",)

    def __init__(self, payload: dict[str, Any] | None = None, raises: Exception | None = None) -> None:
        self._payload = payload
        self._raises = raises
        self.seen: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo the text back."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        }

    async def execute(self, params: dict[str, Any]) -> ToolResult:
        self.seen.append(params)
        if self._raises is not None:
            raise self._raises
        if self._payload is not None:
            return ToolResult(ok=self._payload)
        return ToolResult.success(echo=params["text"])


class TestToolResult(unittest.TestCase):
    def test_exactly_one_variant(self) -> None:
        with self.assertRaises(ValueError):
            ToolResult()
        with self.assertRaises(ValueError):
            ToolResult(ok={}, error="x")

    def test_error_payload(self) -> None:
        self.assertEqual(ToolResult.failure("boom").to_payload(), {"error": "boom"})


class TestToolRegistry(unittest.IsolatedAsyncioTestCase):
    async def test_unknown_tool_returns_not_found(self) -> None:
        registry = ToolRegistry([_EchoTool()])
        result = await registry.invoke("launchRockets", {})
        self.assertEqual(result.to_payload(), {"error": TOOL_NOT_FOUND})
        self.assertEqual(TOOL_NOT_FOUND, "tool not found")

    async def test_invokes_tool(self) -> None:
        tool = _EchoTool()
        registry = ToolRegistry([tool])
        result = await registry.invoke("echo", {"text": "hi"})
        self.assertEqual(result.to_payload(), {"echo": "hi"})
        self.assertEqual(tool.seen, [{"text": "hi"}])

    async def test_missing_required_argument_skips_tool(self) -> None:
        tool = _EchoTool()
        registry = ToolRegistry([tool])
        result = await registry.invoke("echo", {})
        self.assertEqual(result.error, "missing required argument: text")
        self.assertEqual(tool.seen, [])

    async def test_tool_exception_becomes_error_payload(self) -> None:
        registry = ToolRegistry([_EchoTool(raises=RuntimeError("disk on fire"))])
        result = await registry.invoke("echo", {"text": "hi"})
        self.assertTrue(result.is_error)
        self.assertIn("disk on fire", result.error)

    async def test_malformed_payload_is_rejected(self) -> None:
        registry = ToolRegistry([_EchoTool(payload={"unexpected": 1})])
        result = await registry.invoke("echo", {"text": "hi"})
        self.assertTrue(result.is_error)
        self.assertIn("echo", result.error)

    def test_duplicate_names_rejected(self) -> None:
        with self.assertRaises(ValueError):
            ToolRegistry([_EchoTool(), _EchoTool()])

    def test_declarations(self) -> None:
        registry = ToolRegistry([GetCurrentTimeTool(), GetWeatherTool(api_key="k")])
        names = [d["name"] for d in registry.declarations()]
        self.assertEqual(names, ["getCurrentTime", "getWeather"])
        weather = registry.declarations()[1]
        self.assertEqual(weather["parameters"]["required"], ["location"])


class TestGetCurrentTimeTool(unittest.IsolatedAsyncioTestCase):
    async def test_formats_in_configured_timezone(self) -> None:
        fixed = datetime(2024, 1, 1, 13, 30, tzinfo=timezone.utc)
        tool = GetCurrentTimeTool(tz=ZoneInfo("America/Sao_Paulo"), clock=lambda: fixed)
        result = await tool.execute({})
        self.assertEqual(result.to_payload(), {"dateTimeInfo": "Date: 01/01/2024, Time: 10:30"})


class TestGetWeatherTool(unittest.IsolatedAsyncioTestCase):
    def _tool(self, handler, api_key: str = "key") -> GetWeatherTool:
        return GetWeatherTool(
            api_key=api_key,
            base_url="https://weather.test/data",
            transport=httpx.MockTransport(handler),
        )

    async def test_success(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "name": "Curitiba",
                    "weather": [{"description": "light rain"}],
                    "main": {"temp": 14.2, "feels_like": 13.1},
                },
            )

        result = await self._tool(handler).execute({"location": "Curitiba"})
        self.assertEqual(
            result.to_payload(),
            {"weatherInfo": "Weather in Curitiba: light rain, temperature 14.2°C (feels like 13.1°C)."},
        )
        self.assertEqual(seen[0].url.params["q"], "Curitiba")
        self.assertEqual(seen[0].url.params["units"], "metric")

    async def test_http_error_becomes_error_payload(self) -> None:
        result = await self._tool(lambda r: httpx.Response(404, json={"message": "city not found"})).execute(
            {"location": "Atlantis"}
        )
        self.assertEqual(result.error, "Could not find the weather for that city.")

    async def test_network_error_becomes_error_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        result = await self._tool(handler).execute({"location": "Kyoto"})
        self.assertTrue(result.is_error)

    async def test_missing_location(self) -> None:
        result = await self._tool(lambda r: httpx.Response(200)).execute({"location": "  "})
        self.assertEqual(result.error, "City name not provided.")

    async def test_missing_api_key(self) -> None:
        result = await self._tool(lambda r: httpx.Response(200), api_key="").execute({"location": "Kyoto"})
        self.assertTrue(result.is_error)


if __name__ == "__main__":
    unittest.main()
