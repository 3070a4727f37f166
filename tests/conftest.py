"""Shared fixtures: explicit settings, fake MCP sessions, mocked Ollama endpoints."""
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from mcp.types import CallToolResult, TextContent, Tool as MCPTool

from mcp_chat.config import Settings
from mcp_chat.tools.registry import ToolRegistry


@pytest.fixture
def test_settings():
    return Settings(
        ollama_api_url="http://ollama.test",
        ollama_model="test-model",
        ollama_timeout=None,
        selector_model="selector-model",
        selector_endpoint="http://ollama.test/api/generate",
        selector_enabled=True,
        python_command="python3",
        node_command="node",
    )


def mcp_tool(name, description="", schema=None):
    return MCPTool(
        name=name,
        description=description,
        inputSchema=schema or {"type": "object", "properties": {}},
    )


def text_result(text, is_error=False):
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


def fake_session(results=None):
    """A ClientSession stand-in whose call_tool returns text results keyed by tool name."""
    results = results or {}
    session = MagicMock()

    async def call_tool(name, arguments=None):
        value = results.get(name, f"{name} ok")
        if isinstance(value, Exception):
            raise value
        return text_result(value)

    session.call_tool = AsyncMock(side_effect=call_tool)
    return session


@pytest.fixture
def weather_session():
    return fake_session({"get_weather": "Paris: 18C, light rain"})


@pytest.fixture
def registry(test_settings, weather_session):
    reg = ToolRegistry(test_settings)
    reg.add_tools("weather.py", weather_session, [
        mcp_tool("get_weather", "Current weather for a city", {
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
        }),
        mcp_tool("get_forecast", "Five day forecast"),
    ])
    return reg


def chat_body(content):
    return {"model": "test-model", "message": {"role": "assistant", "content": content}, "done": True}


class OllamaStub:
    """Records requests to /api/chat and /api/generate and replies from queues."""

    def __init__(self, chat_replies=None, generate_replies=None):
        self.chat_replies = list(chat_replies or [])
        self.generate_replies = list(generate_replies or [])
        self.chat_requests = []
        self.generate_requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if request.url.path == "/api/chat":
            self.chat_requests.append(body)
            reply = self.chat_replies.pop(0) if self.chat_replies else "ok"
        elif request.url.path == "/api/generate":
            self.generate_requests.append(body)
            reply = self.generate_replies.pop(0) if self.generate_replies else '{"tool_calls": []}'
        else:
            return httpx.Response(404, text="not found")

        if isinstance(reply, httpx.Response):
            return reply
        if request.url.path == "/api/chat":
            return httpx.Response(200, json=chat_body(reply))
        return httpx.Response(200, json={"model": "selector-model", "response": reply, "done": True})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
