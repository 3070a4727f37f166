"""Tests for tools/executor.py — timed dispatch and result formatting."""
from types import SimpleNamespace

import pytest
from mcp.types import CallToolResult, ImageContent, TextContent

from mcp_chat.tools.executor import execute_tool, format_tool_result
from mcp_chat.tools.parser import ToolCall
from mcp_chat.tools.registry import ToolResult


class TestExecuteTool:
    @pytest.mark.asyncio
    async def test_delegates_to_registry(self, registry, weather_session):
        result = await execute_tool(registry, ToolCall("get_weather", {"city": "Paris"}))
        weather_session.call_tool.assert_awaited_once_with("get_weather", {"city": "Paris"})
        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_unknown_tool(self, registry):
        result = await execute_tool(registry, ToolCall("nope", {}))
        assert result.is_error is True
        assert "nope" in result.content


class TestFormatToolResult:
    def test_text_blocks_joined(self):
        content = CallToolResult(content=[
            TextContent(type="text", text="line one"),
            TextContent(type="text", text="line two"),
        ])
        assert format_tool_result(ToolResult(content=content)) == "line one\nline two"

    def test_binary_block_summarised(self):
        content = CallToolResult(content=[ImageContent(type="image", data="aGVsbG8=", mimeType="image/png")])
        assert format_tool_result(ToolResult(content=content)) == "[image/png data: 8 bytes]"

    def test_snake_case_fields(self):
        block = SimpleNamespace(data="aGVsbG8=", mime_type="image/png")
        assert format_tool_result(ToolResult(content=SimpleNamespace(content=[block]))) == "[image/png data: 8 bytes]"
        content = SimpleNamespace(content=[], structured_content={"temp": 18})
        assert format_tool_result(ToolResult(content=content)) == '{\n  "temp": 18\n}'

    def test_empty_content(self):
        assert format_tool_result(ToolResult(content=CallToolResult(content=[]))) == "(no output)"

    def test_error_string(self):
        result = ToolResult(content="Tool 'nope' not found.", is_error=True)
        assert format_tool_result(result) == "Error: Tool 'nope' not found."

    def test_plain_dict(self):
        assert format_tool_result(ToolResult(content={"temp": 18})) == '{\n  "temp": 18\n}'

    def test_unserialisable_value(self):
        assert format_tool_result(ToolResult(content={1, 2})) in ("{1, 2}", "{2, 1}")
