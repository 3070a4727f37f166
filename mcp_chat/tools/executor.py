"""Tool executor — timed dispatch through the registry and text formatting of results."""
import json
import logging
import time
from typing import Any

from .parser import ToolCall
from .registry import ToolRegistry, ToolResult, _field

logger = logging.getLogger(__name__)


async def execute_tool(registry: ToolRegistry, call: ToolCall) -> ToolResult:
    """Execute a tool call through the registry, logging arguments and elapsed time."""
    arg_str = ", ".join(f"{k}={v!r}" for k, v in call.arguments.items())
    logger.info(f"Executing tool: {call.name}({arg_str})")
    t0 = time.monotonic()

    result = await registry.invoke(call.name, call.arguments)

    elapsed = time.monotonic() - t0
    logger.info(f"Tool {call.name}: {elapsed:.1f}s -> {'error' if result.is_error else 'ok'}")
    return result


def _block_text(block: Any) -> str:
    text = getattr(block, "text", None)
    if isinstance(text, str):
        return text
    data = getattr(block, "data", None)
    if data is not None:
        mime = _field(block, "mimeType", "mime_type", default="binary")
        return f"[{mime} data: {len(data)} bytes]"
    resource = getattr(block, "resource", None)
    if resource is not None:
        return getattr(resource, "text", None) or f"[resource: {getattr(resource, 'uri', '')}]"
    return str(block)


def _content_text(content: Any) -> str:
    blocks = getattr(content, "content", None)
    if isinstance(blocks, list):
        parts = [_block_text(b) for b in blocks]
        structured = _field(content, "structuredContent", "structured_content")
        if not parts and structured:
            return json.dumps(structured, indent=2, ensure_ascii=False)
        return "\n".join(parts) if parts else "(no output)"
    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(content)


def format_tool_result(result: ToolResult) -> str:
    """Render a ToolResult as text for the analysis prompt."""
    text = _content_text(result.content)
    return f"Error: {text}" if result.is_error else text
