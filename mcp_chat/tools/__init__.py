"""Tool system — registry, parser, selector, executor."""
from .registry import ToolRegistry, Tool, ToolResult, ServerScriptError, tool_descriptions_for_llm
from .parser import ToolCall, PlainAnswer, ToolCallRequest, parse_tool_calls, normalize_arguments, decode_reply
from .selector import ToolSelector
from .executor import execute_tool, format_tool_result
