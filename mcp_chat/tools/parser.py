"""Tool-call extraction — pulls {"tool_calls": [...]} out of free-form model text."""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..protocol import ChatResponse

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass
class ToolCall:
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PlainAnswer:
    text: str


@dataclass
class ToolCallRequest:
    text: str
    calls: List[ToolCall]


ModelReply = Union[PlainAnswer, ToolCallRequest]


def _content_of(model_response) -> Optional[str]:
    if isinstance(model_response, ChatResponse):
        return model_response.content
    if isinstance(model_response, str):
        return model_response
    if isinstance(model_response, dict):
        message = model_response.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return message["content"]
    return None


def _candidates(text: str):
    """Places a JSON object might hide in model output, most specific first."""
    yield text.strip()
    for m in _FENCE_RE.finditer(text):
        yield m.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        yield text[start:end + 1]


def _extract_payload(text: str) -> Optional[dict]:
    for candidate in _candidates(text):
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict) and "tool_calls" in data:
            return data
    return None


def normalize_arguments(raw: Any) -> Dict[str, Any]:
    """Coerce tool arguments into a flat dict.

    Handles a dict, a JSON-encoded string, or a list of key/value pairs
    (``{"key": k, "value": v}``, ``{"name": k, "value": v}`` or ``[k, v]``).
    Anything else becomes ``{}``.
    """
    if isinstance(raw, dict):
        return dict(raw)

    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            logger.debug(f"Tool arguments are not JSON: {raw[:100]!r}")
            return {}
        if isinstance(decoded, str):
            return {}
        return normalize_arguments(decoded)

    if isinstance(raw, list):
        args: Dict[str, Any] = {}
        for pair in raw:
            if isinstance(pair, dict) and "value" in pair:
                key = pair.get("key", pair.get("name"))
                if isinstance(key, str):
                    args[key] = pair["value"]
            elif isinstance(pair, (list, tuple)) and len(pair) == 2 and isinstance(pair[0], str):
                args[pair[0]] = pair[1]
        return args

    return {}


def _to_call(entry: Any) -> Optional[ToolCall]:
    if not isinstance(entry, dict):
        return None
    # OpenAI-style {"function": {"name": ..., "arguments": "..."}}
    if "name" not in entry and isinstance(entry.get("function"), dict):
        entry = entry["function"]
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        return None
    return ToolCall(name=name, arguments=normalize_arguments(entry.get("arguments", {})))


def parse_tool_calls(model_response) -> List[ToolCall]:
    """Return the tool calls embedded in a model response, or [] if there are none."""
    text = _content_of(model_response)
    if not text:
        return []

    payload = _extract_payload(text)
    if payload is None:
        return []

    entries = payload.get("tool_calls")
    if not isinstance(entries, list):
        logger.warning(f"tool_calls is not a list: {type(entries).__name__}")
        return []

    calls = []
    for entry in entries:
        call = _to_call(entry)
        if call is None:
            logger.warning(f"Skipping malformed tool call: {entry!r}")
            continue
        calls.append(call)
    return calls


def decode_reply(model_response) -> ModelReply:
    """Decode a model response once into a plain answer or a tool-call request."""
    text = _content_of(model_response)
    if not text:
        return PlainAnswer(text="No response")
    calls = parse_tool_calls(text)
    if calls:
        return ToolCallRequest(text=text, calls=calls)
    return PlainAnswer(text=text)
