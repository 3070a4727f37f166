"""Tool selector — asks a lighter model which connected tools fit a query.
Falls through to "no tools" whenever the model's answer can't be parsed.
"""
import json
import logging
from typing import List, Optional

import httpx

from ..config import Settings, settings as default_settings
from ..protocol import GenerateRequest, GenerateResponse

logger = logging.getLogger(__name__)

SELECTOR_PROMPT = """You are a tool selector. Given a user query and a list of available tools, return a JSON object with a "tool_calls" array. Each item should have a "name" and "arguments".
Available tools: {tool_list}
Query: "{query}"
Respond in this format:
{{
  "tool_calls": [
    {{
      "name": "tool_name",
      "arguments": {{
        "arg1": "value1"
      }}
    }}
  ]
}}"""


def _selected_names(raw: str) -> Optional[List[str]]:
    """Pull tool names out of the selector's raw text. None if unparseable or empty."""
    try:
        parsed = json.loads(raw.strip())
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Failed to parse tool selection response: {raw[:200]!r}")
        return None

    calls = parsed.get("tool_calls") if isinstance(parsed, dict) else None
    if not isinstance(calls, list):
        logger.warning(f"Tool selection response has no tool_calls list: {raw[:200]!r}")
        return None

    names = [c["name"] for c in calls if isinstance(c, dict) and isinstance(c.get("name"), str)]
    return names or None


class ToolSelector:
    def __init__(self, config: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or default_settings
        self.model = self.config.selector_model
        self.endpoint = self.config.selector_endpoint
        self._client = client

    def build_prompt(self, query: str, available: List[str]) -> str:
        return SELECTOR_PROMPT.format(tool_list=json.dumps(available), query=query)

    async def select_tools(self, query: str, available: List[str]) -> Optional[List[str]]:
        """Return the names of tools relevant to the query, or None.

        HTTP and transport failures raise httpx errors; parse failures don't.
        """
        body = GenerateRequest(model=self.model, prompt=self.build_prompt(query, available))

        if self._client is not None:
            resp = await self._client.post(self.endpoint, json=body.model_dump())
        else:
            async with httpx.AsyncClient(timeout=self.config.ollama_timeout) as client:
                resp = await client.post(self.endpoint, json=body.model_dump())
        resp.raise_for_status()

        try:
            raw = GenerateResponse.model_validate(resp.json()).response
        except ValueError:
            logger.warning(f"Selector returned a non-JSON body: {resp.text[:200]!r}")
            return None

        names = _selected_names(raw)
        logger.info(f"Selector [{self.model}]: {names}")
        return names
