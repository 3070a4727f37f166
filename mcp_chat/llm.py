"""LLM client — Ollama /api/chat with a tool catalog in the system prompt."""
import logging
from typing import Dict, Iterable, List, Optional, Union

import httpx

from .config import Settings, settings as default_settings
from .protocol import ChatMessage, ChatRequest, ChatResponse
from .tools.registry import Tool, ToolRegistry, tool_descriptions_for_llm

logger = logging.getLogger(__name__)

TOOL_PROMPT = """You are an assistant with access to the following tools: {tool_list}
When you need to use a tool, respond using this exact JSON format:
{{
  "tool_calls": [
    {{
      "name": "tool_name",
      "arguments": {{
        "arg1": "value1",
        "arg2": "value2"
      }}
    }}
  ]
}}
Only use tool_calls when a query requires external data. Otherwise, respond normally."""

NO_TOOLS = "none (no tools are available for this query)"


class ModelAPIError(Exception):
    """Non-2xx answer from the Ollama API."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Ollama API error: {status_code} {body}")


class LLMClient:
    def __init__(
        self,
        registry: ToolRegistry,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.registry = registry
        self.config = config or default_settings
        self.model = self.config.ollama_model
        self._client = client
        # None until set_context(): offer every registered tool
        self._context: Optional[List[Tool]] = None

    def set_context(self, tools: Iterable[Union[Tool, str]]):
        """Limit the tools described to the model. Names are resolved against the registry."""
        selected: Dict[str, Tool] = {}
        for t in tools:
            tool = t if isinstance(t, Tool) else self.registry.get_tool(t)
            if tool is None:
                logger.warning(f"Selected tool '{t}' is not registered, ignoring")
            elif tool.name not in selected:
                selected[tool.name] = tool
        self._context = list(selected.values())

    def context_tools(self) -> List[Tool]:
        if self._context is None:
            return self.registry.list_tools()
        return list(self._context)

    def build_system_prompt(self) -> str:
        tools = self.context_tools()
        tool_list = tool_descriptions_for_llm(tools) if tools else NO_TOOLS
        return TOOL_PROMPT.format(tool_list=tool_list)

    async def complete(self, prompt: str) -> ChatResponse:
        """Send system prompt + user prompt, return the parsed chat response."""
        request = ChatRequest(
            model=self.model,
            messages=[
                ChatMessage(role="system", content=self.build_system_prompt()),
                ChatMessage(role="user", content=prompt),
            ],
        )
        url = f"{self.config.ollama_api_url.rstrip('/')}/api/chat"

        try:
            if self._client is not None:
                resp = await self._client.post(url, json=request.model_dump())
            else:
                async with httpx.AsyncClient(timeout=self.config.ollama_timeout) as client:
                    resp = await client.post(url, json=request.model_dump())

            if not resp.is_success:
                raise ModelAPIError(resp.status_code, resp.text)

            response = ChatResponse.model_validate(resp.json())
        except Exception as e:
            logger.error(f"Error calling Ollama API: {e}")
            raise

        logger.debug(f"LLM [{self.model}] raw: {(response.content or '')[:200]}")
        return response
