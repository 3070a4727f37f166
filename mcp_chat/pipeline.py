"""Query pipeline: select tools → ask the model → run tool calls → analyze results.

Tool calls suggested in one model reply run concurrently; their analyses are
joined in the order the model listed the calls.
"""
import asyncio
import logging
import time
from typing import List, Optional

from .config import Settings, settings as default_settings
from .llm import LLMClient
from .tools import ToolRegistry, ToolSelector, PlainAnswer, ToolCall, decode_reply
from .tools.executor import execute_tool, format_tool_result

logger = logging.getLogger(__name__)

ANALYSIS_PROMPT = "Analyze the following data and provide insights:\n{result}"


class QueryPipeline:
    def __init__(
        self,
        registry: ToolRegistry,
        llm: Optional[LLMClient] = None,
        selector: Optional[ToolSelector] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or default_settings
        self.registry = registry
        self.llm = llm or LLMClient(registry, config=self.config)
        if selector is None and self.config.selector_enabled:
            selector = ToolSelector(config=self.config)
        self.selector = selector

    async def process_query(self, query: str) -> str:
        """Run one query through the pipeline. Errors come back as text, never raised."""
        t0 = time.monotonic()
        try:
            return await self._run(query)
        except Exception as e:
            logger.error(f"Query failed: {e}", exc_info=True)
            return f"An error occurred while processing your query: {e}"
        finally:
            logger.info(f"Query total: {time.monotonic() - t0:.1f}s")

    async def _select(self, query: str) -> Optional[List[str]]:
        if self.selector is None:
            return self.registry.tool_names()
        try:
            return await self.selector.select_tools(query, self.registry.tool_names())
        except Exception as e:
            logger.warning(f"Tool selection failed, continuing without tools: {e}")
            return None

    async def _run(self, query: str) -> str:
        # Phase 1: narrow the tool catalog
        selected = await self._select(query)
        logger.info(f"Tools suggested for this query: {selected}")
        self.llm.set_context(selected or [])

        # Phase 2: ask the model
        response = await self.llm.complete(query)
        reply = decode_reply(response)
        if isinstance(reply, PlainAnswer):
            return reply.text

        # Phase 3: run every suggested call, analyze each result
        logger.info(f"Model requested {len(reply.calls)} tool call(s): {[c.name for c in reply.calls]}")
        analyses = await asyncio.gather(*(self._run_tool_call(call) for call in reply.calls))
        return "\n\n".join(analyses)

    async def _run_tool_call(self, call: ToolCall) -> str:
        result = await execute_tool(self.registry, call)
        formatted = format_tool_result(result)

        analysis = await self.llm.complete(ANALYSIS_PROMPT.format(result=formatted))
        content = analysis.content or "No analysis provided."
        return f"Tool: {call.name}\nAnalysis:\n{content}"
