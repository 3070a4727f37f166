"""Tool registry — connects to MCP servers over stdio and dispatches tool calls by name."""
import copy
import json
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import Implementation

from ..config import ConfigurationError, Settings, settings as default_settings

logger = logging.getLogger(__name__)


class ServerScriptError(ConfigurationError):
    """Server path is not a launchable .js or .py script."""


@dataclass(frozen=True)
class Tool:
    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=dict)
    server: str = ""


@dataclass
class ToolResult:
    content: Any = None
    is_error: bool = False


@dataclass
class _Connection:
    path: str
    stack: AsyncExitStack


def _field(obj: Any, *names: str, default: Any = None) -> Any:
    """First present attribute among names (mcp 1.x camelCase, 2.x snake_case)."""
    for name in names:
        value = getattr(obj, name, None)
        if value is not None:
            return value
    return default


class ToolRegistry:
    """Owns every MCP server connection and the flat list of tools they expose.

    Tool names are unique across servers: when two servers expose the same
    name, the tool from the server connected first is kept.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self._connections: List[_Connection] = []
        self._tools: Dict[str, Tool] = {}
        self._sessions: Dict[str, ClientSession] = {}

    async def __aenter__(self) -> "ToolRegistry":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.shutdown()

    def server_parameters(self, server_script_path: str) -> StdioServerParameters:
        """Pick the launcher from the script extension."""
        suffix = Path(server_script_path).suffix.lower()
        if suffix == ".py":
            command = self.config.python_command
        elif suffix == ".js":
            command = self.config.node_command
        else:
            raise ServerScriptError(f"Server script must be a .js or .py file: {server_script_path}")
        return StdioServerParameters(command=command, args=[server_script_path])

    async def connect(self, server_script_path: str):
        """Spawn one MCP server, handshake, and register its tools."""
        params = self.server_parameters(server_script_path)
        client_info = Implementation(
            name=self.config.mcp_client_name,
            version=self.config.mcp_client_version,
        )

        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(
                ClientSession(read, write, client_info=client_info)
            )
            await session.initialize()
            response = await session.list_tools()
        except Exception:
            await stack.aclose()
            raise

        self._connections.append(_Connection(path=server_script_path, stack=stack))
        added = self.add_tools(server_script_path, session, response.tools)
        logger.info(f"Connected to server {server_script_path} with tools: {added}")

    def add_tools(self, server: str, session: ClientSession, tools) -> List[str]:
        """Register tools reported by a server session. Returns the names added."""
        added = []
        for t in tools:
            existing = self._tools.get(t.name)
            if existing is not None:
                logger.warning(
                    f"Tool '{t.name}' from {server} already registered by {existing.server}, skipping"
                )
                continue
            self._tools[t.name] = Tool(
                name=t.name,
                description=t.description or "",
                input_schema=copy.deepcopy(dict(_field(t, "inputSchema", "input_schema", default={}))),
                server=server,
            )
            self._sessions[t.name] = session
            added.append(t.name)
        return added

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def tool_names(self) -> List[str]:
        return list(self._tools)

    def get_tool(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    async def invoke(self, name: str, arguments: Dict[str, Any]) -> ToolResult:
        """Call a tool on its owning server. Failures come back as error results."""
        session = self._sessions.get(name)
        if session is None:
            logger.warning(f"Unknown tool: {name}")
            return ToolResult(content=f"Tool '{name}' not found.", is_error=True)

        try:
            result = await session.call_tool(name, arguments)
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            return ToolResult(content=str(e) or "Error calling tool", is_error=True)

        return ToolResult(content=result, is_error=bool(_field(result, "isError", "is_error", default=False)))

    async def shutdown(self):
        """Close every server session and subprocess; one failure doesn't stop the rest."""
        while self._connections:
            conn = self._connections.pop()
            try:
                await conn.stack.aclose()
            except Exception as e:
                logger.warning(f"Error closing server {conn.path}: {e}")
        self._tools.clear()
        self._sessions.clear()


def tool_descriptions_for_llm(tools: List[Tool]) -> str:
    """Generate tool catalog for the LLM system prompt."""
    return "\n\n".join(
        f"Tool: {t.name}\nDescription: {t.description}\nInput Schema: {json.dumps(t.input_schema, indent=2)}"
        for t in tools
    )
