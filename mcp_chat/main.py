"""Interactive chat loop and command-line entry point."""
import argparse
import asyncio
import logging
import sys
import threading
from typing import List, Optional, Sequence

from .config import ConfigurationError, Settings, load_manifest, settings
from .pipeline import QueryPipeline
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

EXIT_COMMAND = "quit"


def _stdin_worker(loop: asyncio.AbstractEventLoop, future: asyncio.Future, prompt: str):
    try:
        line = input(prompt)
    except EOFError:
        line = None
    except Exception as e:
        _post(loop, future, future.set_exception, e)
        return
    _post(loop, future, future.set_result, line)


def _post(loop, future, setter, value):
    def deliver():
        if not future.done():
            setter(value)
    try:
        loop.call_soon_threadsafe(deliver)
    except RuntimeError:
        # loop already closed (Ctrl-C); nobody is waiting for this line
        pass


async def _read_line(prompt: str) -> Optional[str]:
    """Read one line from stdin without blocking the event loop. None on EOF.

    input() runs on a daemon thread, so a pending read never keeps the
    process alive once the loop has been cancelled.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    threading.Thread(target=_stdin_worker, args=(loop, future, prompt), daemon=True).start()
    return await future


async def chat_loop(pipeline: QueryPipeline, config: Optional[Settings] = None, read_line=_read_line):
    config = config or settings
    print("\nMCP Client with Ollama Started!")
    print(f"Using Ollama model: {config.ollama_model}")
    print(f"Type your queries or '{EXIT_COMMAND}' to exit.")

    while True:
        message = await read_line("\nQuery: ")
        if message is None or message.strip().lower() == EXIT_COMMAND:
            break
        if not message.strip():
            continue

        response = await pipeline.process_query(message)
        print("\n" + response)

    print("\nAvailable tools:")
    for tool in pipeline.registry.list_tools():
        print(f"- {tool.name}")


async def run_client(server_paths: Sequence[str], config: Optional[Settings] = None):
    """Connect to every server, chat until quit, then close the connections."""
    config = config or settings
    async with ToolRegistry(config) as registry:
        for path in server_paths:
            await registry.connect(path)
            tool_names = [t.name for t in registry.list_tools() if t.server == path]
            print(f"Connected to server {path} with tools: {tool_names}")

        pipeline = QueryPipeline(registry, config=config)
        await chat_loop(pipeline, config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-chat",
        description="Chat with a local Ollama model that can call tools on MCP servers.",
    )
    parser.add_argument("servers", nargs="*", help="MCP server scripts (.py or .js)")
    parser.add_argument("--manifest", default=settings.manifest_path or None,
                        help="JSON file listing server scripts (env: MCP_MANIFEST)")
    parser.add_argument("--no-selector", action="store_true",
                        help="offer every tool to the model instead of pre-selecting")
    parser.add_argument("--log-level", default=settings.log_level,
                        help="logging level (env: LOG_LEVEL, default WARNING)")
    return parser


def resolve_server_paths(manifest: Optional[str], servers: Sequence[str]) -> List[str]:
    paths = load_manifest(manifest) if manifest else []
    return paths + list(servers)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = settings
    if args.no_selector:
        config = settings.model_copy(update={"selector_enabled": False})

    try:
        paths = resolve_server_paths(args.manifest, args.servers)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not paths:
        parser.error("no MCP servers given (pass script paths or --manifest)")

    try:
        asyncio.run(run_client(paths, config))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


def run():
    sys.exit(main())
