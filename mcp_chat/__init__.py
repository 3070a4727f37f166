"""MCP chat client for locally hosted Ollama models."""
__version__ = "1.0.0"
