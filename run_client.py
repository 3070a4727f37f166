#!/usr/bin/env python3
"""
MCP chat client launcher
Connects to the given MCP server scripts and starts the interactive chat loop
"""
import os

# Fix encoding issues on terminals with ASCII locale
os.environ.setdefault('PYTHONIOENCODING', 'utf-8')

from mcp_chat.main import run

if __name__ == "__main__":
    run()
