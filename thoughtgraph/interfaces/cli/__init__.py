"""
CLI Interface - Command-line tools for ThoughtGraph.

Provides commands for:
- Running the API and MCP servers
- Quick reasoning chains
- Knowledge graph queries and maintenance
"""

from .main import app, main

__all__ = ["app", "main"]
