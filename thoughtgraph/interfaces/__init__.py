"""
Interfaces - User-facing applications.

- api: FastAPI REST API
- mcp: Model Context Protocol tool server (stdio)
- cli: Command-line interface
"""

__all__ = ["api", "mcp", "cli"]
