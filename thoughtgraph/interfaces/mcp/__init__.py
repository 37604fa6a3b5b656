"""
MCP Interface - Reasoning and nexus tools for language-model agents over stdio.
"""

from .server import create_server, run_server

__all__ = ["create_server", "run_server"]
