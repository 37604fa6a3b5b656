"""
API Routes.
"""

from . import health, nexus, reasoning

__all__ = ["health", "reasoning", "nexus"]
