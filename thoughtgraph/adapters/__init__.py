"""
Adapters - Storage and external integrations.

Filesystem access is wrapped here to keep domains free of I/O details.
"""

from .jsonfile import JsonGraphRepository

__all__ = [
    "JsonGraphRepository",
]
