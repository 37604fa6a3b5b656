"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ConflictError,
    ErrorCode,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
    ThoughtGraphError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "ErrorKind",
    "ThoughtGraphError",
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
]
