"""
Error Taxonomy - Consistent error codes across the application.

Every code belongs to one of four kinds (invalid argument, not found,
conflict, internal) which interface layers map onto their transport.

Usage:
    from thoughtgraph.config.errors import ErrorCode, NotFoundError

    raise NotFoundError(ErrorCode.REASONING_STEP_NOT_FOUND, "Step not found: abc")
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ValidationError


class ErrorKind(str, Enum):
    """Classification shared by all error codes."""

    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Reasoning errors
    REASONING_STEP_NOT_FOUND = "REASONING_STEP_NOT_FOUND"
    REASONING_BRANCH_NOT_FOUND = "REASONING_BRANCH_NOT_FOUND"
    REASONING_IMMUTABLE_FIELD = "REASONING_IMMUTABLE_FIELD"

    # Nexus (knowledge graph) errors
    NEXUS_NODE_NOT_FOUND = "NEXUS_NODE_NOT_FOUND"
    NEXUS_LINK_NOT_FOUND = "NEXUS_LINK_NOT_FOUND"
    NEXUS_DUPLICATE_LINK = "NEXUS_DUPLICATE_LINK"
    NEXUS_CONFIRMATION_REQUIRED = "NEXUS_CONFIRMATION_REQUIRED"

    # Storage errors
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    @property
    def kind(self) -> ErrorKind:
        """The error kind this code is reported as."""
        return _CODE_KINDS.get(self, ErrorKind.INTERNAL)


_CODE_KINDS: dict[ErrorCode, ErrorKind] = {
    ErrorCode.VALIDATION_ERROR: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.REASONING_IMMUTABLE_FIELD: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.NEXUS_CONFIRMATION_REQUIRED: ErrorKind.INVALID_ARGUMENT,
    ErrorCode.NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.REASONING_STEP_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.REASONING_BRANCH_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.NEXUS_NODE_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.NEXUS_LINK_NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.CONFLICT: ErrorKind.CONFLICT,
    ErrorCode.NEXUS_DUPLICATE_LINK: ErrorKind.CONFLICT,
}


class ThoughtGraphError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


# Kind-specific exceptions for cleaner imports
class InvalidArgumentError(ThoughtGraphError):
    """Missing or malformed input; nothing was mutated."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(code, message, details)

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> InvalidArgumentError:
        """Wrap a pydantic validation failure."""
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        summary = "; ".join(f"{e['field'] or 'input'}: {e['message']}" for e in errors)
        return cls(f"Invalid arguments: {summary}", {"errors": errors})


class NotFoundError(ThoughtGraphError):
    """Referenced step, branch, node or link does not exist."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(code, message, details)


class ConflictError(ThoughtGraphError):
    """Mutation would violate a uniqueness invariant."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.CONFLICT,
    ) -> None:
        super().__init__(code, message, details)


class StorageError(ThoughtGraphError):
    """Storage/persistence errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.STORAGE_WRITE_FAILED,
    ) -> None:
        super().__init__(code, message, details)
