"""
Step Factory - The single point where reasoning steps are minted.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from .contracts import IdGenerator
from .models import ReasoningStep, ReasoningType

__all__ = ["StepFactory", "UUIDGenerator", "utc_now"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UUIDGenerator:
    """Random 128-bit identifiers."""

    def next(self) -> str:
        return str(uuid.uuid4())


class StepFactory:
    """
    Builds fully populated steps with fresh ids and timestamps.

    Timestamps never go backwards between calls, even if the clock does.
    The type tag is not validated here.

    Example:
        >>> factory = StepFactory()
        >>> step = factory.create(ReasoningType.HYPOTHESIS, "Caching is the bottleneck")
    """

    def __init__(
        self,
        id_generator: IdGenerator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize factory.

        Args:
            id_generator: Identifier source. Random UUIDs if None.
            clock: Returns the current UTC time. ``datetime.now`` if None.
        """
        self._ids = id_generator or UUIDGenerator()
        self._clock = clock or utc_now
        self._last_created: datetime | None = None

    def _timestamp(self) -> datetime:
        now = self._clock()
        if self._last_created is not None and now < self._last_created:
            now = self._last_created
        self._last_created = now
        return now

    def new_branch_id(self) -> str:
        """Mint a branch identifier from the same id source as steps."""
        return self._ids.next()

    def create(
        self,
        step_type: ReasoningType,
        content: str,
        **fields: Any,
    ) -> ReasoningStep:
        """
        Mint a new step.

        Args:
            step_type: Reasoning type tag
            content: Opaque step text
            **fields: Any optional ReasoningStep field (dependencies, branch_id, ...)

        Returns:
            The new, not yet stored, step
        """
        return ReasoningStep(
            id=self._ids.next(),
            type=step_type,
            content=content,
            created_at=self._timestamp(),
            **{key: value for key, value in fields.items() if value is not None},
        )
