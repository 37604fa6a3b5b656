"""
Step Store and Branch Index - Keyed in-memory collections for reasoning steps.

No business logic lives here; the engine decides what gets stored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from thoughtgraph.config.errors import ErrorCode, NotFoundError

from .models import ReasoningStep, ReasoningType

logger = logging.getLogger(__name__)

__all__ = ["StepStore", "BranchIndex"]


class StepStore:
    """
    Reasoning steps keyed by id, in insertion order.

    Example:
        >>> store = StepStore()
        >>> store.put(step)
        >>> store.get(step.id).content
    """

    def __init__(self) -> None:
        self._steps: dict[str, ReasoningStep] = {}

    def put(self, step: ReasoningStep) -> None:
        """Insert or overwrite a step by id."""
        self._steps[step.id] = step
        logger.debug("Stored step: %s (%s)", step.id, step.type.value)

    def get(self, step_id: str) -> ReasoningStep:
        """Get a step, raising NotFoundError if absent."""
        step = self._steps.get(step_id)
        if step is None:
            raise NotFoundError(
                ErrorCode.REASONING_STEP_NOT_FOUND,
                f"Step not found: {step_id}",
                {"step_id": step_id},
            )
        return step

    def contains(self, step_id: str) -> bool:
        return step_id in self._steps

    def missing(self, step_ids: list[str]) -> list[str]:
        """Ids from step_ids that are not stored, in the order given."""
        return [step_id for step_id in step_ids if step_id not in self._steps]

    def by_type(self, step_type: ReasoningType) -> list[ReasoningStep]:
        return [step for step in self._steps.values() if step.type == step_type]

    def values(self) -> Iterator[ReasoningStep]:
        return iter(self._steps.values())

    def __len__(self) -> int:
        return len(self._steps)


class BranchIndex:
    """Ordered step ids per branch. Append only."""

    def __init__(self) -> None:
        self._branches: dict[str, list[str]] = {}

    def append(self, branch_id: str, *step_ids: str) -> None:
        """Append ids to a branch, creating the branch entry if absent."""
        entry = self._branches.setdefault(branch_id, [])
        entry.extend(step_ids)
        logger.debug("Branch %s now holds %d steps", branch_id, len(entry))

    def step_ids(self, branch_id: str) -> list[str]:
        """Ordered ids for a branch, raising NotFoundError if never created."""
        entry = self._branches.get(branch_id)
        if entry is None:
            raise NotFoundError(
                ErrorCode.REASONING_BRANCH_NOT_FOUND,
                f"Branch not found: {branch_id}",
                {"branch_id": branch_id},
            )
        return list(entry)

    def contains(self, branch_id: str) -> bool:
        return branch_id in self._branches

    def branch_ids(self) -> list[str]:
        return list(self._branches)

    def __len__(self) -> int:
        return len(self._branches)
