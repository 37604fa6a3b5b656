"""
Reasoning Contracts - Interfaces for reasoning domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import (
    ChainResult,
    ReasoningStep,
    ReasoningType,
    StepResult,
    SynthesisResult,
    ValidationResult,
)


@runtime_checkable
class IdGenerator(Protocol):
    """Source of unique step and branch identifiers."""

    def next(self) -> str:
        """Return an identifier never returned before."""
        ...


@runtime_checkable
class Reasoner(Protocol):
    """Contract for the reasoning step graph engine."""

    async def create_reasoning_step(
        self,
        type: ReasoningType | str,
        content: str,
        dependencies: list[str] | None = None,
        evidence: list[str] | None = None,
        confidence: float | None = None,
    ) -> StepResult:
        """Record a single free-standing step."""
        ...

    async def analyze(
        self,
        prompt: str,
        depth: int | None = None,
        focus_areas: list[str] | None = None,
    ) -> ChainResult:
        """Build a decomposition -> analysis -> conclusion chain."""
        ...

    async def synthesize(
        self,
        step_ids: list[str],
        perspective: str | None = None,
    ) -> SynthesisResult:
        """Combine existing steps into one synthesis step."""
        ...

    async def validate(
        self,
        step_id: str,
        criteria: list[str] | None = None,
    ) -> ValidationResult:
        """Record that a step was evaluated against criteria."""
        ...

    async def sequential_reasoning(
        self,
        prompt: str,
        initial_steps: int | None = None,
        focus_areas: list[str] | None = None,
        branch_id: str | None = None,
        branch_from_step_id: str | None = None,
    ) -> ChainResult:
        """Start or continue a hypothesis -> conclusion sequence."""
        ...

    async def get_branch_steps(self, branch_id: str) -> list[ReasoningStep]:
        """Steps of a branch in creation order."""
        ...
