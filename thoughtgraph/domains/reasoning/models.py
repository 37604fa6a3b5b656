"""
Reasoning Models - Data types for the reasoning domain.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

DEFAULT_PERSPECTIVE = "general"


class ReasoningType(str, Enum):
    """Tags for reasoning steps. Descriptive only, never dispatched on."""

    HYPOTHESIS = "hypothesis"
    ANALYSIS = "analysis"
    INFERENCE = "inference"
    CONCLUSION = "conclusion"
    COUNTERARGUMENT = "counterargument"
    SYNTHESIS = "synthesis"
    DECOMPOSITION = "decomposition"
    VALIDATION = "validation"
    REVISION = "revision"
    BRANCH = "branch"
    QUESTION = "question"
    REALIZATION = "realization"


class ReasoningStep(BaseModel):
    """Node in the reasoning graph."""

    id: str
    type: ReasoningType
    content: str
    created_at: datetime
    dependencies: list[str] = Field(default_factory=list)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    evidence: list[str] | None = None
    sequence_number: int | None = None
    total_steps: int | None = None
    focus_areas: list[str] | None = None
    perspective: str | None = None
    criteria: list[str] | None = None
    branch_id: str | None = None
    branch_from_step_id: str | None = None

    model_config = {"frozen": True}

    def describe(self) -> str:
        """One-line rendering used in tool responses."""
        if self.sequence_number is not None and self.total_steps is not None:
            position = f"Step {self.sequence_number}/{self.total_steps} "
        else:
            position = ""
        return f"{position}({self.type.value}): {self.content} (ID: {self.id})"


# Fields update_step may change; everything else is fixed at creation.
AMENDABLE_FIELDS = frozenset(
    {
        "dependencies",
        "confidence",
        "evidence",
        "sequence_number",
        "total_steps",
        "focus_areas",
        "perspective",
        "criteria",
    }
)


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


# --- Operation arguments ---


class CreateStepArgs(BaseModel):
    """Arguments for create_reasoning_step."""

    type: ReasoningType
    content: str = Field(..., min_length=1)
    dependencies: list[str] = Field(default_factory=list)
    evidence: list[str] | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        return _non_blank(value)


class AnalyzeArgs(BaseModel):
    """Arguments for analyze."""

    prompt: str = Field(..., min_length=1)
    depth: int = Field(default=3, ge=1)
    focus_areas: list[str] | None = None

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        return _non_blank(value)


class SynthesizeArgs(BaseModel):
    """Arguments for synthesize."""

    step_ids: list[str] = Field(..., min_length=1)
    perspective: str | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class ValidateArgs(BaseModel):
    """Arguments for validate."""

    step_id: str = Field(..., min_length=1)
    criteria: list[str] | None = None

    model_config = {"frozen": True, "extra": "forbid"}


class SequentialArgs(BaseModel):
    """Arguments for sequential_reasoning."""

    prompt: str = Field(..., min_length=1)
    initial_steps: int = Field(default=3, ge=1)
    focus_areas: list[str] | None = None
    branch_id: str | None = Field(default=None, min_length=1)
    branch_from_step_id: str | None = Field(default=None, min_length=1)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        return _non_blank(value)


# --- Operation results ---


class StepResult(BaseModel):
    """Result of create_reasoning_step."""

    step: ReasoningStep

    @property
    def step_id(self) -> str:
        return self.step.id

    def to_text(self) -> str:
        return f"Created {self.step.type.value} step: {self.step.content} (ID: {self.step.id})"


class ChainResult(BaseModel):
    """Result of analyze and sequential_reasoning: an ordered chain."""

    branch_id: str
    steps: list[ReasoningStep]

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def lines(self) -> list[str]:
        """One response item per step."""
        return [step.describe() for step in self.steps]

    def to_text(self) -> str:
        return "\n".join(self.lines())


class SynthesisResult(BaseModel):
    """Result of synthesize."""

    step: ReasoningStep
    synthesized_steps: list[str]
    perspective: str

    @property
    def step_id(self) -> str:
        return self.step.id

    def to_text(self) -> str:
        return (
            f"Synthesized result (ID: {self.step.id}): Combined analysis from steps "
            f"{', '.join(self.synthesized_steps)} from perspective: {self.perspective}"
        )


class ValidationResult(BaseModel):
    """Result of validate. Records the evaluation, never a verdict."""

    step: ReasoningStep
    validated_step_id: str
    criteria: list[str] = Field(default_factory=list)

    @property
    def step_id(self) -> str:
        return self.step.id

    def to_text(self) -> str:
        criteria = ", ".join(self.criteria) if self.criteria else "none specified"
        return (
            f"Validation result (ID: {self.step.id}): Evaluated step "
            f"{self.validated_step_id} against criteria: {criteria}"
        )
