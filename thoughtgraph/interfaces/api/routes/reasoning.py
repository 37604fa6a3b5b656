"""
Reasoning Routes - Step creation, multi-step operations and branch queries.

Bodies are only shape-checked here; value rules (non-empty text, depth and
confidence bounds, step existence) are enforced by the engine and surface
as structured 400/404 errors.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from thoughtgraph.domains.reasoning import ReasoningEngine, ReasoningStep
from thoughtgraph.interfaces.api.deps import get_reasoning_engine

router = APIRouter()


class CreateStepRequest(BaseModel):
    """Create step request body."""

    type: str
    content: str
    dependencies: list[str] | None = None
    evidence: list[str] | None = None
    confidence: float | None = None


class AnalyzeRequest(BaseModel):
    """Analyze request body."""

    prompt: str
    depth: int | None = None
    focus_areas: list[str] | None = None


class SynthesizeRequest(BaseModel):
    """Synthesize request body."""

    step_ids: list[str]
    perspective: str | None = None


class ValidateRequest(BaseModel):
    """Validate request body."""

    step_id: str
    criteria: list[str] | None = None


class SequentialRequest(BaseModel):
    """Sequential reasoning request body (camelCase accepted)."""

    prompt: str
    initial_steps: int | None = Field(default=None, alias="initialSteps")
    focus_areas: list[str] | None = Field(default=None, alias="focusAreas")
    branch_id: str | None = Field(default=None, alias="branchId")
    branch_from_step_id: str | None = Field(default=None, alias="branchFromStepId")

    model_config = ConfigDict(populate_by_name=True)


class StepResponse(BaseModel):
    """Single step with its text rendering."""

    step: ReasoningStep
    text: str


class ChainResponse(BaseModel):
    """Ordered chain of steps on one branch."""

    branch_id: str
    steps: list[ReasoningStep]
    text: list[str]


class SynthesisResponse(BaseModel):
    """Synthesis step and the steps it combined."""

    step: ReasoningStep
    synthesized_steps: list[str]
    perspective: str
    text: str


class ValidationResponse(BaseModel):
    """Validation step and what it evaluated."""

    step: ReasoningStep
    validated_step_id: str
    criteria: list[str]
    text: str


@router.post("/steps", response_model=StepResponse, status_code=201)
async def create_reasoning_step(
    request: CreateStepRequest,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Record a single reasoning step outside any branch."""
    result = await engine.create_reasoning_step(**request.model_dump())
    return StepResponse(step=result.step, text=result.to_text())


@router.get("/steps", response_model=list[ReasoningStep])
async def get_steps_by_type(
    type: str = Query(..., description="Reasoning type tag"),
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """List every step with the given type tag."""
    return await engine.get_steps_by_type(type)


@router.get("/steps/{step_id}", response_model=ReasoningStep)
async def get_step(
    step_id: str,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Get one step by id."""
    return await engine.get_step(step_id)


@router.patch("/steps/{step_id}", response_model=ReasoningStep)
async def update_step(
    step_id: str,
    changes: dict[str, Any] = Body(...),
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Amend mutable fields (confidence, evidence, dependencies, ...) of a step."""
    return await engine.update_step(step_id, **changes)


@router.post("/analyze", response_model=ChainResponse, status_code=201)
async def analyze(
    request: AnalyzeRequest,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """
    Decompose a prompt into a chain of steps on a new branch.

    - **prompt**: What to analyze
    - **depth**: Number of steps (default 3)
    - **focus_areas**: Topics recorded on every step
    """
    result = await engine.analyze(**request.model_dump())
    return ChainResponse(branch_id=result.branch_id, steps=result.steps, text=result.lines())


@router.post("/synthesize", response_model=SynthesisResponse, status_code=201)
async def synthesize(
    request: SynthesizeRequest,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Combine existing steps into a synthesis step."""
    result = await engine.synthesize(**request.model_dump())
    return SynthesisResponse(
        step=result.step,
        synthesized_steps=result.synthesized_steps,
        perspective=result.perspective,
        text=result.to_text(),
    )


@router.post("/validate", response_model=ValidationResponse, status_code=201)
async def validate(
    request: ValidateRequest,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Record an evaluation of a step against criteria."""
    result = await engine.validate(**request.model_dump())
    return ValidationResponse(
        step=result.step,
        validated_step_id=result.validated_step_id,
        criteria=result.criteria,
        text=result.to_text(),
    )


@router.post("/sequential", response_model=ChainResponse, status_code=201)
async def sequential_reasoning(
    request: SequentialRequest,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Start a sequence, or continue one by passing its branchId."""
    result = await engine.sequential_reasoning(**request.model_dump())
    return ChainResponse(branch_id=result.branch_id, steps=result.steps, text=result.lines())


@router.get("/branches", response_model=list[str])
async def list_branches(engine: ReasoningEngine = Depends(get_reasoning_engine)):
    """List branch ids in creation order."""
    return await engine.list_branches()


@router.get("/branches/{branch_id}", response_model=list[ReasoningStep])
async def get_branch_steps(
    branch_id: str,
    engine: ReasoningEngine = Depends(get_reasoning_engine),
):
    """Steps of a branch in the order they were added."""
    return await engine.get_branch_steps(branch_id)
