"""
Reasoning Engine - Builds and links reasoning steps into a graph.

Composes the step store, branch index and step factory. Every operation
validates its arguments before touching state, then mutates under a lock.
The engine never judges whether reasoning is correct; it records, links
and retrieves steps.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from thoughtgraph.config.errors import (
    ErrorCode,
    InvalidArgumentError,
    NotFoundError,
)

from .factory import StepFactory
from .models import (
    AMENDABLE_FIELDS,
    DEFAULT_PERSPECTIVE,
    AnalyzeArgs,
    ChainResult,
    CreateStepArgs,
    ReasoningStep,
    ReasoningType,
    SequentialArgs,
    StepResult,
    SynthesisResult,
    SynthesizeArgs,
    ValidateArgs,
    ValidationResult,
)
from .store import BranchIndex, StepStore

logger = logging.getLogger(__name__)

__all__ = ["ReasoningEngine", "chain_types"]

ArgsT = TypeVar("ArgsT", bound=BaseModel)


def _parse(model: type[ArgsT], **kwargs: Any) -> ArgsT:
    """Validate operation arguments, dropping unset optionals."""
    try:
        return model.model_validate({k: v for k, v in kwargs.items() if v is not None})
    except ValidationError as e:
        raise InvalidArgumentError.from_validation_error(e) from e


def chain_types(
    count: int,
    opening: ReasoningType,
    single: ReasoningType,
) -> list[ReasoningType]:
    """
    Type layout for a linear chain of ``count`` steps.

    ``opening``, then analysis steps, then a conclusion. Two steps skip the
    analysis; one step is just ``single``.
    """
    if count == 1:
        return [single]
    middle = [ReasoningType.ANALYSIS] * (count - 2)
    return [opening, *middle, ReasoningType.CONCLUSION]


class ReasoningEngine:
    """
    Reasoning step graph engine.

    Example:
        >>> engine = ReasoningEngine()
        >>> chain = await engine.analyze("Why is checkout slow?", depth=4)
        >>> synthesis = await engine.synthesize(chain.step_ids[1:3], perspective="cost")
        >>> await engine.validate(synthesis.step_id, criteria=["evidence"])
    """

    def __init__(
        self,
        store: StepStore | None = None,
        branches: BranchIndex | None = None,
        factory: StepFactory | None = None,
        default_depth: int = 3,
        default_sequence_steps: int = 3,
    ) -> None:
        """
        Initialize engine.

        Args:
            store: Step store (a fresh one if None)
            branches: Branch index (a fresh one if None)
            factory: Step factory (random ids if None)
            default_depth: analyze depth when the caller gives none
            default_sequence_steps: sequential_reasoning length when the caller gives none
        """
        self._steps = store if store is not None else StepStore()
        self._branches = branches if branches is not None else BranchIndex()
        self._factory = factory if factory is not None else StepFactory()
        self._default_depth = default_depth
        self._default_sequence_steps = default_sequence_steps
        self._lock = asyncio.Lock()

    @property
    def step_count(self) -> int:
        return len(self._steps)

    def _require_steps(self, step_ids: list[str], action: str) -> None:
        missing = self._steps.missing(step_ids)
        if missing:
            raise NotFoundError(
                ErrorCode.REASONING_STEP_NOT_FOUND,
                f"Cannot {action}: step(s) not found: {', '.join(missing)}",
                {"missing": missing},
            )

    async def create_reasoning_step(
        self,
        type: ReasoningType | str,
        content: str,
        dependencies: list[str] | None = None,
        evidence: list[str] | None = None,
        confidence: float | None = None,
    ) -> StepResult:
        """
        Record a single step outside any branch.

        Args:
            type: One of the reasoning type tags
            content: Step text (non-empty)
            dependencies: Ids of existing steps this one follows from
            evidence: Supporting evidence strings
            confidence: Number in [0, 1]

        Returns:
            StepResult wrapping the stored step

        Raises:
            InvalidArgumentError: Bad type, empty content or confidence out of range
            NotFoundError: A dependency does not exist
        """
        args = _parse(
            CreateStepArgs,
            type=type,
            content=content,
            dependencies=dependencies,
            evidence=evidence,
            confidence=confidence,
        )

        async with self._lock:
            self._require_steps(args.dependencies, "create step")
            step = self._factory.create(
                args.type,
                args.content,
                dependencies=list(args.dependencies),
                evidence=args.evidence,
                confidence=args.confidence,
            )
            self._steps.put(step)

        logger.debug("Created %s step %s", step.type.value, step.id)
        return StepResult(step=step)

    async def analyze(
        self,
        prompt: str,
        depth: int | None = None,
        focus_areas: list[str] | None = None,
    ) -> ChainResult:
        """
        Decompose a prompt into a linear chain of ``depth`` steps on a new branch.

        depth >= 3 gives decomposition, analysis..., conclusion. depth 2 gives
        decomposition then conclusion; depth 1 a lone conclusion.

        Args:
            prompt: What to analyze (non-empty)
            depth: Number of steps, at least 1
            focus_areas: Topics recorded on every step

        Returns:
            ChainResult with the branch id and ordered steps
        """
        args = _parse(
            AnalyzeArgs,
            prompt=prompt,
            depth=depth if depth is not None else self._default_depth,
            focus_areas=focus_areas,
        )

        types = chain_types(
            args.depth,
            opening=ReasoningType.DECOMPOSITION,
            single=ReasoningType.CONCLUSION,
        )
        contents: list[str] = []
        for position, step_type in enumerate(types):
            if step_type == ReasoningType.DECOMPOSITION:
                contents.append(f"Initial decomposition: {args.prompt}")
            elif step_type == ReasoningType.ANALYSIS:
                contents.append(f"Analysis step {position}: {args.prompt}")
            else:
                contents.append(f"Final synthesis: {args.prompt}")

        async with self._lock:
            branch_id = self._factory.new_branch_id()
            steps = self._build_chain(branch_id, types, contents, args.focus_areas)

        logger.info("Analyzed prompt into %d steps on branch %s", len(steps), branch_id)
        return ChainResult(branch_id=branch_id, steps=steps)

    async def synthesize(
        self,
        step_ids: list[str],
        perspective: str | None = None,
    ) -> SynthesisResult:
        """
        Combine existing steps into one synthesis step.

        All-or-nothing: if any id is unknown no step is created.

        Args:
            step_ids: Steps to combine (at least one)
            perspective: Lens applied; "general" if None

        Raises:
            NotFoundError: One or more step ids do not exist
        """
        args = _parse(SynthesizeArgs, step_ids=step_ids, perspective=perspective)
        applied = args.perspective or DEFAULT_PERSPECTIVE

        async with self._lock:
            self._require_steps(args.step_ids, "synthesize")
            step = self._factory.create(
                ReasoningType.SYNTHESIS,
                f"Synthesis of steps: {', '.join(args.step_ids)}",
                dependencies=list(args.step_ids),
                perspective=applied,
            )
            self._steps.put(step)

        logger.info("Synthesized %d steps into %s", len(args.step_ids), step.id)
        return SynthesisResult(
            step=step,
            synthesized_steps=list(args.step_ids),
            perspective=applied,
        )

    async def validate(
        self,
        step_id: str,
        criteria: list[str] | None = None,
    ) -> ValidationResult:
        """
        Record that a step was evaluated against criteria.

        Raises:
            NotFoundError: The step does not exist
        """
        args = _parse(ValidateArgs, step_id=step_id, criteria=criteria)

        async with self._lock:
            self._steps.get(args.step_id)
            step = self._factory.create(
                ReasoningType.VALIDATION,
                f"Validation of step: {args.step_id}",
                dependencies=[args.step_id],
                criteria=args.criteria,
            )
            self._steps.put(step)

        logger.debug("Validation %s recorded for %s", step.id, args.step_id)
        return ValidationResult(
            step=step,
            validated_step_id=args.step_id,
            criteria=list(args.criteria or []),
        )

    async def sequential_reasoning(
        self,
        prompt: str,
        initial_steps: int | None = None,
        focus_areas: list[str] | None = None,
        branch_id: str | None = None,
        branch_from_step_id: str | None = None,
    ) -> ChainResult:
        """
        Start or continue a sequence: hypothesis, analysis..., conclusion.

        A single step is a hypothesis. Passing an existing ``branch_id``
        appends to that branch; an unknown one is created. The fork point
        ``branch_from_step_id`` is recorded on the first step as given and
        is not required to exist.

        Args:
            prompt: Opening hypothesis text (non-empty)
            initial_steps: Number of steps, at least 1
            focus_areas: Topics recorded on every step
            branch_id: Branch to create or continue; fresh if None
            branch_from_step_id: Step this sequence forks from
        """
        args = _parse(
            SequentialArgs,
            prompt=prompt,
            initial_steps=(
                initial_steps if initial_steps is not None else self._default_sequence_steps
            ),
            focus_areas=focus_areas,
            branch_id=branch_id,
            branch_from_step_id=branch_from_step_id,
        )

        types = chain_types(
            args.initial_steps,
            opening=ReasoningType.HYPOTHESIS,
            single=ReasoningType.HYPOTHESIS,
        )
        contents = [
            args.prompt if position == 0 else f"Step {position + 1} for: {args.prompt}"
            for position in range(args.initial_steps)
        ]

        async with self._lock:
            target = args.branch_id or self._factory.new_branch_id()
            continuing = self._branches.contains(target)
            steps = self._build_chain(
                target,
                types,
                contents,
                args.focus_areas,
                branch_from_step_id=args.branch_from_step_id,
            )

        logger.info(
            "%s branch %s with %d sequential steps",
            "Extended" if continuing else "Started",
            target,
            len(steps),
        )
        return ChainResult(branch_id=target, steps=steps)

    def _build_chain(
        self,
        branch_id: str,
        types: list[ReasoningType],
        contents: list[str],
        focus_areas: list[str] | None,
        branch_from_step_id: str | None = None,
    ) -> list[ReasoningStep]:
        """Mint a linked chain, then store it and register it on the branch."""
        total = len(types)
        steps: list[ReasoningStep] = []
        for position, (step_type, content) in enumerate(zip(types, contents)):
            steps.append(
                self._factory.create(
                    step_type,
                    content,
                    branch_id=branch_id,
                    sequence_number=position + 1,
                    total_steps=total,
                    focus_areas=list(focus_areas) if focus_areas is not None else None,
                    dependencies=[steps[-1].id] if steps else [],
                    branch_from_step_id=branch_from_step_id if position == 0 else None,
                )
            )

        for step in steps:
            self._steps.put(step)
        self._branches.append(branch_id, *(step.id for step in steps))
        return steps

    # --- Accessors ---

    async def get_step(self, step_id: str) -> ReasoningStep:
        """Get a step by id."""
        return self._steps.get(step_id)

    async def get_branch_steps(self, branch_id: str) -> list[ReasoningStep]:
        """Steps of a branch in the order they were added."""
        return [self._steps.get(step_id) for step_id in self._branches.step_ids(branch_id)]

    async def get_steps_by_type(self, step_type: ReasoningType | str) -> list[ReasoningStep]:
        """All steps carrying a type tag, in creation order."""
        try:
            wanted = ReasoningType(step_type)
        except ValueError as e:
            raise InvalidArgumentError(
                f"Unknown reasoning type: {step_type}",
                {"type": str(step_type)},
            ) from e
        return self._steps.by_type(wanted)

    async def list_branches(self) -> list[str]:
        return self._branches.branch_ids()

    async def update_step(self, step_id: str, **changes: Any) -> ReasoningStep:
        """
        Amend mutable fields of a step.

        ``id``, ``type``, ``content``, ``created_at`` and the branch fields
        are fixed at creation.

        Raises:
            InvalidArgumentError: A fixed or unknown field was given, or a value is invalid
            NotFoundError: The step, or a new dependency, does not exist
        """
        fixed = sorted(set(changes) - AMENDABLE_FIELDS)
        if fixed:
            raise InvalidArgumentError(
                f"Fields cannot be updated: {', '.join(fixed)}",
                {"fields": fixed},
                code=ErrorCode.REASONING_IMMUTABLE_FIELD,
            )

        async with self._lock:
            step = self._steps.get(step_id)
            try:
                updated = ReasoningStep.model_validate({**step.model_dump(), **changes})
            except ValidationError as e:
                raise InvalidArgumentError.from_validation_error(e) from e
            if "dependencies" in changes:
                self._require_steps(updated.dependencies, "update step")
            self._steps.put(updated)

        logger.debug("Updated step %s: %s", step_id, ", ".join(sorted(changes)))
        return updated
