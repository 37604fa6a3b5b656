"""Tests for the Reasoning Engine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from thoughtgraph.config.errors import (
    ErrorCode,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
)

from .engine import ReasoningEngine, chain_types
from .factory import StepFactory
from .models import ReasoningType
from .store import BranchIndex, StepStore


class CountingIds:
    """Deterministic ids: s1, s2, ..."""

    def __init__(self) -> None:
        self.count = 0

    def next(self) -> str:
        self.count += 1
        return f"s{self.count}"


@pytest.fixture
def store() -> StepStore:
    return StepStore()


@pytest.fixture
def engine(store: StepStore) -> ReasoningEngine:
    """Engine with deterministic ids and an inspectable store."""
    return ReasoningEngine(store=store, factory=StepFactory(id_generator=CountingIds()))


# --- create_reasoning_step ---


async def test_create_step_echoes_fields(engine: ReasoningEngine):
    """Test creating a free-standing step."""
    result = await engine.create_reasoning_step(
        type="hypothesis",
        content="Latency comes from the cache",
        evidence=["p99 doubled"],
        confidence=0.7,
    )

    assert result.step_id == "s1"
    assert result.step.type == ReasoningType.HYPOTHESIS
    assert result.step.evidence == ["p99 doubled"]
    assert result.step.confidence == 0.7
    assert result.step.branch_id is None
    assert "(ID: s1)" in result.to_text()


async def test_create_step_ids_are_unique():
    """Test ids are never reused with the default generator."""
    engine = ReasoningEngine()
    ids = set()
    for i in range(50):
        result = await engine.create_reasoning_step(type="inference", content=f"step {i}")
        ids.add(result.step_id)
    assert len(ids) == 50


@pytest.mark.parametrize(
    "kwargs",
    [
        {"type": "guess", "content": "x"},
        {"type": "analysis", "content": ""},
        {"type": "analysis", "content": "   "},
        {"type": "analysis", "content": "x", "confidence": 1.5},
        {"type": "analysis", "content": "x", "confidence": -0.1},
    ],
)
async def test_create_step_rejects_invalid_arguments(
    engine: ReasoningEngine, store: StepStore, kwargs: dict
):
    """Test validation failures mutate nothing."""
    with pytest.raises(InvalidArgumentError) as exc_info:
        await engine.create_reasoning_step(**kwargs)

    assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
    assert len(store) == 0


async def test_create_step_requires_existing_dependencies(
    engine: ReasoningEngine, store: StepStore
):
    """Test unknown dependencies are rejected."""
    first = await engine.create_reasoning_step(type="question", content="Why?")

    with pytest.raises(NotFoundError) as exc_info:
        await engine.create_reasoning_step(
            type="inference",
            content="Because",
            dependencies=[first.step_id, "ghost"],
        )

    assert exc_info.value.details["missing"] == ["ghost"]
    assert len(store) == 1


# --- analyze ---


async def test_analyze_depth_five_builds_linked_chain(engine: ReasoningEngine):
    """Test analyze produces decomposition, analyses and conclusion in a chain."""
    result = await engine.analyze("Why is checkout slow?", depth=5, focus_areas=["db"])

    assert [s.type for s in result.steps] == [
        ReasoningType.DECOMPOSITION,
        ReasoningType.ANALYSIS,
        ReasoningType.ANALYSIS,
        ReasoningType.ANALYSIS,
        ReasoningType.CONCLUSION,
    ]
    assert all(s.total_steps == 5 for s in result.steps)
    assert [s.sequence_number for s in result.steps] == [1, 2, 3, 4, 5]
    assert {s.branch_id for s in result.steps} == {result.branch_id}
    assert all(s.focus_areas == ["db"] for s in result.steps)
    assert result.steps[0].dependencies == []
    for previous, current in zip(result.steps, result.steps[1:]):
        assert current.dependencies == [previous.id]


async def test_analyze_registers_branch_in_order(engine: ReasoningEngine):
    """Test the branch lookup returns exactly the chain in creation order."""
    result = await engine.analyze("Plan the migration", depth=5)

    branch_steps = await engine.get_branch_steps(result.branch_id)
    assert [s.id for s in branch_steps] == result.step_ids


async def test_analyze_defaults_to_three_steps(engine: ReasoningEngine):
    """Test the default depth."""
    result = await engine.analyze("Is the API stable?")
    assert [s.type.value for s in result.steps] == ["decomposition", "analysis", "conclusion"]


async def test_analyze_depth_two_skips_analysis(engine: ReasoningEngine):
    """Test depth 2 is decomposition then conclusion."""
    result = await engine.analyze("Short question", depth=2)

    assert [s.type for s in result.steps] == [
        ReasoningType.DECOMPOSITION,
        ReasoningType.CONCLUSION,
    ]
    assert result.steps[1].dependencies == [result.steps[0].id]


async def test_analyze_depth_one_is_single_conclusion(engine: ReasoningEngine):
    """Test depth 1 is a lone conclusion."""
    result = await engine.analyze("Trivial", depth=1)

    assert len(result.steps) == 1
    assert result.steps[0].type == ReasoningType.CONCLUSION
    assert result.steps[0].dependencies == []
    assert result.steps[0].total_steps == 1


@pytest.mark.parametrize("depth", range(1, 8))
async def test_analyze_chain_shape_holds_for_any_depth(depth: int):
    """Test every depth yields a valid chain ending in a conclusion."""
    engine = ReasoningEngine()
    result = await engine.analyze("Anything", depth=depth)

    assert len(result.steps) == depth
    assert result.steps[-1].type == ReasoningType.CONCLUSION
    assert sum(s.type == ReasoningType.CONCLUSION for s in result.steps) == 1
    for previous, current in zip(result.steps, result.steps[1:]):
        assert current.dependencies == [previous.id]


async def test_analyze_rejects_bad_depth(engine: ReasoningEngine, store: StepStore):
    """Test depth must be at least 1."""
    with pytest.raises(InvalidArgumentError):
        await engine.analyze("prompt", depth=0)
    with pytest.raises(InvalidArgumentError):
        await engine.analyze("", depth=3)
    assert len(store) == 0


async def test_analyze_text_lists_each_step(engine: ReasoningEngine):
    """Test the text rendering."""
    result = await engine.analyze("Cache design", depth=3)

    lines = result.to_text().splitlines()
    assert lines[0] == "Step 1/3 (decomposition): Initial decomposition: Cache design (ID: s2)"
    assert lines[2].startswith("Step 3/3 (conclusion): Final synthesis: Cache design")


# --- synthesize ---


async def test_synthesize_combines_existing_steps(engine: ReasoningEngine):
    """Test synthesis depends on every input."""
    a = await engine.create_reasoning_step(type="analysis", content="A")
    b = await engine.create_reasoning_step(type="counterargument", content="B")

    result = await engine.synthesize([a.step_id, b.step_id], perspective="risk")

    assert result.step.type == ReasoningType.SYNTHESIS
    assert result.step.dependencies == [a.step_id, b.step_id]
    assert result.step.perspective == "risk"
    assert result.synthesized_steps == [a.step_id, b.step_id]
    assert "from perspective: risk" in result.to_text()


async def test_synthesize_defaults_to_general_perspective(engine: ReasoningEngine):
    """Test default perspective label."""
    a = await engine.create_reasoning_step(type="analysis", content="A")
    result = await engine.synthesize([a.step_id])
    assert result.perspective == "general"
    assert result.step.perspective == "general"


async def test_synthesize_with_missing_step_creates_nothing(
    engine: ReasoningEngine, store: StepStore
):
    """Test no partial synthesis when an id is unknown."""
    a = await engine.create_reasoning_step(type="analysis", content="A")
    size_before = len(store)

    with pytest.raises(NotFoundError) as exc_info:
        await engine.synthesize([a.step_id, "b"])

    assert exc_info.value.code == ErrorCode.REASONING_STEP_NOT_FOUND
    assert len(store) == size_before


async def test_synthesize_requires_step_ids(engine: ReasoningEngine):
    """Test empty input is invalid."""
    with pytest.raises(InvalidArgumentError):
        await engine.synthesize([])


# --- validate ---


async def test_validate_creates_one_dependent_step(engine: ReasoningEngine, store: StepStore):
    """Test validation step depends only on the validated step."""
    target = await engine.create_reasoning_step(type="conclusion", content="Ship it")
    size_before = len(store)

    result = await engine.validate(target.step_id, criteria=["evidence", "scope"])

    assert len(store) == size_before + 1
    assert result.step.type == ReasoningType.VALIDATION
    assert result.step.dependencies == [target.step_id]
    assert result.step.criteria == ["evidence", "scope"]
    assert "against criteria: evidence, scope" in result.to_text()


async def test_validate_unknown_step(engine: ReasoningEngine, store: StepStore):
    """Test validating a missing step."""
    with pytest.raises(NotFoundError):
        await engine.validate("nope")
    assert len(store) == 0


# --- sequential_reasoning ---


async def test_sequential_reasoning_shape(engine: ReasoningEngine):
    """Test hypothesis, analysis, conclusion with chained dependencies."""
    result = await engine.sequential_reasoning("Users churn after onboarding")

    assert [s.type for s in result.steps] == [
        ReasoningType.HYPOTHESIS,
        ReasoningType.ANALYSIS,
        ReasoningType.CONCLUSION,
    ]
    assert result.steps[0].content == "Users churn after onboarding"
    assert result.steps[1].content == "Step 2 for: Users churn after onboarding"
    assert result.steps[0].dependencies == []
    assert result.steps[2].dependencies == [result.steps[1].id]
    assert len(result.lines()) == 3


async def test_sequential_single_step_is_hypothesis(engine: ReasoningEngine):
    """Test the one-step rule."""
    result = await engine.sequential_reasoning("Lone idea", initial_steps=1)

    assert len(result.steps) == 1
    assert result.steps[0].type == ReasoningType.HYPOTHESIS


async def test_sequential_continues_existing_branch(engine: ReasoningEngine):
    """Test a given branch id is appended to, not replaced."""
    first = await engine.sequential_reasoning("Opening", initial_steps=2)
    second = await engine.sequential_reasoning(
        "Follow-up", initial_steps=2, branch_id=first.branch_id
    )

    assert second.branch_id == first.branch_id
    branch_steps = await engine.get_branch_steps(first.branch_id)
    assert [s.id for s in branch_steps] == first.step_ids + second.step_ids


async def test_sequential_records_fork_point_without_checking(engine: ReasoningEngine):
    """Test branch_from_step_id is a soft reference on the first step only."""
    result = await engine.sequential_reasoning(
        "Alternative view",
        initial_steps=3,
        branch_id="alt",
        branch_from_step_id="not-a-step",
        focus_areas=["cost"],
    )

    assert result.branch_id == "alt"
    assert result.steps[0].branch_from_step_id == "not-a-step"
    assert result.steps[1].branch_from_step_id is None
    assert all(s.focus_areas == ["cost"] for s in result.steps)


async def test_sequential_rejects_zero_steps(engine: ReasoningEngine, store: StepStore):
    """Test initial_steps must be at least 1."""
    with pytest.raises(InvalidArgumentError):
        await engine.sequential_reasoning("prompt", initial_steps=0)
    assert len(store) == 0


# --- accessors ---


async def test_get_branch_steps_unknown_branch(engine: ReasoningEngine):
    """Test unknown branches raise NotFound."""
    with pytest.raises(NotFoundError) as exc_info:
        await engine.get_branch_steps("missing")
    assert exc_info.value.code == ErrorCode.REASONING_BRANCH_NOT_FOUND


async def test_get_steps_by_type(engine: ReasoningEngine):
    """Test filtering by type tag."""
    await engine.analyze("Topic", depth=4)
    analyses = await engine.get_steps_by_type("analysis")
    assert len(analyses) == 2

    with pytest.raises(InvalidArgumentError):
        await engine.get_steps_by_type("opinion")


async def test_update_step_preserves_identity(engine: ReasoningEngine):
    """Test amendable fields change and identity does not."""
    created = await engine.create_reasoning_step(type="inference", content="Maybe")

    updated = await engine.update_step(created.step_id, confidence=0.9, evidence=["log"])

    assert updated.id == created.step_id
    assert updated.created_at == created.step.created_at
    assert updated.content == "Maybe"
    assert updated.confidence == 0.9
    assert (await engine.get_step(created.step_id)).evidence == ["log"]


@pytest.mark.parametrize("field", ["id", "type", "content", "created_at", "branch_id"])
async def test_update_step_rejects_fixed_fields(engine: ReasoningEngine, field: str):
    """Test fixed fields cannot be updated."""
    created = await engine.create_reasoning_step(type="inference", content="Maybe")

    with pytest.raises(InvalidArgumentError) as exc_info:
        await engine.update_step(created.step_id, **{field: "x"})
    assert exc_info.value.code == ErrorCode.REASONING_IMMUTABLE_FIELD


async def test_update_step_validates_values(engine: ReasoningEngine):
    """Test out-of-range values and unknown steps."""
    created = await engine.create_reasoning_step(type="inference", content="Maybe")

    with pytest.raises(InvalidArgumentError):
        await engine.update_step(created.step_id, confidence=2.0)
    with pytest.raises(NotFoundError):
        await engine.update_step("ghost", confidence=0.5)
    assert (await engine.get_step(created.step_id)).confidence is None


async def test_update_step_checks_dependency_type_before_existence(engine: ReasoningEngine):
    """Test a wrong-typed dependencies value is invalid, not missing."""
    created = await engine.create_reasoning_step(type="inference", content="Maybe")

    with pytest.raises(InvalidArgumentError):
        await engine.update_step(created.step_id, dependencies="abc")
    with pytest.raises(NotFoundError):
        await engine.update_step(created.step_id, dependencies=["ghost"])
    assert (await engine.get_step(created.step_id)).dependencies == []


# --- helpers ---


def test_chain_types_layout():
    """Test the chain layout rule directly."""
    assert chain_types(1, ReasoningType.HYPOTHESIS, ReasoningType.HYPOTHESIS) == [
        ReasoningType.HYPOTHESIS
    ]
    assert chain_types(4, ReasoningType.DECOMPOSITION, ReasoningType.CONCLUSION) == [
        ReasoningType.DECOMPOSITION,
        ReasoningType.ANALYSIS,
        ReasoningType.ANALYSIS,
        ReasoningType.CONCLUSION,
    ]


def test_factory_timestamps_never_go_backwards():
    """Test clock regressions are clamped."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = iter([start, start - timedelta(seconds=5), start + timedelta(seconds=1)])
    factory = StepFactory(id_generator=CountingIds(), clock=lambda: next(ticks))

    stamps = [
        factory.create(ReasoningType.QUESTION, f"q{i}").created_at for i in range(3)
    ]

    assert stamps[0] == start
    assert stamps[1] == start
    assert stamps[2] == start + timedelta(seconds=1)


def test_branch_index_appends():
    """Test branch index creation and append."""
    index = BranchIndex()
    index.append("b1", "s1", "s2")
    index.append("b1", "s3")

    assert index.step_ids("b1") == ["s1", "s2", "s3"]
    assert index.contains("b1")
    with pytest.raises(NotFoundError):
        index.step_ids("b2")


async def test_store_keeps_creation_order(engine: ReasoningEngine, store: StepStore):
    """Test the store iterates steps in the order they were created."""
    await engine.create_reasoning_step(type="question", content="What changed?")
    await engine.analyze("What changed?", depth=2)

    assert [step.id for step in store.values()] == ["s1", "s3", "s4"]
    assert engine.step_count == len(store) == 3


def test_engine_satisfies_contract():
    """Test the engine and default id source match their protocols."""
    from .contracts import IdGenerator, Reasoner
    from .factory import UUIDGenerator

    assert isinstance(ReasoningEngine(), Reasoner)
    assert isinstance(UUIDGenerator(), IdGenerator)
    assert isinstance(CountingIds(), IdGenerator)
