"""Tests for MCP Server."""

import pytest

from thoughtgraph.config import Settings
from thoughtgraph.config.errors import InvalidArgumentError, NotFoundError
from thoughtgraph.domains.nexus import NexusGraphStore
from thoughtgraph.domains.reasoning import ReasoningEngine, StepFactory

from . import server
from .server import create_server


class CountingIds:
    def __init__(self) -> None:
        self._n = 0

    def next(self) -> str:
        self._n += 1
        return f"s{self._n}"


@pytest.fixture
def engine() -> ReasoningEngine:
    return ReasoningEngine(factory=StepFactory(id_generator=CountingIds()))


@pytest.fixture
def store() -> NexusGraphStore:
    return NexusGraphStore()


async def test_registers_all_tools(engine: ReasoningEngine, store: NexusGraphStore, tmp_path):
    """Test every tool is exposed under its public name."""
    mcp = create_server(engine, store, Settings(data_dir=tmp_path))

    names = {tool.name for tool in await mcp.list_tools()}

    assert names == {
        "create_reasoning_step",
        "analyze",
        "synthesize",
        "validate",
        "sequential_reasoning",
        "get_branch_steps",
        "clear_nexus",
        "create_entities",
        "create_relations",
        "add_observations",
        "delete_entities",
        "delete_relations",
        "search_nodes",
        "get_node_connections",
        "find_path",
    }


async def test_analyze_text(engine: ReasoningEngine):
    """Test analyze renders one line per step."""
    text = await server._analyze(engine, "Why?", depth=2)

    # s1 is the branch id
    assert text.splitlines() == [
        "Step 1/2 (decomposition): Initial decomposition: Why? (ID: s2)",
        "Step 2/2 (conclusion): Final synthesis: Why? (ID: s3)",
    ]


async def test_synthesize_and_validate_text(engine: ReasoningEngine):
    """Test synthesis and validation responses."""
    await server._create_reasoning_step(engine, "hypothesis", "h")
    await server._create_reasoning_step(engine, "inference", "i")

    synthesis = await server._synthesize(engine, ["s1", "s2"])
    assert synthesis == (
        "Synthesized result (ID: s3): Combined analysis from steps s1, s2 "
        "from perspective: general"
    )

    validation = await server._validate(engine, "s3")
    assert validation == (
        "Validation result (ID: s4): Evaluated step s3 against criteria: none specified"
    )


async def test_sequential_then_branch_listing(engine: ReasoningEngine):
    """Test continuing a branch and listing it."""
    first = await server._sequential_reasoning(engine, "Start", initial_steps=1, branch_id="b1")
    await server._sequential_reasoning(engine, "More", initial_steps=2, branch_id="b1")

    assert first == ["Branch b1", "Step 1/1 (hypothesis): Start (ID: s1)"]
    listing = (await server._get_branch_steps(engine, "b1")).splitlines()
    assert len(listing) == 3
    assert listing[0] == "Step 1/1 (hypothesis): Start (ID: s1)"


async def test_sequential_tool_returns_one_item_per_step(
    engine: ReasoningEngine, store: NexusGraphStore, tmp_path
):
    """Test the registered tool sends each created step as its own content item."""
    mcp = create_server(engine, store, Settings(data_dir=tmp_path))

    result = await mcp.call_tool("sequential_reasoning", {"prompt": "p", "initialSteps": 3})
    content = result[0] if isinstance(result, tuple) else result

    texts = [item.text for item in content]
    assert texts[0].startswith("Branch ")
    steps = [text for text in texts if text.startswith("Step ")]
    assert len(steps) == 3
    assert steps[0].startswith("Step 1/3 (hypothesis): p")
    assert steps[-1].startswith("Step 3/3 (conclusion)")


async def test_errors_propagate(engine: ReasoningEngine, store: NexusGraphStore):
    """Test domain errors surface unchanged."""
    with pytest.raises(InvalidArgumentError):
        await server._analyze(engine, "   ")
    with pytest.raises(NotFoundError) as exc_info:
        await server._validate(engine, "missing")
    assert str(exc_info.value).startswith("[REASONING_STEP_NOT_FOUND]")
    with pytest.raises(InvalidArgumentError):
        await server._clear_nexus(store, False)


async def test_nexus_tools(store: NexusGraphStore):
    """Test the knowledge graph tools return JSON-ready data."""
    nodes = await server._create_entities(
        store,
        [
            {"name": "A", "nodeType": "concept", "insights": ["start"]},
            {"name": "B", "nodeType": "concept"},
        ],
    )
    links = await server._create_relations(store, [{"from": "A", "to": "B", "linkType": "to"}])

    assert [n["id"] for n in nodes] == ["A", "B"]
    assert isinstance(nodes[0]["metadata"]["created"], str)
    assert links[0]["id"] == "A-to-B"

    await server._add_observations(store, [{"entityName": "B", "contents": ["end"]}])
    assert [n["id"] for n in await server._search_nodes(store, "END")] == ["B"]

    path = await server._find_path(store, "A", "B", max_depth=5)
    assert [link["id"] for link in path] == ["A-to-B"]

    connections = await server._get_node_connections(store, "B")
    assert [link["id"] for link in connections["incoming"]] == ["A-to-B"]

    assert await server._delete_relations(store, [{"from": "A", "to": "B", "linkType": "to"}]) == (
        "Deleted 1 relations"
    )
    assert await server._delete_entities(store, ["A"]) == "Deleted 1 entities and 0 relations"
    assert await server._clear_nexus(store, True) == "Nexus cleared"
    assert await store.get_nodes() == []
