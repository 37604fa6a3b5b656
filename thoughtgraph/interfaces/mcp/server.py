"""
MCP Server - Exposes the reasoning engine and the nexus as agent tools.

Tool bodies live in module-level helpers that take their collaborators
explicitly; ``create_server`` only binds them to one engine and one store.
Errors raised by the domains propagate to the client as tool errors whose
text is ``[CODE] message``.
"""

import asyncio
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from thoughtgraph.adapters.jsonfile import JsonGraphRepository
from thoughtgraph.config import Settings, get_settings
from thoughtgraph.domains.nexus import NexusGraphStore
from thoughtgraph.domains.reasoning import ReasoningEngine

logger = logging.getLogger(__name__)

__all__ = ["create_server", "run_server"]

MCP_SERVER_INSTRUCTIONS = """\
ThoughtGraph keeps two graphs for you.

Reasoning steps (in memory for this session):
- analyze / sequential_reasoning build linked chains on a branch.
- synthesize combines existing step ids; validate records an evaluation.
- Every response line ends with (ID: ...). Reuse those ids.

Nexus (persisted knowledge graph):
- create_entities, then create_relations between existing names.
- search_nodes, get_node_connections and find_path query it.
- clear_nexus deletes everything and needs confirmation=true.
"""


def _dump(models: Any) -> Any:
    if isinstance(models, list):
        return [model.model_dump(mode="json") for model in models]
    return models.model_dump(mode="json")


# --- Reasoning tools ---


async def _create_reasoning_step(
    engine: ReasoningEngine,
    type: str,
    content: str,
    dependencies: list[str] | None = None,
    evidence: list[str] | None = None,
    confidence: float | None = None,
) -> str:
    result = await engine.create_reasoning_step(
        type=type,
        content=content,
        dependencies=dependencies,
        evidence=evidence,
        confidence=confidence,
    )
    return result.to_text()


async def _analyze(
    engine: ReasoningEngine,
    prompt: str,
    depth: int | None = None,
    focus_areas: list[str] | None = None,
) -> str:
    result = await engine.analyze(prompt, depth=depth, focus_areas=focus_areas)
    return result.to_text()


async def _synthesize(
    engine: ReasoningEngine,
    step_ids: list[str],
    perspective: str | None = None,
) -> str:
    result = await engine.synthesize(step_ids, perspective=perspective)
    return result.to_text()


async def _validate(
    engine: ReasoningEngine,
    step_id: str,
    criteria: list[str] | None = None,
) -> str:
    result = await engine.validate(step_id, criteria=criteria)
    return result.to_text()


async def _sequential_reasoning(
    engine: ReasoningEngine,
    prompt: str,
    initial_steps: int | None = None,
    focus_areas: list[str] | None = None,
    branch_id: str | None = None,
    branch_from_step_id: str | None = None,
) -> list[str]:
    result = await engine.sequential_reasoning(
        prompt,
        initial_steps=initial_steps,
        focus_areas=focus_areas,
        branch_id=branch_id,
        branch_from_step_id=branch_from_step_id,
    )
    return [f"Branch {result.branch_id}", *result.lines()]


async def _get_branch_steps(engine: ReasoningEngine, branch_id: str) -> str:
    steps = await engine.get_branch_steps(branch_id)
    return "\n".join(step.describe() for step in steps)


# --- Nexus tools ---


async def _clear_nexus(store: NexusGraphStore, confirmation: bool) -> str:
    await store.clear(confirmation)
    return "Nexus cleared"


async def _create_entities(
    store: NexusGraphStore, entities: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    return _dump(await store.create_entities(entities))


async def _create_relations(
    store: NexusGraphStore, relations: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    return _dump(await store.create_relations(relations))


async def _add_observations(
    store: NexusGraphStore, observations: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    return _dump(await store.add_observations(observations))


async def _delete_entities(store: NexusGraphStore, entity_names: list[str]) -> str:
    removed = await store.delete_entities(entity_names)
    return f"Deleted {len(set(entity_names))} entities and {removed} relations"


async def _delete_relations(store: NexusGraphStore, relations: list[dict[str, Any]]) -> str:
    removed = await store.delete_relations(relations)
    return f"Deleted {removed} relations"


async def _search_nodes(store: NexusGraphStore, query: str) -> list[dict[str, Any]]:
    return _dump(await store.search_nodes(query))


async def _get_node_connections(store: NexusGraphStore, node_id: str) -> dict[str, Any]:
    return _dump(await store.get_node_connections(node_id))


async def _find_path(
    store: NexusGraphStore,
    start_id: str,
    end_id: str,
    max_depth: int,
) -> list[dict[str, Any]]:
    return _dump(await store.find_path(start_id, end_id, max_depth=max_depth))


# --- MCP Server Factory ---


def create_server(
    engine: ReasoningEngine | None = None,
    store: NexusGraphStore | None = None,
    settings: Settings | None = None,
) -> FastMCP:
    """Create the MCP server with all tools registered.

    Args:
        engine: Reasoning engine (a fresh one if None)
        store: Knowledge graph store (one on ``settings.graph_path`` if None;
            the caller loads it)
        settings: Application settings (cached settings if None)

    Returns:
        FastMCP server instance.
    """
    settings = settings or get_settings()
    if engine is None:
        engine = ReasoningEngine(
            default_depth=settings.default_analysis_depth,
            default_sequence_steps=settings.default_sequence_steps,
        )
    if store is None:
        store = NexusGraphStore(
            JsonGraphRepository(
                settings.graph_path,
                retry_attempts=settings.persist_retry_attempts,
            )
        )
    default_path_depth = settings.default_path_depth

    mcp = FastMCP(settings.mcp_server_name, instructions=MCP_SERVER_INSTRUCTIONS)

    # --- Reasoning ---

    @mcp.tool()
    async def create_reasoning_step(
        type: str,
        content: str,
        dependencies: list[str] | None = None,
        evidence: list[str] | None = None,
        confidence: float | None = None,
    ) -> str:
        """Record one reasoning step.

        Args:
            type: hypothesis, analysis, inference, conclusion, counterargument,
                synthesis, decomposition, validation, revision, branch,
                question or realization.
            content: Step text.
            dependencies: Ids of existing steps this one follows from.
            evidence: Supporting evidence.
            confidence: Number between 0 and 1.
        """
        return await _create_reasoning_step(
            engine, type, content, dependencies, evidence, confidence
        )

    @mcp.tool()
    async def analyze(
        prompt: str,
        depth: int | None = None,
        focus_areas: list[str] | None = None,
    ) -> str:
        """Break a prompt into a decomposition, analysis steps and a conclusion.

        Args:
            prompt: What to analyze.
            depth: Number of steps (at least 1, default 3).
            focus_areas: Topics recorded on every step.
        """
        return await _analyze(engine, prompt, depth, focus_areas)

    @mcp.tool()
    async def synthesize(step_ids: list[str], perspective: str | None = None) -> str:
        """Combine existing steps into one synthesis step.

        Args:
            step_ids: Ids of the steps to combine.
            perspective: Lens to apply (default "general").
        """
        return await _synthesize(engine, step_ids, perspective)

    @mcp.tool()
    async def validate(step_id: str, criteria: list[str] | None = None) -> str:
        """Record an evaluation of a step against criteria.

        Args:
            step_id: Step to evaluate.
            criteria: What it is evaluated against.
        """
        return await _validate(engine, step_id, criteria)

    @mcp.tool()
    async def sequential_reasoning(
        prompt: str,
        initialSteps: int | None = None,  # noqa: N803
        focusAreas: list[str] | None = None,  # noqa: N803
        branchId: str | None = None,  # noqa: N803
        branchFromStepId: str | None = None,  # noqa: N803
    ) -> list[str]:
        """Start a hypothesis-to-conclusion sequence, or extend an existing branch.

        Args:
            prompt: Opening hypothesis.
            initialSteps: Number of steps (at least 1, default 3).
            focusAreas: Topics recorded on every step.
            branchId: Branch to continue; a new one when omitted.
            branchFromStepId: Step this sequence forks from.
        """
        return await _sequential_reasoning(
            engine, prompt, initialSteps, focusAreas, branchId, branchFromStepId
        )

    @mcp.tool()
    async def get_branch_steps(branch_id: str) -> str:
        """List the steps of a branch in order.

        Args:
            branch_id: Branch id returned by sequential_reasoning or analyze.
        """
        return await _get_branch_steps(engine, branch_id)

    # --- Nexus ---

    @mcp.tool()
    async def clear_nexus(confirmation: bool) -> str:
        """Delete every entity and relation. Pass confirmation=true."""
        return await _clear_nexus(store, confirmation)

    @mcp.tool()
    async def create_entities(entities: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Create or replace entities.

        Args:
            entities: Items of {name, nodeType, insights?}.
        """
        return await _create_entities(store, entities)

    @mcp.tool()
    async def create_relations(relations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Create directed relations between existing entities.

        Args:
            relations: Items of {from, to, linkType}.
        """
        return await _create_relations(store, relations)

    @mcp.tool()
    async def add_observations(observations: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Append insights to existing entities.

        Args:
            observations: Items of {entityName, contents}.
        """
        return await _add_observations(store, observations)

    @mcp.tool()
    async def delete_entities(entityNames: list[str]) -> str:  # noqa: N803
        """Delete entities and their relations."""
        return await _delete_entities(store, entityNames)

    @mcp.tool()
    async def delete_relations(relations: list[dict[str, Any]]) -> str:
        """Delete relations given as {from, to, linkType}."""
        return await _delete_relations(store, relations)

    @mcp.tool()
    async def search_nodes(query: str) -> list[dict[str, Any]]:
        """Find entities whose name or insights contain the query (case-insensitive)."""
        return await _search_nodes(store, query)

    @mcp.tool()
    async def get_node_connections(node_id: str) -> dict[str, Any]:
        """Incoming and outgoing relations of an entity."""
        return await _get_node_connections(store, node_id)

    @mcp.tool()
    async def find_path(
        start_id: str,
        end_id: str,
        max_depth: int | None = None,
    ) -> list[dict[str, Any]]:
        """Shortest chain of relations from one entity to another.

        Args:
            start_id: Entity to start from.
            end_id: Entity to reach.
            max_depth: Maximum number of relations in the path (default 5).
        """
        depth = max_depth if max_depth is not None else default_path_depth
        return await _find_path(store, start_id, end_id, depth)

    return mcp


def run_server(settings: Settings | None = None, transport: str = "stdio") -> None:
    """Load the nexus and run the MCP server.

    Args:
        settings: Application settings (cached settings if None)
        transport: Transport type ('stdio' or 'sse').
    """
    settings = settings or get_settings()
    store = NexusGraphStore(
        JsonGraphRepository(
            settings.graph_path,
            retry_attempts=settings.persist_retry_attempts,
        )
    )
    nodes, links = asyncio.run(store.load())
    logger.info("MCP server %s ready: %d nodes, %d links", settings.mcp_server_name, nodes, links)

    mcp = create_server(store=store, settings=settings)
    mcp.run(transport=transport)
