"""
Nexus Routes - Knowledge graph entities, relations and traversal.

Node and link ids are caller-chosen and may contain slashes (scraped URLs),
so id path parameters use the ``path`` converter and sit at the end of the
route.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field

from thoughtgraph.config import get_settings
from thoughtgraph.domains.nexus import (
    GraphStats,
    NexusGraphStore,
    NexusLink,
    NexusNode,
    NodeConnections,
)
from thoughtgraph.interfaces.api.deps import get_nexus_store

router = APIRouter()


class EntitiesRequest(BaseModel):
    """Entities to upsert: ``[{name, nodeType, insights?}]``."""

    entities: list[dict[str, Any]]


class RelationsRequest(BaseModel):
    """Relations to create or delete: ``[{from, to, linkType}]``."""

    relations: list[dict[str, Any]]


class ObservationsRequest(BaseModel):
    """Insights to append: ``[{entityName, contents}]``."""

    observations: list[dict[str, Any]]


class DeleteEntitiesRequest(BaseModel):
    """Names of entities to delete."""

    names: list[str]


class InsightRequest(BaseModel):
    """Single insight to append."""

    insight: str


class ClearRequest(BaseModel):
    """Clear confirmation."""

    confirmation: bool = False


class DeleteResponse(BaseModel):
    """Counts of what a delete removed."""

    deleted: int
    links_removed: int = 0


class PathResponse(BaseModel):
    """Links from start to end; empty when no path exists."""

    start_id: str
    end_id: str
    links: list[NexusLink]
    found: bool = Field(description="True when a non-empty path was found")


@router.get("/nodes", response_model=list[NexusNode])
async def get_nodes(store: NexusGraphStore = Depends(get_nexus_store)):
    """List all nodes in insertion order."""
    return await store.get_nodes()


@router.post("/entities", response_model=list[NexusNode], status_code=201)
async def create_entities(
    request: EntitiesRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Create or replace entities by name."""
    return await store.create_entities(request.entities)


@router.post("/entities/delete", response_model=DeleteResponse)
async def delete_entities(
    request: DeleteEntitiesRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Delete entities and every link touching them."""
    removed = await store.delete_entities(request.names)
    return DeleteResponse(deleted=len(set(request.names)), links_removed=removed)


@router.post("/relations", response_model=list[NexusLink], status_code=201)
async def create_relations(
    request: RelationsRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Create typed links between existing entities."""
    return await store.create_relations(request.relations)


@router.post("/relations/delete", response_model=DeleteResponse)
async def delete_relations(
    request: RelationsRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Delete links matching source, target and type."""
    removed = await store.delete_relations(request.relations)
    return DeleteResponse(deleted=removed)


@router.post("/observations", response_model=list[NexusNode])
async def add_observations(
    request: ObservationsRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Append insights to existing entities."""
    return await store.add_observations(request.observations)


@router.get("/links", response_model=list[NexusLink])
async def get_links(store: NexusGraphStore = Depends(get_nexus_store)):
    """List all links in stored order."""
    return await store.get_links()


@router.delete("/links/{link_id:path}", response_model=DeleteResponse)
async def delete_link(
    link_id: str,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Delete one link by id."""
    await store.delete_link(link_id)
    return DeleteResponse(deleted=1)


@router.get("/search", response_model=list[NexusNode])
async def search_nodes(
    q: str = Query(..., description="Substring matched against ids and insights"),
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Case-insensitive search over node ids and insights."""
    return await store.search_nodes(q)


@router.get("/path", response_model=PathResponse)
async def find_path(
    start: str = Query(..., description="Start node id"),
    end: str = Query(..., description="End node id"),
    max_depth: int | None = Query(default=None, description="Maximum links in the path"),
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Shortest directed path between two nodes."""
    depth = max_depth if max_depth is not None else get_settings().default_path_depth
    links = await store.find_path(start, end, max_depth=depth)
    return PathResponse(start_id=start, end_id=end, links=links, found=bool(links))


@router.get("/stats", response_model=GraphStats)
async def stats(store: NexusGraphStore = Depends(get_nexus_store)):
    """Node and link counts by type."""
    return await store.stats()


@router.post("/clear")
async def clear_nexus(
    request: ClearRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
) -> dict[str, str]:
    """Delete every node and link. Requires ``confirmation: true``."""
    await store.clear(request.confirmation)
    return {"status": "cleared"}


@router.get("/connections/{node_id:path}", response_model=NodeConnections)
async def get_node_connections(
    node_id: str,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Incoming and outgoing links of a node."""
    return await store.get_node_connections(node_id)


@router.post("/nodes/{node_id:path}/insights", response_model=NexusNode)
async def add_insight(
    node_id: str,
    request: InsightRequest,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Append one insight to a node."""
    return await store.add_insight(node_id, request.insight)


@router.get("/nodes/{node_id:path}", response_model=NexusNode)
async def get_node(
    node_id: str,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Get one node by id."""
    return await store.get_node(node_id)


@router.patch("/nodes/{node_id:path}", response_model=NexusNode)
async def update_node(
    node_id: str,
    updates: dict[str, Any] = Body(...),
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Change a node's type, insights or metadata. The id cannot change."""
    return await store.update_node(node_id, updates)


@router.delete("/nodes/{node_id:path}", response_model=DeleteResponse)
async def delete_node(
    node_id: str,
    store: NexusGraphStore = Depends(get_nexus_store),
):
    """Delete a node and every link touching it."""
    removed = await store.delete_node(node_id)
    return DeleteResponse(deleted=1, links_removed=removed)
