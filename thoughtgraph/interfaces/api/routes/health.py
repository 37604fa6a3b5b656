"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from thoughtgraph import __version__
from thoughtgraph.domains.nexus import NexusGraphStore
from thoughtgraph.domains.reasoning import ReasoningEngine
from thoughtgraph.interfaces.api.deps import get_nexus_store, get_reasoning_engine

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "thoughtgraph"}


@router.get("/api")
async def api_info(
    engine: ReasoningEngine = Depends(get_reasoning_engine),
    store: NexusGraphStore = Depends(get_nexus_store),
) -> dict[str, Any]:
    """API info endpoint."""
    stats = await store.stats()
    return {
        "name": "ThoughtGraph API",
        "version": __version__,
        "description": "Reasoning step graph and persistent knowledge graph",
        "docs": "/docs",
        "reasoning_steps": engine.step_count,
        "nexus_nodes": stats.total_nodes,
        "nexus_links": stats.total_links,
    }
