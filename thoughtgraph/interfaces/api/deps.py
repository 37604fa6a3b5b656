"""
API Dependencies - Dependency injection for FastAPI routes.

Provides the shared reasoning engine and knowledge graph store.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from thoughtgraph.adapters.jsonfile import JsonGraphRepository
from thoughtgraph.config import get_settings
from thoughtgraph.domains.nexus import NexusGraphStore
from thoughtgraph.domains.reasoning import ReasoningEngine

logger = logging.getLogger(__name__)


@lru_cache
def get_reasoning_engine() -> ReasoningEngine:
    """Get reasoning engine singleton."""
    settings = get_settings()
    return ReasoningEngine(
        default_depth=settings.default_analysis_depth,
        default_sequence_steps=settings.default_sequence_steps,
    )


@lru_cache
def get_nexus_store() -> NexusGraphStore:
    """Get knowledge graph store singleton."""
    settings = get_settings()
    repository = JsonGraphRepository(
        settings.graph_path,
        retry_attempts=settings.persist_retry_attempts,
    )
    return NexusGraphStore(repository)


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    nodes, links = await get_nexus_store().load()
    logger.info("  Nexus loaded: %d nodes, %d links", nodes, links)


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    engine = get_reasoning_engine()
    logger.info("  Discarding %d in-memory reasoning steps", engine.step_count)
