"""
Nexus Domain - Persistent knowledge graph of entities and relations.

This domain handles:
- Entity and relation management with write-through persistence
- Insight search
- Connection and shortest-path queries
"""

from .contracts import GraphRepository, PageScraper
from .graph_store import NexusGraphStore
from .models import (
    EntityInput,
    GraphSnapshot,
    GraphStats,
    NexusLink,
    NexusNode,
    NodeConnections,
    NodeUpdate,
    ObservationInput,
    RelationInput,
    ScrapedPage,
)

__all__ = [
    # Contracts
    "GraphRepository",
    "PageScraper",
    # Models
    "NexusNode",
    "NexusLink",
    "GraphSnapshot",
    "GraphStats",
    "NodeConnections",
    "EntityInput",
    "RelationInput",
    "ObservationInput",
    "NodeUpdate",
    "ScrapedPage",
    # Implementations
    "NexusGraphStore",
]
