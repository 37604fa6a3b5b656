"""
Nexus Models - Data types for the knowledge graph domain.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

GRAPH_FORMAT_VERSION = 1


class NodeMetadata(BaseModel):
    """Bookkeeping attached to a node."""

    created: datetime
    last_modified: datetime
    importance: float = Field(default=1.0, ge=0.0, le=1.0)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    source: str | None = None


class LinkMetadata(BaseModel):
    """Bookkeeping attached to a link."""

    created: datetime
    last_modified: datetime
    strength: float = Field(default=1.0, ge=0.0, le=1.0)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)


class NexusNode(BaseModel):
    """Entity in the knowledge graph. ``id`` is the caller-chosen name."""

    id: str
    type: str
    insights: list[str] = Field(default_factory=list)
    metadata: NodeMetadata | None = None


class NexusLink(BaseModel):
    """Directed, typed relation between two nodes."""

    id: str
    source: str
    target: str
    type: str
    metadata: LinkMetadata | None = None

    @staticmethod
    def derive_id(source: str, link_type: str, target: str) -> str:
        return f"{source}-{link_type}-{target}"


class GraphSnapshot(BaseModel):
    """Full persisted state: nodes keyed by id plus the ordered link list."""

    version: int = GRAPH_FORMAT_VERSION
    nodes: dict[str, NexusNode] = Field(default_factory=dict)
    links: list[NexusLink] = Field(default_factory=list)


class NodeConnections(BaseModel):
    """Links touching a node."""

    node_id: str
    incoming: list[NexusLink] = Field(default_factory=list)
    outgoing: list[NexusLink] = Field(default_factory=list)


class GraphStats(BaseModel):
    """Statistics about the knowledge graph."""

    total_nodes: int = 0
    total_links: int = 0
    nodes_by_type: dict[str, int] = Field(default_factory=dict)
    links_by_type: dict[str, int] = Field(default_factory=dict)


class ScrapedPage(BaseModel):
    """One page returned by a scraper."""

    url: str
    markdown: str


# --- Operation inputs (accept the tool payload spelling too) ---


class EntityInput(BaseModel):
    """Entity to create: ``{name, nodeType, insights?}``."""

    name: str = Field(..., min_length=1)
    node_type: str = Field(..., min_length=1, alias="nodeType")
    insights: list[str] = Field(default_factory=list)
    source: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class RelationInput(BaseModel):
    """Relation to create or delete: ``{from, to, linkType}``."""

    source: str = Field(..., min_length=1, alias="from")
    target: str = Field(..., min_length=1, alias="to")
    link_type: str = Field(..., min_length=1, alias="linkType")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @property
    def link_id(self) -> str:
        return NexusLink.derive_id(self.source, self.link_type, self.target)


class ObservationInput(BaseModel):
    """Insights to append to one entity: ``{entityName, contents}``."""

    entity_name: str = Field(..., min_length=1, alias="entityName")
    contents: list[str] = Field(..., min_length=1)

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NodeUpdate(BaseModel):
    """Mutable node fields. The id is not among them."""

    type: str | None = Field(default=None, min_length=1)
    insights: list[str] | None = None
    importance: float | None = Field(default=None, ge=0.0, le=1.0)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    source: str | None = None

    model_config = ConfigDict(extra="forbid")
