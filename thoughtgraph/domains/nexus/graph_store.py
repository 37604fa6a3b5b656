"""
Nexus Graph Store - Persistent knowledge graph of named entities and typed links.

Nodes and links are the source of truth; a NetworkX DiGraph mirrors them for
traversal. Every mutation is written through to the repository before the
call returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

import networkx as nx
from pydantic import BaseModel, ValidationError

from thoughtgraph.config.errors import (
    ConflictError,
    ErrorCode,
    InvalidArgumentError,
    NotFoundError,
)

from .contracts import GraphRepository, PageScraper
from .models import (
    EntityInput,
    GraphStats,
    LinkMetadata,
    NexusLink,
    NexusNode,
    NodeConnections,
    NodeMetadata,
    NodeUpdate,
    ObservationInput,
    RelationInput,
)

logger = logging.getLogger(__name__)

__all__ = ["NexusGraphStore"]

InputT = TypeVar("InputT", bound=BaseModel)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_items(model: type[InputT], items: Iterable[InputT | Mapping[str, Any]]) -> list[InputT]:
    """Validate a batch of inputs; the whole batch fails on the first bad item."""
    try:
        return [item if isinstance(item, model) else model.model_validate(item) for item in items]
    except ValidationError as e:
        raise InvalidArgumentError.from_validation_error(e) from e


def _node_not_found(node_id: str) -> NotFoundError:
    return NotFoundError(
        ErrorCode.NEXUS_NODE_NOT_FOUND,
        f"Node {node_id} not found",
        {"node_id": node_id},
    )


class NexusGraphStore:
    """
    Knowledge graph store with write-through persistence.

    Example:
        >>> store = NexusGraphStore(JsonGraphRepository("data/nexus.json"))
        >>> await store.load()
        >>> await store.create_entities([{"name": "FastAPI", "nodeType": "library"}])
        >>> await store.create_relations([{"from": "FastAPI", "to": "Starlette", "linkType": "uses"}])
        >>> path = await store.find_path("FastAPI", "ASGI")
    """

    def __init__(
        self,
        repository: GraphRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize graph store.

        Args:
            repository: Durable storage. None keeps the graph in memory only.
            clock: Returns the current UTC time for metadata stamps
        """
        self._repository = repository
        self._clock = clock or _utc_now
        self._nodes: dict[str, NexusNode] = {}
        self._links: list[NexusLink] = []
        self._graph = nx.DiGraph()
        self._lock = asyncio.Lock()

    # --- Persistence ---

    async def load(self) -> tuple[int, int]:
        """
        Replace in-memory state with the repository contents.

        Returns:
            Tuple of (node_count, link_count)
        """
        if self._repository is None:
            return len(self._nodes), len(self._links)

        async with self._lock:
            snapshot = await self._repository.load()
            self._nodes = dict(snapshot.nodes)
            self._links = list(snapshot.links)
            self._reindex()

        logger.info("Loaded nexus: %d nodes, %d links", len(self._nodes), len(self._links))
        return len(self._nodes), len(self._links)

    async def _persist(self) -> None:
        if self._repository is None:
            return
        await self._repository.save(dict(self._nodes), list(self._links))

    def _reindex(self) -> None:
        """Rebuild the traversal graph. The first link per node pair is the one walked."""
        graph = nx.DiGraph()
        graph.add_nodes_from(self._nodes)
        for link in self._links:
            if not graph.has_edge(link.source, link.target):
                graph.add_edge(link.source, link.target, link=link)
        self._graph = graph

    def _require_node(self, node_id: str) -> NexusNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise _node_not_found(node_id)
        return node

    # --- Mutators ---

    async def clear(self, confirmation: bool) -> None:
        """Delete every node and link. ``confirmation`` must be True."""
        if confirmation is not True:
            raise InvalidArgumentError(
                "Confirmation required to clear the nexus",
                code=ErrorCode.NEXUS_CONFIRMATION_REQUIRED,
            )

        async with self._lock:
            self._nodes.clear()
            self._links = []
            self._reindex()
            await self._persist()

        logger.info("Cleared nexus")

    async def create_entities(
        self,
        entities: Iterable[EntityInput | Mapping[str, Any]],
    ) -> list[NexusNode]:
        """
        Upsert nodes by name. Insights are replaced, not merged.

        Returns:
            The stored nodes, in input order
        """
        inputs = _parse_items(EntityInput, entities)
        now = self._clock()

        async with self._lock:
            created: list[NexusNode] = []
            for entity in inputs:
                previous = self._nodes.get(entity.name)
                node = NexusNode(
                    id=entity.name,
                    type=entity.node_type,
                    insights=list(entity.insights),
                    metadata=NodeMetadata(
                        created=(
                            previous.metadata.created
                            if previous is not None and previous.metadata is not None
                            else now
                        ),
                        last_modified=now,
                        source=entity.source,
                    ),
                )
                self._nodes[node.id] = node
                created.append(node)
            self._reindex()
            await self._persist()

        logger.info("Upserted %d entities", len(created))
        return created

    async def create_relations(
        self,
        relations: Iterable[RelationInput | Mapping[str, Any]],
    ) -> list[NexusLink]:
        """
        Add typed links. The batch is checked in full before any link is added.

        Raises:
            NotFoundError: An endpoint node does not exist
            ConflictError: A link with the same source, type and target exists
        """
        inputs = _parse_items(RelationInput, relations)
        now = self._clock()

        async with self._lock:
            existing = {link.id for link in self._links}
            for relation in inputs:
                for endpoint in (relation.source, relation.target):
                    if endpoint not in self._nodes:
                        raise NotFoundError(
                            ErrorCode.NEXUS_NODE_NOT_FOUND,
                            f"Source or target node not found: {endpoint}",
                            {"node_id": endpoint, "link_id": relation.link_id},
                        )
                if relation.link_id in existing:
                    raise ConflictError(
                        f"Link already exists: {relation.link_id}",
                        {"link_id": relation.link_id},
                        code=ErrorCode.NEXUS_DUPLICATE_LINK,
                    )
                existing.add(relation.link_id)

            added = [
                NexusLink(
                    id=relation.link_id,
                    source=relation.source,
                    target=relation.target,
                    type=relation.link_type,
                    metadata=LinkMetadata(created=now, last_modified=now),
                )
                for relation in inputs
            ]
            self._links.extend(added)
            self._reindex()
            await self._persist()

        logger.info("Created %d relations", len(added))
        return added

    async def add_insight(self, node_id: str, insight: str) -> NexusNode:
        """Append one insight to a node."""
        return (await self.add_observations([{"entityName": node_id, "contents": [insight]}]))[0]

    async def add_observations(
        self,
        observations: Iterable[ObservationInput | Mapping[str, Any]],
    ) -> list[NexusNode]:
        """Append insights to several nodes. All nodes must exist."""
        inputs = _parse_items(ObservationInput, observations)
        now = self._clock()

        async with self._lock:
            for observation in inputs:
                self._require_node(observation.entity_name)

            updated: list[NexusNode] = []
            for observation in inputs:
                node = self._nodes[observation.entity_name]
                node = node.model_copy(
                    update={
                        "insights": [*node.insights, *observation.contents],
                        "metadata": self._touched(node, now),
                    }
                )
                self._nodes[node.id] = node
                updated.append(node)
            await self._persist()

        logger.debug("Added observations to %d nodes", len(updated))
        return updated

    async def update_node(
        self,
        node_id: str,
        updates: NodeUpdate | Mapping[str, Any],
    ) -> NexusNode:
        """
        Change a node's type, insights or metadata. The id never changes.

        Raises:
            InvalidArgumentError: Unknown field (including ``id``) or bad value
            NotFoundError: The node does not exist
        """
        (changes,) = _parse_items(NodeUpdate, [updates])
        now = self._clock()

        async with self._lock:
            node = self._require_node(node_id)
            fields = {
                key: value
                for key, value in changes.model_dump(exclude_unset=True).items()
                if value is not None
            }

            metadata = self._touched(node, now)
            meta_changes = {
                key: fields.pop(key)
                for key in ("importance", "confidence", "source")
                if key in fields
            }
            try:
                metadata = NodeMetadata.model_validate({**metadata.model_dump(), **meta_changes})
            except ValidationError as e:
                raise InvalidArgumentError.from_validation_error(e) from e

            node = node.model_copy(update={**fields, "metadata": metadata})
            self._nodes[node_id] = node
            await self._persist()

        logger.debug("Updated node %s", node_id)
        return node

    def _touched(self, node: NexusNode, now: datetime) -> NodeMetadata:
        if node.metadata is None:
            return NodeMetadata(created=now, last_modified=now)
        return node.metadata.model_copy(update={"last_modified": now})

    async def delete_node(self, node_id: str) -> int:
        """
        Delete a node and every link touching it.

        Returns:
            Number of links removed with the node
        """
        return await self.delete_entities([node_id])

    async def delete_entities(self, names: Iterable[str]) -> int:
        """Delete several nodes (all must exist) and their links."""
        names = list(names)

        async with self._lock:
            for name in names:
                self._require_node(name)

            doomed = set(names)
            for name in doomed:
                del self._nodes[name]
            before = len(self._links)
            self._links = [
                link
                for link in self._links
                if link.source not in doomed and link.target not in doomed
            ]
            removed = before - len(self._links)
            self._reindex()
            await self._persist()

        logger.info("Deleted %d nodes and %d links", len(doomed), removed)
        return removed

    async def delete_link(self, link_id: str) -> None:
        """Delete one link by id."""
        async with self._lock:
            index = next((i for i, link in enumerate(self._links) if link.id == link_id), None)
            if index is None:
                raise NotFoundError(
                    ErrorCode.NEXUS_LINK_NOT_FOUND,
                    f"Link {link_id} not found",
                    {"link_id": link_id},
                )
            del self._links[index]
            self._reindex()
            await self._persist()

        logger.debug("Deleted link %s", link_id)

    async def delete_relations(
        self,
        relations: Iterable[RelationInput | Mapping[str, Any]],
    ) -> int:
        """Delete links matching ``{from, to, linkType}``. All must exist."""
        inputs = _parse_items(RelationInput, relations)
        wanted = [relation.link_id for relation in inputs]

        async with self._lock:
            present = {link.id for link in self._links}
            missing = [link_id for link_id in wanted if link_id not in present]
            if missing:
                raise NotFoundError(
                    ErrorCode.NEXUS_LINK_NOT_FOUND,
                    f"Link(s) not found: {', '.join(missing)}",
                    {"missing": missing},
                )
            doomed = set(wanted)
            self._links = [link for link in self._links if link.id not in doomed]
            self._reindex()
            await self._persist()

        logger.info("Deleted %d relations", len(doomed))
        return len(doomed)

    # --- Scraped content ---

    async def ingest_page(self, url: str, scraper: PageScraper) -> NexusNode:
        """Store one scraped page as a ``page`` node keyed by its URL."""
        markdown = await scraper.scrape_one(url)
        (node,) = await self.create_entities(
            [EntityInput(name=url, node_type="page", insights=[markdown], source=url)]
        )
        return node

    async def ingest_site(self, base_url: str, scraper: PageScraper) -> list[NexusNode]:
        """Store every page of a crawled site as ``documentation`` nodes."""
        pages = await scraper.scrape_site(base_url)
        return await self.create_entities(
            [
                EntityInput(
                    name=page.url,
                    node_type="documentation",
                    insights=[page.markdown],
                    source=base_url,
                )
                for page in pages
            ]
        )

    # --- Queries ---

    async def get_node(self, node_id: str) -> NexusNode:
        return self._require_node(node_id)

    async def get_nodes(self) -> list[NexusNode]:
        return list(self._nodes.values())

    async def get_links(self) -> list[NexusLink]:
        return list(self._links)

    async def search_nodes(self, query: str) -> list[NexusNode]:
        """Case-insensitive substring match on node id or any insight."""
        term = query.lower()
        return [
            node
            for node in self._nodes.values()
            if term in node.id.lower()
            or any(term in insight.lower() for insight in node.insights)
        ]

    async def get_node_connections(self, node_id: str) -> NodeConnections:
        """Incoming and outgoing links of a node."""
        self._require_node(node_id)
        return NodeConnections(
            node_id=node_id,
            incoming=[link for link in self._links if link.target == node_id],
            outgoing=[link for link in self._links if link.source == node_id],
        )

    async def find_path(
        self,
        start_id: str,
        end_id: str,
        max_depth: int = 5,
    ) -> list[NexusLink]:
        """
        Shortest directed path as a list of links.

        Breadth-first over outgoing links in stored order.

        Args:
            start_id: Start node id
            end_id: End node id
            max_depth: Maximum number of links in the path

        Returns:
            Links from start to end, or an empty list if no path of at most
            ``max_depth`` links exists (or start equals end)
        """
        if max_depth < 0:
            raise InvalidArgumentError(
                "max_depth must be at least 0",
                {"max_depth": max_depth},
            )
        for node_id in (start_id, end_id):
            self._require_node(node_id)

        paths = nx.single_source_shortest_path(self._graph, start_id, cutoff=max_depth)
        node_path = paths.get(end_id)
        if not node_path:
            return []

        return [
            self._graph.edges[source, target]["link"]
            for source, target in zip(node_path, node_path[1:])
        ]

    async def stats(self) -> GraphStats:
        """Get graph statistics."""
        return GraphStats(
            total_nodes=len(self._nodes),
            total_links=len(self._links),
            nodes_by_type=dict(Counter(node.type for node in self._nodes.values())),
            links_by_type=dict(Counter(link.type for link in self._links)),
        )
