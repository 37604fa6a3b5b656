"""
Nexus Contracts - Interfaces for the knowledge graph domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import GraphSnapshot, NexusLink, NexusNode, ScrapedPage


@runtime_checkable
class GraphRepository(Protocol):
    """Contract for durable knowledge graph storage."""

    async def load(self) -> GraphSnapshot:
        """Read the stored graph; empty if nothing was stored yet."""
        ...

    async def save(self, nodes: dict[str, NexusNode], links: list[NexusLink]) -> None:
        """Replace the stored graph. Raises StorageError on failure."""
        ...


@runtime_checkable
class PageScraper(Protocol):
    """Contract for turning web pages into markdown."""

    async def scrape_one(self, url: str) -> str:
        """Markdown for a single page."""
        ...

    async def scrape_site(self, base_url: str) -> list[ScrapedPage]:
        """Breadth-first same-domain crawl, each URL visited once."""
        ...
