"""
JSON Graph Repository - Durable storage for the knowledge graph.

Features:
- Single JSON document holding nodes and links together
- Atomic replace (temp file in the same directory, fsync, rename)
- Retries transient write failures
- Reads the older nodes.json / links.json pair when no document exists yet
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from thoughtgraph.config.errors import ErrorCode, StorageError
from thoughtgraph.domains.nexus.models import GraphSnapshot, NexusLink, NexusNode

logger = logging.getLogger(__name__)

__all__ = ["JsonGraphRepository"]

LEGACY_NODES_FILE = "nodes.json"
LEGACY_LINKS_FILE = "links.json"


class JsonGraphRepository:
    """
    Knowledge graph persisted as one JSON file.

    Example:
        >>> repo = JsonGraphRepository("data/nexus.json")
        >>> snapshot = await repo.load()
        >>> await repo.save(snapshot.nodes, snapshot.links)
    """

    def __init__(
        self,
        path: str | Path,
        retry_attempts: int = 3,
        retry_wait: float = 0.1,
    ) -> None:
        """
        Initialize repository.

        Args:
            path: Path to the graph JSON file
            retry_attempts: Write attempts before giving up
            retry_wait: Base of the exponential wait between attempts, in seconds
        """
        self.path = Path(path)
        self._retry_attempts = max(1, retry_attempts)
        self._retry_wait = retry_wait

    async def load(self) -> GraphSnapshot:
        """Read the graph, falling back to the legacy pair, then to empty."""
        if self.path.exists():
            return await asyncio.to_thread(self._read_document)

        legacy_dir = self.path.parent
        if (legacy_dir / LEGACY_NODES_FILE).exists() and (legacy_dir / LEGACY_LINKS_FILE).exists():
            logger.warning(
                "Reading legacy %s/%s from %s; next save writes %s",
                LEGACY_NODES_FILE,
                LEGACY_LINKS_FILE,
                legacy_dir,
                self.path.name,
            )
            return await asyncio.to_thread(self._read_legacy, legacy_dir)

        logger.info("No graph stored at %s, starting empty", self.path)
        return GraphSnapshot()

    def _read_document(self) -> GraphSnapshot:
        try:
            return GraphSnapshot.model_validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            raise StorageError(
                f"Failed to read graph from {self.path}",
                {"path": str(self.path), "error": str(e)},
                code=ErrorCode.STORAGE_READ_FAILED,
            ) from e

    def _read_legacy(self, legacy_dir: Path) -> GraphSnapshot:
        try:
            with open(legacy_dir / LEGACY_NODES_FILE, encoding="utf-8") as f:
                nodes = json.load(f)
            with open(legacy_dir / LEGACY_LINKS_FILE, encoding="utf-8") as f:
                links = json.load(f)
            return GraphSnapshot.model_validate({"nodes": nodes, "links": links})
        except (OSError, ValueError) as e:
            raise StorageError(
                f"Failed to read legacy graph from {legacy_dir}",
                {"path": str(legacy_dir), "error": str(e)},
                code=ErrorCode.STORAGE_READ_FAILED,
            ) from e

    async def save(self, nodes: dict[str, NexusNode], links: list[NexusLink]) -> None:
        """
        Replace the stored graph.

        Raises:
            StorageError: The write still failed after all retries
        """
        payload = GraphSnapshot(nodes=nodes, links=links).model_dump_json(indent=2)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(OSError),
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=self._retry_wait, max=2),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await asyncio.to_thread(self._write_atomic, payload)
        except OSError as e:
            raise StorageError(
                f"Failed to write graph to {self.path}",
                {"path": str(self.path), "error": str(e)},
            ) from e

        logger.debug("Saved graph: %d nodes, %d links -> %s", len(nodes), len(links), self.path)

    def _write_atomic(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
