"""Tests for JSON Graph Repository."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from thoughtgraph.config.errors import ErrorCode, StorageError
from thoughtgraph.domains.nexus.models import (
    LinkMetadata,
    NexusLink,
    NexusNode,
    NodeMetadata,
)

from . import repository as repository_module
from .repository import JsonGraphRepository

STAMP = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


@pytest.fixture
def repo(tmp_path: Path) -> JsonGraphRepository:
    """Create a repository in a temporary directory."""
    return JsonGraphRepository(tmp_path / "nexus.json", retry_attempts=2, retry_wait=0)


def _sample() -> tuple[dict[str, NexusNode], list[NexusLink]]:
    meta = NodeMetadata(created=STAMP, last_modified=STAMP, importance=0.5, source="test")
    nodes = {
        "api": NexusNode(id="api", type="service", insights=["REST", "ünïcode"], metadata=meta),
        "db": NexusNode(id="db", type="store"),
    }
    links = [
        NexusLink(
            id="api-reads-db",
            source="api",
            target="db",
            type="reads",
            metadata=LinkMetadata(created=STAMP, last_modified=STAMP, strength=0.8),
        )
    ]
    return nodes, links


async def test_load_missing_file_is_empty(repo: JsonGraphRepository):
    """Test a fresh location loads as an empty graph."""
    snapshot = await repo.load()

    assert snapshot.nodes == {}
    assert snapshot.links == []


async def test_save_and_load(repo: JsonGraphRepository):
    """Test stored nodes and links come back equal."""
    nodes, links = _sample()

    await repo.save(nodes, links)
    snapshot = await repo.load()

    assert snapshot.nodes == nodes
    assert snapshot.links == links
    assert snapshot.version == 1


async def test_save_leaves_no_temp_files(repo: JsonGraphRepository, tmp_path: Path):
    """Test the atomic write cleans up after itself."""
    nodes, links = _sample()

    await repo.save(nodes, links)
    await repo.save({}, [])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["nexus.json"]
    assert json.loads((tmp_path / "nexus.json").read_text())["nodes"] == {}


async def test_save_creates_parent_directory(tmp_path: Path):
    """Test saving into a directory that does not exist yet."""
    repo = JsonGraphRepository(tmp_path / "nested" / "data" / "nexus.json")

    await repo.save({}, [])

    assert (tmp_path / "nested" / "data" / "nexus.json").exists()


async def test_load_legacy_pair(repo: JsonGraphRepository, tmp_path: Path):
    """Test the older nodes.json / links.json layout is still readable."""
    (tmp_path / "nodes.json").write_text(
        json.dumps({"A": {"id": "A", "type": "concept", "insights": ["first"]}})
    )
    (tmp_path / "links.json").write_text(
        json.dumps([{"id": "A-self-A", "source": "A", "target": "A", "type": "self"}])
    )

    snapshot = await repo.load()

    assert snapshot.nodes["A"].insights == ["first"]
    assert snapshot.nodes["A"].metadata is None
    assert [link.id for link in snapshot.links] == ["A-self-A"]


async def test_document_wins_over_legacy_pair(repo: JsonGraphRepository, tmp_path: Path):
    """Test the single document is preferred once it exists."""
    (tmp_path / "nodes.json").write_text(json.dumps({"old": {"id": "old", "type": "x"}}))
    (tmp_path / "links.json").write_text("[]")
    nodes, links = _sample()

    await repo.save(nodes, links)
    snapshot = await repo.load()

    assert set(snapshot.nodes) == {"api", "db"}


async def test_corrupt_file_raises(repo: JsonGraphRepository):
    """Test an unreadable document surfaces a read failure."""
    repo.path.write_text("{not json")

    with pytest.raises(StorageError) as exc_info:
        await repo.load()

    assert exc_info.value.code == ErrorCode.STORAGE_READ_FAILED


async def test_write_failure_after_retries(
    repo: JsonGraphRepository, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
):
    """Test a persistent OSError is retried, then reported as StorageError."""
    calls = []

    def failing_replace(src, dst):
        calls.append(src)
        raise OSError("read-only file system")

    monkeypatch.setattr(repository_module.os, "replace", failing_replace)

    with pytest.raises(StorageError) as exc_info:
        await repo.save({}, [])

    assert exc_info.value.code == ErrorCode.STORAGE_WRITE_FAILED
    assert len(calls) == 2
    assert list(tmp_path.iterdir()) == []


async def test_transient_write_failure_recovers(
    repo: JsonGraphRepository, monkeypatch: pytest.MonkeyPatch
):
    """Test one failed attempt followed by a success."""
    real_replace = repository_module.os.replace
    attempts = []

    def flaky_replace(src, dst):
        attempts.append(src)
        if len(attempts) == 1:
            raise OSError("busy")
        real_replace(src, dst)

    monkeypatch.setattr(repository_module.os, "replace", flaky_replace)
    nodes, links = _sample()

    await repo.save(nodes, links)

    assert len(attempts) == 2
    assert (await repo.load()).nodes == nodes
