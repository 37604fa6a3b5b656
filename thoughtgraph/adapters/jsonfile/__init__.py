"""JSON file adapter - Durable knowledge graph storage."""

from .repository import JsonGraphRepository

__all__ = ["JsonGraphRepository"]
