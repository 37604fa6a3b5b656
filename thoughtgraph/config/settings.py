"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    data_dir: Path = Path("data")
    graph_file: str = "nexus.json"

    # Logging
    log_level: str = "INFO"

    # Reasoning defaults
    default_analysis_depth: int = 3
    default_sequence_steps: int = 3

    # Nexus
    default_path_depth: int = 5
    persist_retry_attempts: int = 3

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_debug: bool = False

    # MCP
    mcp_server_name: str = "thoughtgraph"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def graph_path(self) -> Path:
        """Location of the persisted knowledge graph."""
        return self.data_dir / self.graph_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
