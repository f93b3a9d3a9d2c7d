"""Centralized application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROFILEGRAPH_", env_file=".env", extra="ignore"
    )

    # Data storage path
    data_path: Path = Path("data")

    # Logging
    log_level: str = "INFO"

    # Fact store diagnostics
    fact_query_limit: int = 1000

    # Graph traversal defaults
    graph_max_depth: int = 3
    graph_max_nodes_per_degree: int = 20
    direct_contact_strength: int = 3

    # Contact fields that make a degree-1 contact graph-worthy (any one suffices)
    graph_richness_fields: list[str] = ["profile_url", "people_also_viewed", "followers"]

    # Edge inference thresholds and weights
    min_shared_skills: int = 3
    url_match_strength: int = 3
    name_match_strength: int = 2
    same_employer_strength: int = 2


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
