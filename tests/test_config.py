"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from profilegraph.core.config import Settings, get_settings


class TestSettings:
    """Test Settings class."""

    def test_default_values(self) -> None:
        """Test that defaults are sensible."""
        settings = Settings()
        assert settings.data_path == Path("data")
        assert settings.graph_max_depth == 3
        assert settings.graph_max_nodes_per_degree == 20
        assert settings.direct_contact_strength == 3
        assert settings.min_shared_skills == 3
        assert settings.url_match_strength == 3
        assert settings.name_match_strength == 2
        assert settings.same_employer_strength == 2
        assert settings.graph_richness_fields == [
            "profile_url",
            "people_also_viewed",
            "followers",
        ]

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that env vars override defaults."""
        monkeypatch.setenv("PROFILEGRAPH_GRAPH_MAX_DEPTH", "5")
        monkeypatch.setenv("PROFILEGRAPH_MIN_SHARED_SKILLS", "4")
        monkeypatch.setenv("PROFILEGRAPH_GRAPH_RICHNESS_FIELDS", '["followers"]')

        # Clear lru_cache
        get_settings.cache_clear()

        settings = get_settings()
        assert settings.graph_max_depth == 5
        assert settings.min_shared_skills == 4
        assert settings.graph_richness_fields == ["followers"]

        # Restore cache for other tests
        get_settings.cache_clear()

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that PROFILEGRAPH_ prefix is required."""
        monkeypatch.setenv("GRAPH_MAX_DEPTH", "9")

        get_settings.cache_clear()

        settings = get_settings()
        assert settings.graph_max_depth == 3

        get_settings.cache_clear()

    def test_get_settings_is_cached(self) -> None:
        """Repeated calls return the same instance."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()
