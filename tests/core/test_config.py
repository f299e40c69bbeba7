"""Tests for settings and the engine configuration dataclasses."""

from __future__ import annotations

import dataclasses

import pytest

from synapse_graph.config import EMBEDDING_PROVIDERS, Settings
from synapse_graph.core.analytics.models import AnalyticsConfig
from synapse_graph.core.exceptions import ConfigurationError
from synapse_graph.core.neurons.config import (
    AutoReinforcementConfig,
    SpreadingActivationConfig,
)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.neo4j_uri == "bolt://localhost:7687"
        assert settings.neo4j_user == "neo4j"
        assert settings.embedding_provider == "local"
        assert settings.embedding_model == "BAAI/bge-small-en-v1.5"
        assert settings.embedding_dimensions == 384
        assert settings.auto_reinforcement_enabled is True
        assert settings.analytics_debounce_seconds == 2.0

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            Settings().neo4j_uri = "bolt://elsewhere:7687"  # type: ignore[misc]

    def test_providers(self) -> None:
        assert EMBEDDING_PROVIDERS == {"local", "mock", "disabled"}

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            Settings(embedding_provider="openai")
        assert excinfo.value.details["allowed"] == ["disabled", "local", "mock"]

    def test_invalid_dimensions(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings(embedding_dimensions=0)

    def test_negative_debounce(self) -> None:
        with pytest.raises(ConfigurationError):
            Settings(analytics_debounce_seconds=-1.0)


class TestSettingsFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert Settings.from_env({}) == Settings()

    def test_reads_every_variable(self) -> None:
        settings = Settings.from_env(
            {
                "NEO4J_URI": "bolt://db:7687",
                "NEO4J_USER": "reader",
                "NEO4J_PASSWORD": "secret",
                "EMBEDDING_PROVIDER": " Mock ",
                "EMBEDDING_MODEL": "other/model",
                "EMBEDDING_DIMENSIONS": "64",
                "NOTE_VECTOR_INDEX": "vectors",
                "AUTO_REINFORCEMENT_ENABLED": "no",
                "ANALYTICS_DEBOUNCE_SECONDS": "0.5",
            }
        )
        assert settings == Settings(
            neo4j_uri="bolt://db:7687",
            neo4j_user="reader",
            neo4j_password="secret",
            embedding_provider="mock",
            embedding_model="other/model",
            embedding_dimensions=64,
            note_vector_index="vectors",
            auto_reinforcement_enabled=False,
            analytics_debounce_seconds=0.5,
        )

    def test_empty_string_falls_back(self) -> None:
        settings = Settings.from_env({"NEO4J_URI": "", "EMBEDDING_DIMENSIONS": ""})
        assert settings.neo4j_uri == "bolt://localhost:7687"
        assert settings.embedding_dimensions == 384

    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", "yes", "on"])
    def test_truthy_flags(self, raw: str) -> None:
        assert Settings.from_env({"AUTO_REINFORCEMENT_ENABLED": raw}).auto_reinforcement_enabled

    @pytest.mark.parametrize(
        "env",
        [
            {"AUTO_REINFORCEMENT_ENABLED": "maybe"},
            {"EMBEDDING_DIMENSIONS": "many"},
            {"EMBEDDING_DIMENSIONS": "3.5"},
            {"ANALYTICS_DEBOUNCE_SECONDS": "soon"},
            {"EMBEDDING_PROVIDER": "cloud"},
        ],
    )
    def test_invalid_values(self, env: dict[str, str]) -> None:
        with pytest.raises(ConfigurationError):
            Settings.from_env(env)


# ---------------------------------------------------------------------------
# Engine configs
# ---------------------------------------------------------------------------


class TestAnalyticsConfig:
    def test_defaults(self) -> None:
        config = AnalyticsConfig()
        assert config.pagerank_damping == 0.85
        assert config.louvain_resolution == 1.0
        assert config.god_function_percentile == 0.95

    @pytest.mark.parametrize(
        "overrides",
        [
            {"pagerank_damping": 1.0},
            {"pagerank_damping": 0.0},
            {"pagerank_tolerance": 0.0},
            {"pagerank_max_iterations": 0},
            {"louvain_resolution": -1.0},
            {"louvain_max_passes": 0},
            {"louvain_max_levels": 0},
            {"min_clustering_sample": -1},
            {"god_function_percentile": 1.5},
        ],
    )
    def test_rejects(self, overrides: dict) -> None:
        with pytest.raises(ConfigurationError):
            AnalyticsConfig(**overrides)


class TestSpreadingActivationConfig:
    def test_defaults(self) -> None:
        config = SpreadingActivationConfig()
        assert (config.initial_k, config.max_hops, config.max_results) == (20, 2, 10)
        assert config.decay_per_hop == 0.5
        assert config.min_activation == 0.1
        assert config.min_energy == 0.05
        assert config.bidirectional is False

    @pytest.mark.parametrize(
        "overrides",
        [
            {"initial_k": 0},
            {"max_hops": -1},
            {"max_results": 0},
            {"decay_per_hop": 1.5},
            {"min_activation": -0.1},
            {"min_energy": -0.1},
        ],
    )
    def test_rejects(self, overrides: dict) -> None:
        with pytest.raises(ConfigurationError):
            SpreadingActivationConfig(**overrides)


class TestAutoReinforcementConfig:
    def test_defaults(self) -> None:
        config = AutoReinforcementConfig()
        assert config.enabled is True
        assert config.search_energy_boost == 0.05
        assert config.search_synapse_boost == 0.03

    def test_negative_boost_reported(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            AutoReinforcementConfig(commit_energy_boost=-0.1)
        assert excinfo.value.details == {"commit_energy_boost": -0.1}

    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ConfigurationError):
            AutoReinforcementConfig(max_workers=0)
