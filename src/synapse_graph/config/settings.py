"""Process-level settings read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from synapse_graph.core.exceptions import ConfigurationError

EMBEDDING_PROVIDERS: frozenset[str] = frozenset({"local", "mock", "disabled"})

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean", {name: raw})


def _parse_number(name: str, raw: str, kind: type) -> int | float:
    try:
        return kind(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a {kind.__name__}", {name: raw}) from exc


@dataclass(frozen=True)
class Settings:
    """Connection and provider settings shared by the runtime components."""

    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "password"

    embedding_provider: str = "local"
    embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dimensions: int = 384
    note_vector_index: str = "note_embeddings"

    auto_reinforcement_enabled: bool = True
    analytics_debounce_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.embedding_provider not in EMBEDDING_PROVIDERS:
            raise ConfigurationError(
                f"Unknown embedding provider {self.embedding_provider!r}",
                {"allowed": sorted(EMBEDDING_PROVIDERS)},
            )
        if self.embedding_dimensions < 1:
            raise ConfigurationError(
                "EMBEDDING_DIMENSIONS must be at least 1",
                {"embedding_dimensions": self.embedding_dimensions},
            )
        if self.analytics_debounce_seconds < 0:
            raise ConfigurationError(
                "ANALYTICS_DEBOUNCE_SECONDS must not be negative",
                {"analytics_debounce_seconds": self.analytics_debounce_seconds},
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from *environ* (``os.environ`` by default).

        Unset variables keep their defaults.

        Raises:
            ConfigurationError: If a variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, default: str) -> str:
            value = env.get(name)
            return default if value is None or value == "" else value

        return cls(
            neo4j_uri=get("NEO4J_URI", defaults.neo4j_uri),
            neo4j_user=get("NEO4J_USER", defaults.neo4j_user),
            neo4j_password=get("NEO4J_PASSWORD", defaults.neo4j_password),
            embedding_provider=get("EMBEDDING_PROVIDER", defaults.embedding_provider)
            .strip()
            .lower(),
            embedding_model=get("EMBEDDING_MODEL", defaults.embedding_model),
            embedding_dimensions=int(
                _parse_number(
                    "EMBEDDING_DIMENSIONS",
                    get("EMBEDDING_DIMENSIONS", str(defaults.embedding_dimensions)),
                    int,
                )
            ),
            note_vector_index=get("NOTE_VECTOR_INDEX", defaults.note_vector_index),
            auto_reinforcement_enabled=_parse_bool(
                "AUTO_REINFORCEMENT_ENABLED",
                get("AUTO_REINFORCEMENT_ENABLED", "true"),
            ),
            analytics_debounce_seconds=float(
                _parse_number(
                    "ANALYTICS_DEBOUNCE_SECONDS",
                    get(
                        "ANALYTICS_DEBOUNCE_SECONDS",
                        str(defaults.analytics_debounce_seconds),
                    ),
                    float,
                )
            ),
        )
