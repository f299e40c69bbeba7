"""Wiring of stores, providers and engines into one runtime.

The analytics engine and the spreading-activation engine share the store
but are independent: neither calls the other.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from synapse_graph.config.settings import Settings
from synapse_graph.core.analytics.debouncer import AnalyticsDebouncer
from synapse_graph.core.analytics.engine import GraphAnalyticsEngine
from synapse_graph.core.analytics.models import AnalyticsConfig, ProjectAnalytics
from synapse_graph.core.embeddings.provider import (
    EmbeddingProvider,
    create_embedding_provider,
)
from synapse_graph.core.exceptions import ConfigurationError
from synapse_graph.core.neurons.activation import SpreadingActivationEngine
from synapse_graph.core.neurons.config import (
    AutoReinforcementConfig,
    SpreadingActivationConfig,
)
from synapse_graph.core.neurons.reinforcement import AutoReinforcementEngine
from synapse_graph.core.storage.base import GraphStore, VectorSearch

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """The assembled components.  Call :meth:`close` when done."""

    settings: Settings
    store: GraphStore
    vector_search: VectorSearch
    embedder: EmbeddingProvider | None
    analytics: GraphAnalyticsEngine
    reinforcement: AutoReinforcementEngine
    activation: SpreadingActivationEngine
    owns_store: bool = False

    def create_debouncer(
        self, on_complete: Callable[[ProjectAnalytics], None] | None = None
    ) -> AnalyticsDebouncer:
        """Debouncer over :attr:`analytics` using the configured quiet period."""
        return AnalyticsDebouncer(
            self.analytics,
            debounce_seconds=self.settings.analytics_debounce_seconds,
            on_complete=on_complete,
        )

    def close(self) -> None:
        """Let dispatched reinforcement finish, then release the store."""
        self.reinforcement.close(wait=True)
        if self.owns_store:
            close = getattr(self.store, "close", None)
            if callable(close):
                close()


def build_runtime(
    settings: Settings | None = None,
    store: GraphStore | None = None,
    vector_search: VectorSearch | None = None,
    embedder: EmbeddingProvider | None = None,
    analytics_config: AnalyticsConfig | None = None,
    activation_config: SpreadingActivationConfig | None = None,
    reinforcement_config: AutoReinforcementConfig | None = None,
) -> Runtime:
    """Assemble a :class:`Runtime` from *settings*.

    Parameters
    ----------
    settings:
        Defaults to :meth:`Settings.from_env`.
    store:
        Graph store; a :class:`Neo4jStore` is connected when omitted.
    vector_search:
        Defaults to *store* when it also implements :class:`VectorSearch`.
    embedder:
        Defaults to :func:`create_embedding_provider` for *settings*.
    reinforcement_config:
        Its ``enabled`` flag is overridden by
        ``settings.auto_reinforcement_enabled``.
    """
    settings = settings or Settings.from_env()

    owns_store = store is None
    if store is None:
        from synapse_graph.core.storage.neo4j_backend import Neo4jStore

        store = Neo4jStore(
            uri=settings.neo4j_uri,
            user=settings.neo4j_user,
            password=settings.neo4j_password,
            vector_index=settings.note_vector_index,
        )

    if vector_search is None:
        if not isinstance(store, VectorSearch):
            raise ConfigurationError(
                "Store does not provide vector search; pass vector_search explicitly",
                {"store": type(store).__name__},
            )
        vector_search = store

    if embedder is None:
        embedder = create_embedding_provider(settings)

    reinforcement_config = replace(
        reinforcement_config or AutoReinforcementConfig(),
        enabled=settings.auto_reinforcement_enabled,
    )
    reinforcement = AutoReinforcementEngine(store, reinforcement_config)

    runtime = Runtime(
        settings=settings,
        store=store,
        vector_search=vector_search,
        embedder=embedder,
        analytics=GraphAnalyticsEngine(store, analytics_config),
        reinforcement=reinforcement,
        activation=SpreadingActivationEngine(
            store,
            vector_search,
            embedder=embedder,
            config=activation_config,
            reinforcement=reinforcement,
        ),
        owns_store=owns_store,
    )
    logger.info(
        "Runtime ready (store=%s, embeddings=%s, reinforcement=%s)",
        type(store).__name__,
        embedder.model_name() if embedder is not None else "disabled",
        "on" if reinforcement_config.enabled else "off",
    )
    return runtime
