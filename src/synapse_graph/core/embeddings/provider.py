"""Embedding provider abstraction and factory."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from synapse_graph.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from synapse_graph.config.settings import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into fixed-dimension float vectors."""

    def embed_text(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed *texts*, returning vectors in the same order.

        All-or-nothing: either every text is embedded or an error is raised.
        """
        ...

    def dimensions(self) -> int:
        ...

    def model_name(self) -> str:
        ...


def create_embedding_provider(settings: Settings) -> EmbeddingProvider | None:
    """Build the provider selected by ``settings.embedding_provider``.

    ``"local"`` loads fastembed, ``"mock"`` the deterministic hash provider
    and ``"disabled"`` returns ``None``.
    """
    name = settings.embedding_provider
    if name == "disabled":
        logger.info("Embeddings disabled")
        return None
    if name == "mock":
        from synapse_graph.core.embeddings.mock import MockEmbeddingProvider

        return MockEmbeddingProvider(dimensions=settings.embedding_dimensions)
    if name == "local":
        from synapse_graph.core.embeddings.embedder import FastEmbedProvider

        return FastEmbedProvider(
            model_name=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
        )
    raise ConfigurationError(
        f"Unknown embedding provider {name!r}", {"embedding_provider": name}
    )
