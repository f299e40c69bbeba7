"""Deterministic hash-based embedding provider for tests and offline use.

Identical texts always map to identical vectors, distinct texts to distinct
vectors (with overwhelming probability), and every vector has unit length.
No model is downloaded.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence

import numpy as np

from synapse_graph.core.exceptions import EmbeddingError

_MAX_UINT64 = float(2**64 - 1)


class MockEmbeddingProvider:
    """Spreads a chained SHA-256 hash of the text over ``dimensions`` floats."""

    def __init__(self, dimensions: int = 384) -> None:
        if dimensions < 1:
            raise EmbeddingError("dimensions must be at least 1", {"dimensions": dimensions})
        self._dimensions = dimensions

    def _hash_to_embedding(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        values = np.empty(self._dimensions, dtype=np.float64)
        for i in range(self._dimensions):
            value = int.from_bytes(digest[:8], "big")
            values[i] = value / _MAX_UINT64 * 2.0 - 1.0
            digest = hashlib.sha256(digest).digest()

        norm = np.linalg.norm(values)
        if norm > 0.0:
            values /= norm
        return values.tolist()

    def embed_text(self, text: str) -> list[float]:
        return self._hash_to_embedding(text)

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._hash_to_embedding(t) for t in texts]

    def dimensions(self) -> int:
        return self._dimensions

    def model_name(self) -> str:
        return "mock-hash-embedding"
