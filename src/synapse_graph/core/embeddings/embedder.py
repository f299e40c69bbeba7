"""fastembed-backed embedding provider.

Encodes note text in process with fastembed's ONNX models.  Models are
loaded lazily on first use and cached per model name, so several providers
for the same model share one instance.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from typing import TYPE_CHECKING

from synapse_graph.core.exceptions import EmbeddingError

if TYPE_CHECKING:
    from fastembed import TextEmbedding


@lru_cache(maxsize=4)
def _get_model(model_name: str) -> TextEmbedding:
    from fastembed import TextEmbedding

    return TextEmbedding(model_name=model_name)


class FastEmbedProvider:
    """Embedding provider using fastembed's :class:`TextEmbedding`.

    Args:
        model_name: The fastembed model identifier.  Defaults to
            ``"BAAI/bge-small-en-v1.5"``.
        dimensions: Expected vector size; a model returning anything else
            raises :class:`EmbeddingError`.
        batch_size: Number of texts to encode per batch.  Defaults to 64.
    """

    def __init__(
        self,
        model_name: str = "BAAI/bge-small-en-v1.5",
        dimensions: int = 384,
        batch_size: int = 64,
    ) -> None:
        self._model_name = model_name
        self._dimensions = dimensions
        self._batch_size = batch_size

    def embed_text(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            model = _get_model(self._model_name)
            vectors = list(model.embed(list(texts), batch_size=self._batch_size))
        except Exception as exc:
            raise EmbeddingError(
                f"Embedding with {self._model_name} failed",
                {"model": self._model_name, "texts": len(texts)},
            ) from exc

        if len(vectors) != len(texts):
            raise EmbeddingError(
                "Model returned the wrong number of vectors",
                {"expected": len(texts), "got": len(vectors)},
            )

        results: list[list[float]] = []
        for vector in vectors:
            values = vector.tolist()
            if len(values) != self._dimensions:
                raise EmbeddingError(
                    "Model returned vectors of unexpected size",
                    {"expected": self._dimensions, "got": len(values)},
                )
            results.append(values)
        return results

    def dimensions(self) -> int:
        return self._dimensions

    def model_name(self) -> str:
        return self._model_name
