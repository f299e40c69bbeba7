"""Exception hierarchy for Synapse Graph.

Fatal failures (store unreachable, malformed records, collaborator errors
during a query) are raised as one of the classes below.  Numerical edge cases
are never errors: they resolve to well-defined fallback values inside the
algorithms.
"""

from __future__ import annotations

from typing import Any


class SynapseGraphError(Exception):
    """Base exception for all Synapse Graph errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a plain dictionary (for logs and APIs)."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(SynapseGraphError):
    """Raised when a configuration value is out of range or unknown."""


class StorageError(SynapseGraphError):
    """Raised by store backends when the underlying database call fails."""


class ExtractionError(SynapseGraphError):
    """Raised when a project graph cannot be extracted from the store.

    Covers an unreachable store as well as malformed node or edge records.
    Fatal for the analytics run: no partial graph is analysed.
    """


class AnalyticsError(SynapseGraphError):
    """Raised for exceptional internal states of an analytics computation.

    Empty or degenerate graphs are not errors; they produce zero-valued
    results.
    """


class EmbeddingError(SynapseGraphError):
    """Raised when an embedding provider fails or returns a bad vector."""


class RetrievalError(SynapseGraphError):
    """Raised when a spreading-activation query cannot be answered.

    The query yields no results at all rather than a partial ranking.
    """
