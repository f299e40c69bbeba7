"""Synapse Graph configuration: environment-derived settings."""

from synapse_graph.config.settings import EMBEDDING_PROVIDERS, Settings

__all__ = [
    "EMBEDDING_PROVIDERS",
    "Settings",
]
