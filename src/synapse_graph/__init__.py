"""Synapse Graph: code-graph analytics and spreading-activation retrieval."""

__version__ = "0.1.0"
