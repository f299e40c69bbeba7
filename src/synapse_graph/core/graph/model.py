"""Code graph data model for Synapse Graph.

Defines the node and edge types extracted from the knowledge graph store
(files, functions, classes, etc. and the calls/imports/contains edges between
them) together with the scopes used to pick a typed subgraph per project.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CodeNodeType(Enum):
    """Types of code-level entities that can appear in a :class:`CodeGraph`."""

    FILE = "file"
    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    STRUCT = "struct"
    TRAIT = "trait"
    INTERFACE = "interface"
    ENUM = "enum"


class CodeEdgeType(Enum):
    """Relationship types connecting code entities."""

    IMPORTS = "imports"
    CALLS = "calls"
    DEFINES = "defines"
    CONTAINS = "contains"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    USES_TYPE = "uses_type"


class GraphScope(Enum):
    """Which typed subgraph of a project to extract for analysis.

    ``FILES`` is the file import graph, ``FUNCTIONS`` the call graph between
    functions and methods, ``ALL`` every node and edge of the project.
    """

    FILES = "files"
    FUNCTIONS = "functions"
    ALL = "all"

    @property
    def node_types(self) -> frozenset[CodeNodeType]:
        return _SCOPE_NODE_TYPES[self]

    @property
    def edge_types(self) -> frozenset[CodeEdgeType]:
        return _SCOPE_EDGE_TYPES[self]


_SCOPE_NODE_TYPES: dict[GraphScope, frozenset[CodeNodeType]] = {
    GraphScope.FILES: frozenset({CodeNodeType.FILE}),
    GraphScope.FUNCTIONS: frozenset({CodeNodeType.FUNCTION, CodeNodeType.METHOD}),
    GraphScope.ALL: frozenset(CodeNodeType),
}

_SCOPE_EDGE_TYPES: dict[GraphScope, frozenset[CodeEdgeType]] = {
    GraphScope.FILES: frozenset({CodeEdgeType.IMPORTS}),
    GraphScope.FUNCTIONS: frozenset({CodeEdgeType.CALLS}),
    GraphScope.ALL: frozenset(CodeEdgeType),
}


def generate_id(node_type: CodeNodeType, path: str, symbol_name: str = "") -> str:
    """Produce a deterministic node ID.

    Format: ``{node_type.value}:{path}:{symbol_name}``

    Args:
        node_type: The node type enum member.
        path: Path to the file the symbol belongs to.
        symbol_name: Optional name of the symbol within the file.

    Returns:
        A colon-separated string suitable for use as a graph node ID.
    """
    return f"{node_type.value}:{path}:{symbol_name}"


@dataclass
class CodeNode:
    """A node of the code graph.

    ``id``, ``type`` and ``name`` are required.  ``path`` is the file path
    for file nodes, or the containing file for symbols.
    """

    id: str
    type: CodeNodeType
    name: str

    path: str = ""
    project_id: str | None = None


@dataclass
class CodeEdge:
    """A directed, typed edge between two code nodes.

    The ``label`` defaults to the upper-cased edge type (``"CALLS"``), which
    is how relationship types are spelled in the store.
    """

    source: str
    target: str
    type: CodeEdgeType = CodeEdgeType.CALLS

    label: str = ""
    weight: float = 1.0

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.type.value.upper()
