"""Bond graph construction and integrity analysis."""

from bondlint.core.graph.builder import BondGraph, Edge, GraphNode, NodeRef, Relation, build_graph
from bondlint.core.graph.integrity import (
    check_integrity,
    find_broken_bonds,
    find_circular_dependencies,
    find_cycles,
    find_orphan_skills,
)

__all__ = [
    "BondGraph",
    "Edge",
    "GraphNode",
    "NodeRef",
    "Relation",
    "build_graph",
    "check_integrity",
    "find_broken_bonds",
    "find_circular_dependencies",
    "find_cycles",
    "find_orphan_skills",
]
