"""Integrity checks over a completed :class:`BondGraph`.

All checks are pure functions of the graph and run single-threaded: cycle
detection needs a consistent view of every node and edge.
"""

from __future__ import annotations

from collections import deque

from bondlint.core.graph.builder import BOND_RELATIONS, BondGraph, Edge, NodeRef, Relation
from bondlint.core.manifest.models import EntityKind
from bondlint.core.report.models import Category, Finding


def find_orphan_skills(graph: BondGraph) -> list[Finding]:
    """Skills no agent declares and that bond to no agent (warnings)."""
    findings: list[Finding] = []
    for node in graph.nodes:
        if node.ref.kind is not EntityKind.SKILL:
            continue
        if graph.in_edges(node.ref, (Relation.DECLARES,)):
            continue
        if graph.out_edges(node.ref, (Relation.BOND,)):
            continue
        findings.append(
            Finding.warning(
                Category.ORPHAN_SKILL,
                node.source_path,
                f"skill {node.ref.name!r} is not declared by any agent and has no bonded_agent",
            )
        )
    return findings


def _describe_broken(edge: Edge) -> str:
    source, target = edge.source, edge.target
    if edge.relation is Relation.BOND:
        return f"skill {source.name!r} is bonded to agent {target.name!r}, which does not exist"
    if edge.relation is Relation.DECLARES:
        return f"agent {source.name!r} declares skill {target.name!r}, which does not exist"
    return (
        f"command {source.name!r} triggers {target.kind.value} {target.name!r}, "
        "which does not exist"
    )


def find_broken_bonds(graph: BondGraph) -> list[Finding]:
    """One error per edge whose target node does not exist."""
    return [
        Finding.error(Category.BROKEN_BOND, edge.origin_path, _describe_broken(edge))
        for edge in graph.edges
        if graph.is_dangling(edge)
    ]


def _path_back(graph: BondGraph, edge: Edge) -> list[NodeRef] | None:
    """Shortest bond path from ``edge.target`` back to ``edge.source``.

    The reciprocal half of *edge* is not walked, so a confirmed bond on its
    own never closes a loop.
    """
    start, goal = edge.target, edge.source
    parent: dict[NodeRef, NodeRef | None] = {start: None}
    queue = deque([start])
    while queue:
        ref = queue.popleft()
        for step in graph.out_edges(ref, BOND_RELATIONS):
            if step.is_reciprocal_of(edge) or step.target in parent:
                continue
            if not graph.has_node(step.target):
                continue  # dangling, reported as a broken bond
            parent[step.target] = ref
            if step.target == goal:
                path: list[NodeRef] = []
                node: NodeRef | None = goal
                while node is not None:
                    path.append(node)
                    node = parent[node]
                return path[::-1]
            queue.append(step.target)
    return None


def find_cycles(graph: BondGraph) -> list[list[NodeRef]]:
    """Return each distinct cycle among bond edges as a closed path.

    Every ``bond``/``declares`` edge between existing nodes is tried as the
    first step of a loop; a breadth-first search then looks for the way
    back.  Nothing is pruned, so which loops are found does not depend on
    the order the edges were declared in.  Loops with the same node set are
    reported once, in edge order.
    """
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[NodeRef]] = []
    for edge in graph.edges:
        if edge.relation not in BOND_RELATIONS:
            continue
        if not graph.has_node(edge.source) or graph.is_dangling(edge):
            continue
        back = _path_back(graph, edge)
        if back is None:
            continue
        cycle = [edge.source, *back]
        key = tuple(sorted({str(r) for r in cycle}))
        if key not in seen:
            seen.add(key)
            cycles.append(cycle)
    return cycles


def find_circular_dependencies(graph: BondGraph) -> list[Finding]:
    findings: list[Finding] = []
    for cycle in find_cycles(graph):
        path = " -> ".join(str(ref) for ref in cycle)
        findings.append(
            Finding.error(
                Category.CIRCULAR_DEPENDENCY,
                graph.node(cycle[0]).source_path,
                f"circular dependency: {path}",
            )
        )
    return findings


def check_integrity(graph: BondGraph) -> list[Finding]:
    """Broken bonds, orphan skills, and circular dependencies, in that order."""
    return [
        *find_broken_bonds(graph),
        *find_orphan_skills(graph),
        *find_circular_dependencies(graph),
    ]
