"""Bond graph: agents, skills, and commands linked by name.

Nodes live in an insertion-ordered arena keyed by :class:`NodeRef`.  Edges
refer to nodes by ``NodeRef`` only, never by object, so an edge whose
target was never declared is representable and can be reported instead of
silently dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from bondlint.core.manifest.models import EntityKind, EntityManifest

logger = logging.getLogger(__name__)


class Relation(str, Enum):
    """Edge label."""

    BOND = "bond"  # skill -> agent, from ``bonded_agent``
    DECLARES = "declares"  # agent -> skill, from ``skills``
    TRIGGERS = "triggers"  # command -> agent/skill


BOND_RELATIONS = frozenset({Relation.BOND, Relation.DECLARES})


class NodeRef(NamedTuple):
    kind: EntityKind
    name: str

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"


@dataclass(frozen=True)
class GraphNode:
    ref: NodeRef
    source_path: str
    schema_valid: bool = True


@dataclass(frozen=True)
class Edge:
    source: NodeRef
    target: NodeRef
    relation: Relation
    origin_path: str
    bond_type: str | None = None

    def is_reciprocal_of(self, other: Edge) -> bool:
        """True for the two halves of one confirmed agent/skill bond."""
        return (
            self.source == other.target
            and self.target == other.source
            and {self.relation, other.relation} == BOND_RELATIONS
        )


class BondGraph:
    """Directed graph of one validation run.  Built once, then only read."""

    def __init__(self) -> None:
        self._nodes: dict[NodeRef, GraphNode] = {}
        self._edges: list[Edge] = []
        self._out: dict[NodeRef, list[Edge]] = {}
        self._in: dict[NodeRef, list[Edge]] = {}

    def add_node(self, ref: NodeRef, source_path: str, *, schema_valid: bool = True) -> bool:
        """Add a node; returns ``False`` if the ref was already taken."""
        if ref in self._nodes:
            return False
        self._nodes[ref] = GraphNode(ref, source_path, schema_valid)
        return True

    def add_edge(self, edge: Edge) -> None:
        """Add an edge.  Dangling targets are accepted."""
        self._edges.append(edge)
        self._out.setdefault(edge.source, []).append(edge)
        self._in.setdefault(edge.target, []).append(edge)

    @property
    def nodes(self) -> tuple[GraphNode, ...]:
        return tuple(self._nodes.values())

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    def has_node(self, ref: NodeRef) -> bool:
        return ref in self._nodes

    def node(self, ref: NodeRef) -> GraphNode:
        return self._nodes[ref]

    def is_dangling(self, edge: Edge) -> bool:
        return edge.target not in self._nodes

    def out_edges(
        self, ref: NodeRef, relations: Iterable[Relation] | None = None
    ) -> list[Edge]:
        edges = self._out.get(ref, [])
        if relations is None:
            return list(edges)
        wanted = frozenset(relations)
        return [e for e in edges if e.relation in wanted]

    def in_edges(
        self, ref: NodeRef, relations: Iterable[Relation] | None = None
    ) -> list[Edge]:
        edges = self._in.get(ref, [])
        if relations is None:
            return list(edges)
        wanted = frozenset(relations)
        return [e for e in edges if e.relation in wanted]

    def to_dict(self) -> dict[str, object]:
        return {
            "nodes": [
                {
                    "kind": n.ref.kind.value,
                    "name": n.ref.name,
                    "sourcePath": n.source_path,
                    "schemaValid": n.schema_valid,
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "source": str(e.source),
                    "target": str(e.target),
                    "relation": e.relation.value,
                    "bondType": e.bond_type,
                    "originPath": e.origin_path,
                    "dangling": self.is_dangling(e),
                }
                for e in self._edges
            ],
        }


def build_graph(manifests: list[EntityManifest]) -> BondGraph:
    """Build the bond graph from schema-checked manifests.

    Nodes and edges follow the order of *manifests*.  Manifests without a
    usable name cannot be addressed and are left out, and only the first
    manifest to claim a name contributes edges.
    """
    graph = BondGraph()
    owners: list[EntityManifest] = []

    for manifest in manifests:
        if not manifest.name:
            continue
        if graph.add_node(
            NodeRef(manifest.kind, manifest.name),
            manifest.source_path,
            schema_valid=manifest.schema_valid,
        ):
            owners.append(manifest)

    # Later duplicates are reported as DuplicateName and add no edges.
    for manifest in owners:
        ref = NodeRef(manifest.kind, manifest.name)
        links = manifest.links
        if manifest.kind is EntityKind.SKILL and links.bonded_agent:
            graph.add_edge(
                Edge(
                    ref,
                    NodeRef(EntityKind.AGENT, links.bonded_agent),
                    Relation.BOND,
                    manifest.source_path,
                    links.bond_type,
                )
            )
        elif manifest.kind is EntityKind.AGENT:
            for skill in links.skills:
                graph.add_edge(
                    Edge(ref, NodeRef(EntityKind.SKILL, skill), Relation.DECLARES, manifest.source_path)
                )
        elif manifest.kind is EntityKind.COMMAND:
            for agent in links.agents:
                graph.add_edge(
                    Edge(ref, NodeRef(EntityKind.AGENT, agent), Relation.TRIGGERS, manifest.source_path)
                )
            for skill in links.skills:
                graph.add_edge(
                    Edge(ref, NodeRef(EntityKind.SKILL, skill), Relation.TRIGGERS, manifest.source_path)
                )

    logger.debug("Bond graph: %d node(s), %d edge(s)", len(graph.nodes), len(graph.edges))
    return graph
