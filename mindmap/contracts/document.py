"""
Document Contracts
==================

Immutable node, edge and snapshot types for one mind-map document.

A snapshot is passed by value. Every mutation produces a NEW snapshot;
nothing in the engine keeps a global, mutable document.

ORDERING:
=========
Tuple order of nodes and edges is creation order. The layout engine
relies on it for sibling order, so it is preserved by every operation.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple


ROOT_NODE_TYPE = "input"
DEFAULT_NODE_TYPE = "default"


@dataclass(frozen=True)
class Position:
    """Cached layout position. Never authoritative."""
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Node:
    """
    One labeled topic.

    `position` and `hidden` are derived by the layout engine and the
    visibility resolver. `extras` is the explicit extension point for
    payload fields the engine does not interpret.
    """
    node_id: str
    label: str
    position: Position = field(default_factory=Position)
    expanded: bool = True
    selected: bool = False
    hidden: bool = False
    node_type: str = DEFAULT_NODE_TYPE
    extras: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.node_id or not isinstance(self.node_id, str):
            raise ValueError("Node id must be a non-empty string")


@dataclass(frozen=True)
class Edge:
    """Directed parent -> child link."""
    edge_id: str
    source: str
    target: str

    @staticmethod
    def between(source: str, target: str) -> Edge:
        return Edge(edge_id=f"e{source}-{target}", source=source, target=target)


@dataclass(frozen=True)
class TreeSnapshot:
    """
    Full point-in-time state of one document.

    `action_items` is filled only by the summarization collaborator
    when a session ends; the editing core carries it through untouched.
    """
    nodes: Tuple[Node, ...] = field(default_factory=tuple)
    edges: Tuple[Edge, ...] = field(default_factory=tuple)
    action_items: Optional[Tuple[str, ...]] = None

    # -------------------------------------------------------------------------
    # Lookups (derived, never cached on the instance)
    # -------------------------------------------------------------------------

    def node(self, node_id: Optional[str]) -> Optional[Node]:
        if node_id is None:
            return None
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        return None

    def has_node(self, node_id: Optional[str]) -> bool:
        return self.node(node_id) is not None

    def node_ids(self) -> Tuple[str, ...]:
        return tuple(n.node_id for n in self.nodes)

    @property
    def selected_id(self) -> Optional[str]:
        for node in self.nodes:
            if node.selected:
                return node.node_id
        return None

    def selected_count(self) -> int:
        return sum(1 for n in self.nodes if n.selected)

    def parent_of(self, node_id: str) -> Optional[str]:
        """First incoming edge wins."""
        for edge in self.edges:
            if edge.target == node_id:
                return edge.source
        return None

    def children_of(self, node_id: str) -> Tuple[str, ...]:
        """Children in edge creation order."""
        return tuple(e.target for e in self.edges if e.source == node_id)

    def is_root(self, node_id: str) -> bool:
        return all(e.target != node_id for e in self.edges)

    def roots(self) -> Tuple[str, ...]:
        targets = {e.target for e in self.edges}
        return tuple(n.node_id for n in self.nodes if n.node_id not in targets)

    def positions(self) -> Dict[str, Position]:
        return {n.node_id: n.position for n in self.nodes}

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    # -------------------------------------------------------------------------
    # Copy helpers (return NEW snapshots)
    # -------------------------------------------------------------------------

    def with_nodes(self, nodes: Tuple[Node, ...]) -> TreeSnapshot:
        return replace(self, nodes=tuple(nodes))

    def with_selection(self, node_id: Optional[str]) -> TreeSnapshot:
        """Select exactly `node_id` (or nothing)."""
        nodes: List[Node] = []
        for node in self.nodes:
            wanted = node.node_id == node_id
            nodes.append(node if node.selected == wanted else replace(node, selected=wanted))
        return replace(self, nodes=tuple(nodes))

    def update_node(self, node_id: str, **changes: Any) -> TreeSnapshot:
        return replace(self, nodes=tuple(
            replace(n, **changes) if n.node_id == node_id else n
            for n in self.nodes
        ))
