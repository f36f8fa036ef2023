"""
Visibility Resolver
===================

Pure function from (nodes with expand flags, edges) to nodes with `hidden`.

RULE:
    hidden(n) == any(not a.expanded for a in ancestors(n))

A root has no ancestors and is therefore never hidden; its own
`expanded` flag only controls what happens below it.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Tuple

from ..contracts.document import Edge, Node
from .topology import ancestors, build_graph


def resolve(nodes: Tuple[Node, ...], edges: Tuple[Edge, ...]) -> Tuple[Node, ...]:
    """Return the same nodes, in order, with `hidden` recomputed."""
    graph = build_graph(nodes, edges)
    collapsed = {n.node_id for n in nodes if not n.expanded}

    resolved = []
    for node in nodes:
        hidden = bool(collapsed) and not collapsed.isdisjoint(ancestors(graph, node.node_id))
        resolved.append(node if node.hidden == hidden else replace(node, hidden=hidden))
    return tuple(resolved)


def visible_subset(
    nodes: Tuple[Node, ...],
    edges: Tuple[Edge, ...]
) -> Tuple[Tuple[Node, ...], Tuple[Edge, ...]]:
    """
    Visible nodes and the edges whose endpoints are both visible.

    Expects nodes already passed through resolve().
    """
    visible_nodes = tuple(n for n in nodes if not n.hidden)
    visible_ids = {n.node_id for n in visible_nodes}
    visible_edges = tuple(
        e for e in edges
        if e.source in visible_ids and e.target in visible_ids
    )
    return visible_nodes, visible_edges
