"""
Forest Topology
===============

Structural queries over a document's node/edge graph, built on NetworkX.

This module computes STRUCTURE only: reachability, roots, cycles.
It never reads labels and never decides what is selected or shown.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Set, Tuple

import networkx as nx

from ..contracts.document import Edge, Node


@dataclass(frozen=True)
class ForestCheck:
    """Result of validating a node/edge set against the forest invariant."""
    is_valid: bool
    reason: Optional[str] = None

    @staticmethod
    def ok() -> 'ForestCheck':
        return ForestCheck(is_valid=True)

    @staticmethod
    def violation(reason: str) -> 'ForestCheck':
        return ForestCheck(is_valid=False, reason=reason)


def build_graph(nodes: Iterable[Node], edges: Iterable[Edge], strict: bool = False) -> nx.DiGraph:
    """
    Build a directed parent -> child graph.

    Node insertion order follows creation order so traversals stay
    deterministic. With strict=False, edges naming unknown nodes are
    skipped instead of silently creating phantom nodes.
    """
    graph = nx.DiGraph()
    for node in nodes:
        graph.add_node(node.node_id)

    for edge in edges:
        if not strict and (edge.source not in graph or edge.target not in graph):
            continue
        graph.add_edge(edge.source, edge.target, edge_id=edge.edge_id)

    return graph


def check_forest(nodes: Tuple[Node, ...], edges: Tuple[Edge, ...]) -> ForestCheck:
    """
    Validate the forest invariant.

    - node ids are unique
    - every edge endpoint names an existing node
    - no cycle (including self loops)
    - at most one selected node
    """
    ids = [n.node_id for n in nodes]
    known = set(ids)
    if len(known) != len(ids):
        return ForestCheck.violation("duplicate node id")

    for edge in edges:
        if edge.source not in known or edge.target not in known:
            return ForestCheck.violation(f"edge {edge.edge_id} has a dangling endpoint")

    if sum(1 for n in nodes if n.selected) > 1:
        return ForestCheck.violation("more than one node selected")

    graph = build_graph(nodes, edges)
    if not nx.is_directed_acyclic_graph(graph):
        return ForestCheck.violation("edge set contains a cycle")

    return ForestCheck.ok()


def descendants(graph: nx.DiGraph, node_id: str) -> Set[str]:
    """All nodes reachable from node_id along outgoing edges."""
    if node_id not in graph:
        return set()
    return set(nx.descendants(graph, node_id))


def ancestors(graph: nx.DiGraph, node_id: str) -> Set[str]:
    """All nodes from which node_id is reachable."""
    if node_id not in graph:
        return set()
    return set(nx.ancestors(graph, node_id))


def longest_path_layers(graph: nx.DiGraph) -> dict:
    """
    Layer index per node: longest-path distance from any root.

    Requires an acyclic graph.
    """
    layers = {}
    for node_id in nx.topological_sort(graph):
        preds = list(graph.predecessors(node_id))
        layers[node_id] = max((layers[p] + 1 for p in preds), default=0)
    return layers
