"""
Layout Engine
=============

Pure function from the VISIBLE nodes and edges to positioned nodes.

ALGORITHM (hierarchical, left to right):
========================================
1. Layer = longest-path distance from a root.      x = layer * rank_spacing
2. Each node hangs under its FIRST incoming edge (its primary parent).
3. Tidy pass over the primary tree in creation order:
   - a leaf takes the next free vertical slot        y = slot * node_spacing
   - a parent is centred between its first and last child
   Roots are laid out one after another, so separate trees stack.

GUARANTEES:
===========
1. Deterministic - same input, same positions (no randomness, no hashing)
2. Sibling order is creation order, never alphabetical
3. No two nodes share a position
4. Hidden nodes are never passed in; their cached position is untouched
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import networkx as nx

from ..config import LayoutConfig
from ..contracts.document import Edge, Node, Position
from .topology import build_graph, longest_path_layers


@dataclass(frozen=True)
class FocusRequest:
    """
    Ask the viewport to centre on a node.
    Reported to the caller; the engine never moves a camera itself.
    """
    node_id: str
    position: Position


class LayoutEngine:
    """Hierarchical layout over the currently visible subset."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def layout(
        self,
        visible_nodes: Tuple[Node, ...],
        visible_edges: Tuple[Edge, ...]
    ) -> Tuple[Node, ...]:
        """Return visible_nodes, in input order, with fresh positions."""
        if not visible_nodes:
            return ()

        graph = build_graph(visible_nodes, visible_edges)
        if not nx.is_directed_acyclic_graph(graph):
            raise ValueError("Layout requires an acyclic edge set")

        layers = longest_path_layers(graph)
        children, roots = self._primary_tree(visible_nodes, visible_edges)
        offsets = self._assign_offsets(roots, children)

        cfg = self._config
        positioned = []
        for node in visible_nodes:
            position = Position(
                x=cfg.origin_x + layers[node.node_id] * cfg.rank_spacing,
                y=cfg.origin_y + offsets[node.node_id],
            )
            positioned.append(node if node.position == position else replace(node, position=position))
        return tuple(positioned)

    def _primary_tree(
        self,
        nodes: Tuple[Node, ...],
        edges: Tuple[Edge, ...]
    ) -> Tuple[Dict[str, List[str]], List[str]]:
        ids = {n.node_id for n in nodes}
        children: Dict[str, List[str]] = {n.node_id: [] for n in nodes}
        claimed = set()

        for edge in edges:
            if edge.source not in ids or edge.target not in ids:
                continue
            # First incoming edge wins; duplicates and extra parents are ignored
            if edge.target in claimed:
                continue
            claimed.add(edge.target)
            children[edge.source].append(edge.target)

        roots = [n.node_id for n in nodes if n.node_id not in claimed]
        return children, roots

    def _assign_offsets(self, roots: List[str], children: Dict[str, List[str]]) -> Dict[str, float]:
        spacing = self._config.node_spacing
        offsets: Dict[str, float] = {}
        next_slot = 0

        # Iterative post-order so deep chains cannot hit the recursion limit
        for root in roots:
            stack = [(root, False)]
            while stack:
                node_id, expanded = stack.pop()
                kids = children[node_id]
                if not kids:
                    offsets[node_id] = next_slot * spacing
                    next_slot += 1
                elif expanded:
                    offsets[node_id] = (offsets[kids[0]] + offsets[kids[-1]]) / 2.0
                else:
                    stack.append((node_id, True))
                    for kid in reversed(kids):
                        stack.append((kid, False))

        return offsets

    def focus(self, nodes: Tuple[Node, ...], node_id: Optional[str]) -> Optional[FocusRequest]:
        """
        Build a focus request from the freshly laid-out nodes.
        Hidden nodes have no current position, so they are never focused.
        """
        if node_id is None:
            return None
        for node in nodes:
            if node.node_id == node_id:
                if node.hidden:
                    return None
                return FocusRequest(node_id=node_id, position=node.position)
        return None
