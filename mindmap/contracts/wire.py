"""
Wire Contracts
==============

The persisted / transmitted document shape. This is the only structure
the engine must produce and consume bit-for-bit:

    {
      "nodes": [{"id", "position": {"x", "y"}, "data": {"label", "expanded"?}, "type"}],
      "edges": [{"id", "source", "target"}],
      "actionItems"?: [str]
    }

Decoding is the trust boundary for remote snapshots. Anything that does
not validate raises MalformedSnapshotError and must not reach the store.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .base import MalformedSnapshotError
from .document import DEFAULT_NODE_TYPE, Edge, Node, Position, TreeSnapshot


# =============================================================================
# SCHEMA
# =============================================================================

class WirePosition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    x: float
    y: float


class WireNodeData(BaseModel):
    # Extra payload keys are preserved through the node's extension point
    model_config = ConfigDict(extra="allow")

    label: str
    expanded: Optional[bool] = None


class WireNode(BaseModel):
    # Renderer-owned keys (measured, selected, dragging...) are ignored
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    position: WirePosition = Field(default_factory=lambda: WirePosition(x=0.0, y=0.0))
    data: WireNodeData
    type: str = DEFAULT_NODE_TYPE


class WireEdge(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    source: str
    target: str


class WireDocument(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    nodes: List[WireNode]
    edges: List[WireEdge]
    action_items: Optional[List[str]] = Field(default=None, alias="actionItems")


# =============================================================================
# ENCODE / DECODE
# =============================================================================

def encode_snapshot(snapshot: TreeSnapshot) -> Dict[str, Any]:
    """Snapshot -> JSON-ready dict in wire shape. Selection is not persisted."""
    document: Dict[str, Any] = {
        "nodes": [_encode_node(n) for n in snapshot.nodes],
        "edges": [
            {"id": e.edge_id, "source": e.source, "target": e.target}
            for e in snapshot.edges
        ],
    }
    if snapshot.action_items is not None:
        document["actionItems"] = list(snapshot.action_items)
    return document


def _encode_node(node: Node) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(node.extras)
    data["label"] = node.label
    data["expanded"] = node.expanded
    return {
        "id": node.node_id,
        "position": {"x": node.position.x, "y": node.position.y},
        "data": data,
        "type": node.node_type,
    }


def decode_snapshot(payload: Any) -> TreeSnapshot:
    """
    Wire dict -> snapshot.

    Raises MalformedSnapshotError for missing arrays, wrong types and
    duplicate node ids. Structural checks (cycles, dangling edges) belong
    to the store, which re-validates before install.
    """
    if not isinstance(payload, dict):
        raise MalformedSnapshotError(f"Document must be an object, got {type(payload).__name__}")

    try:
        document = WireDocument.model_validate(payload)
    except ValidationError as e:
        raise MalformedSnapshotError(f"Document failed validation: {e.error_count()} error(s)") from e

    nodes = []
    seen = set()
    for wire_node in document.nodes:
        if wire_node.id in seen:
            raise MalformedSnapshotError(f"Duplicate node id: {wire_node.id}")
        seen.add(wire_node.id)
        extras = tuple(sorted((wire_node.data.model_extra or {}).items()))
        nodes.append(Node(
            node_id=wire_node.id,
            label=wire_node.data.label,
            position=Position(x=wire_node.position.x, y=wire_node.position.y),
            expanded=True if wire_node.data.expanded is None else wire_node.data.expanded,
            node_type=wire_node.type,
            extras=extras,
        ))

    edges = tuple(
        Edge(edge_id=e.id, source=e.source, target=e.target)
        for e in document.edges
    )

    action_items = None
    if document.action_items is not None:
        action_items = tuple(document.action_items)

    return TreeSnapshot(nodes=tuple(nodes), edges=edges, action_items=action_items)
