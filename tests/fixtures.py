"""
Shared fixtures for engine tests.

All builders are deterministic: ids come from a counter, never uuid.
"""

from typing import Iterable, Optional, Tuple

from mindmap.config import EditorConfig
from mindmap.contracts.document import Edge, Node, TreeSnapshot
from mindmap.core.commands import CommandProcessor
from mindmap.core.store import TreeStore


class CountingIds:
    """Id factory yielding n1, n2, n3..."""

    def __init__(self, prefix: str = "n", start: int = 1):
        self._prefix = prefix
        self._next = start

    def __call__(self) -> str:
        value = f"{self._prefix}{self._next}"
        self._next += 1
        return value


def make_processor(config: Optional[EditorConfig] = None, prefix: str = "n") -> CommandProcessor:
    return CommandProcessor(config, id_factory=CountingIds(prefix))


def make_store(theme: str = "R") -> TreeStore:
    """Store seeded with a single root labeled `theme`, id n1."""
    processor = make_processor()
    return TreeStore(processor.seed_snapshot(theme), processor)


def make_snapshot(
    node_ids: Iterable[str],
    links: Iterable[Tuple[str, str]] = (),
    collapsed: Iterable[str] = (),
    selected: Optional[str] = None
) -> TreeSnapshot:
    """Hand-built snapshot; positions are left at the origin."""
    collapsed = set(collapsed)
    nodes = tuple(
        Node(node_id=i, label=i.upper(), expanded=i not in collapsed, selected=i == selected)
        for i in node_ids
    )
    edges = tuple(Edge.between(s, t) for s, t in links)
    return TreeSnapshot(nodes=nodes, edges=edges)


def hidden_ids(snapshot: TreeSnapshot) -> set:
    return {n.node_id for n in snapshot.nodes if n.hidden}
