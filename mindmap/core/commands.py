"""
Command Processor
=================

The mutation API of the editor. Every command is a small frozen value
dispatched by node id; no behaviour is ever stored inside node data.

TOTALITY:
=========
Every command either yields a valid next snapshot or is a no-op.
Nothing here raises for user-reachable input. Invalid contexts
(no selection, deleting a root, unknown id) return the input
snapshot with `changed=False`.

CALL DIRECTION:
===============
Commands call the Visibility Resolver and the Layout Engine.
Neither of those ever calls back into this module.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple, Union
import logging
import uuid

from ..config import EditorConfig
from ..contracts.document import (
    DEFAULT_NODE_TYPE, ROOT_NODE_TYPE, Edge, Node, TreeSnapshot
)
from .layout import FocusRequest, LayoutEngine
from .topology import build_graph, descendants
from .visibility import resolve, visible_subset


logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def uuid_id_factory() -> str:
    return f"node_{uuid.uuid4().hex[:12]}"


# =============================================================================
# COMMANDS (pure intent)
# =============================================================================

@dataclass(frozen=True)
class AddChild:
    """New child under the current selection."""
    pass


@dataclass(frozen=True)
class AddSibling:
    """New sibling of the current selection; a root gets a new root."""
    pass


@dataclass(frozen=True)
class DeleteSelected:
    """Cascading delete of the current selection. Roots are protected."""
    pass


@dataclass(frozen=True)
class Rename:
    node_id: str
    label: str


@dataclass(frozen=True)
class ToggleExpand:
    node_id: str


@dataclass(frozen=True)
class Select:
    """Select one node, or clear the selection with None."""
    node_id: Optional[str]


Command = Union[AddChild, AddSibling, DeleteSelected, Rename, ToggleExpand, Select]


# =============================================================================
# OUTCOME
# =============================================================================

@dataclass(frozen=True)
class CommandOutcome:
    """
    Result of applying one command.

    focus:     viewport should centre here (side effect for the caller)
    rename_id: the label of this node should open for editing
    """
    snapshot: TreeSnapshot
    changed: bool = False
    focus: Optional[FocusRequest] = None
    rename_id: Optional[str] = None

    @staticmethod
    def unchanged(snapshot: TreeSnapshot) -> CommandOutcome:
        return CommandOutcome(snapshot=snapshot, changed=False)


# =============================================================================
# PROCESSOR
# =============================================================================

class CommandProcessor:
    """
    Applies commands to snapshots.

    Holds no document state: apply() is a function of
    (snapshot, command). The id factory is the only source of novelty.
    """

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        id_factory: Optional[IdFactory] = None,
        layout_engine: Optional[LayoutEngine] = None
    ):
        self._config = config or EditorConfig()
        self._new_id = id_factory or uuid_id_factory
        self._layout = layout_engine or LayoutEngine(self._config.layout)

    @property
    def layout_engine(self) -> LayoutEngine:
        return self._layout

    # -------------------------------------------------------------------------
    # Derived geometry
    # -------------------------------------------------------------------------

    def relayout(self, snapshot: TreeSnapshot) -> TreeSnapshot:
        """
        Recompute hidden flags, then positions of the visible subset.
        Hidden nodes keep their last known position.
        """
        resolved = resolve(snapshot.nodes, snapshot.edges)
        visible_nodes, visible_edges = visible_subset(resolved, snapshot.edges)
        positioned = {n.node_id: n for n in self._layout.layout(visible_nodes, visible_edges)}
        return snapshot.with_nodes(tuple(positioned.get(n.node_id, n) for n in resolved))

    def seed_snapshot(self, theme: Optional[str] = None) -> TreeSnapshot:
        """Initial document: one root labeled with the session theme."""
        root = Node(
            node_id=self._new_id(),
            label=theme or self._config.default_theme,
            node_type=ROOT_NODE_TYPE,
        )
        return self.relayout(TreeSnapshot(nodes=(root,)))

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def apply(self, snapshot: TreeSnapshot, command: Command) -> CommandOutcome:
        if isinstance(command, AddChild):
            return self._add_child(snapshot)
        if isinstance(command, AddSibling):
            return self._add_sibling(snapshot)
        if isinstance(command, DeleteSelected):
            return self._delete_selected(snapshot)
        if isinstance(command, Rename):
            return self._rename(snapshot, command)
        if isinstance(command, ToggleExpand):
            return self._toggle_expand(snapshot, command)
        if isinstance(command, Select):
            return self._select(snapshot, command)

        logger.debug("Ignoring unknown command %r", command)
        return CommandOutcome.unchanged(snapshot)

    # -------------------------------------------------------------------------
    # Insertions
    # -------------------------------------------------------------------------

    def _add_child(self, snapshot: TreeSnapshot) -> CommandOutcome:
        selected = snapshot.selected_id
        if selected is None:
            logger.debug("AddChild ignored: nothing selected")
            return CommandOutcome.unchanged(snapshot)
        return self._insert(snapshot, parent_id=selected)

    def _add_sibling(self, snapshot: TreeSnapshot) -> CommandOutcome:
        selected = snapshot.selected_id
        if selected is None:
            logger.debug("AddSibling ignored: nothing selected")
            return CommandOutcome.unchanged(snapshot)
        # Siblings of a root become independent roots
        return self._insert(snapshot, parent_id=snapshot.parent_of(selected))

    def _insert(self, snapshot: TreeSnapshot, parent_id: Optional[str]) -> CommandOutcome:
        new_id = self._new_id()
        if snapshot.has_node(new_id):
            logger.warning("Id factory produced an existing id %s; insert skipped", new_id)
            return CommandOutcome.unchanged(snapshot)

        node = Node(node_id=new_id, label=self._config.default_label, node_type=DEFAULT_NODE_TYPE)
        edges = snapshot.edges
        if parent_id is not None:
            edges = edges + (Edge.between(parent_id, new_id),)

        candidate = replace(snapshot, nodes=snapshot.nodes + (node,), edges=edges)
        candidate = self.relayout(candidate.with_selection(new_id))
        return CommandOutcome(
            snapshot=candidate,
            changed=True,
            focus=self._layout.focus(candidate.nodes, new_id),
            rename_id=new_id,
        )

    # -------------------------------------------------------------------------
    # Cascading delete
    # -------------------------------------------------------------------------

    def _delete_selected(self, snapshot: TreeSnapshot) -> CommandOutcome:
        selected = snapshot.selected_id
        if selected is None:
            logger.debug("DeleteSelected ignored: nothing selected")
            return CommandOutcome.unchanged(snapshot)
        if snapshot.is_root(selected):
            logger.debug("DeleteSelected ignored: %s is a root", selected)
            return CommandOutcome.unchanged(snapshot)

        parent_id = snapshot.parent_of(selected)
        graph = build_graph(snapshot.nodes, snapshot.edges)
        doomed = descendants(graph, selected) | {selected}

        candidate = replace(
            snapshot,
            nodes=tuple(n for n in snapshot.nodes if n.node_id not in doomed),
            edges=tuple(
                e for e in snapshot.edges
                if e.source not in doomed and e.target not in doomed
            ),
        )
        candidate = self.relayout(candidate.with_selection(parent_id))
        logger.debug("Deleted %d node(s) under %s", len(doomed), selected)
        return CommandOutcome(
            snapshot=candidate,
            changed=True,
            focus=self._layout.focus(candidate.nodes, parent_id),
        )

    # -------------------------------------------------------------------------
    # In-place edits
    # -------------------------------------------------------------------------

    def _rename(self, snapshot: TreeSnapshot, command: Rename) -> CommandOutcome:
        node = snapshot.node(command.node_id)
        if node is None or not command.label.strip():
            return CommandOutcome.unchanged(snapshot)
        if node.label == command.label:
            return CommandOutcome.unchanged(snapshot)
        # Label text never affects geometry: no relayout
        return CommandOutcome(
            snapshot=snapshot.update_node(command.node_id, label=command.label),
            changed=True,
        )

    def _toggle_expand(self, snapshot: TreeSnapshot, command: ToggleExpand) -> CommandOutcome:
        node = snapshot.node(command.node_id)
        if node is None:
            return CommandOutcome.unchanged(snapshot)
        candidate = snapshot.update_node(command.node_id, expanded=not node.expanded)
        return CommandOutcome(snapshot=self.relayout(candidate), changed=True)

    def _select(self, snapshot: TreeSnapshot, command: Select) -> CommandOutcome:
        if command.node_id is None:
            if snapshot.selected_id is None:
                return CommandOutcome.unchanged(snapshot)
            return CommandOutcome(snapshot=snapshot.with_selection(None), changed=True)

        node = snapshot.node(command.node_id)
        if node is None or node.hidden:
            return CommandOutcome.unchanged(snapshot)

        candidate = snapshot if node.selected else snapshot.with_selection(command.node_id)
        return CommandOutcome(
            snapshot=candidate,
            changed=not node.selected,
            focus=self._layout.focus(candidate.nodes, command.node_id),
        )
