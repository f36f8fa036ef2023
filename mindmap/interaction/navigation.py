"""
Navigation State Machine
========================

Keyboard interpreter for the editor.

STATES:
=======
- IDLE(selected_id | None)  implicit in the store's selection
- RENAMING(node_id)         label editor open; all keys ignored

TRANSITIONS (visible tree only, vertical order = position.y):
=============================================================
ArrowRight   middle visible child, floor(count / 2), if expanded
ArrowLeft    parent (no-op on a root)
ArrowUp      previous sibling; siblings of a root are the visible roots
ArrowDown    next sibling
Tab          AddChild     -> RENAMING(new node)
Enter        AddSibling   -> RENAMING(new node)
Delete       DeleteSelected (Backspace too)
Space        RENAMING(selected)

Keys are ignored while a text input holds focus, while RENAMING,
and always on a read-only (viewer) machine.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple
import logging

from ..contracts.document import TreeSnapshot
from ..core.commands import (
    AddChild, AddSibling, Command, CommandOutcome, DeleteSelected, Rename, Select
)
from ..core.layout import FocusRequest
from ..core.store import TreeStore


logger = logging.getLogger(__name__)


class Key(Enum):
    """Keys the editor reacts to, by DOM `KeyboardEvent.key` value."""
    ARROW_UP = "ArrowUp"
    ARROW_DOWN = "ArrowDown"
    ARROW_LEFT = "ArrowLeft"
    ARROW_RIGHT = "ArrowRight"
    TAB = "Tab"
    ENTER = "Enter"
    DELETE = "Delete"
    BACKSPACE = "Backspace"
    SPACE = " "

    @staticmethod
    def parse(name: str) -> Optional['Key']:
        if name in ("Space", "Spacebar"):
            return Key.SPACE
        try:
            return Key(name)
        except ValueError:
            return None


DIRECTIONAL_KEYS = frozenset({Key.ARROW_UP, Key.ARROW_DOWN, Key.ARROW_LEFT, Key.ARROW_RIGHT})

EDIT_COMMANDS: Dict[Key, Command] = {
    Key.TAB: AddChild(),
    Key.ENTER: AddSibling(),
    Key.DELETE: DeleteSelected(),
    Key.BACKSPACE: DeleteSelected(),
}


@dataclass(frozen=True)
class KeyEvent:
    """
    One key press as seen by the editor surface.

    target_is_editable: an input/textarea had focus when the key fired.
    """
    key: str
    target_is_editable: bool = False


@dataclass(frozen=True)
class NavigationOutcome:
    """What a key press did."""
    snapshot: TreeSnapshot
    handled: bool = False
    command: Optional[Command] = None
    changed: bool = False
    focus: Optional[FocusRequest] = None
    renaming_id: Optional[str] = None

    @staticmethod
    def ignored(snapshot: TreeSnapshot) -> NavigationOutcome:
        return NavigationOutcome(snapshot=snapshot)


class NavigationStateMachine:
    """
    Maps key presses to selection moves and edit commands.

    Selection moves are dispatched as Select commands through the store,
    so the store stays the only place a snapshot changes.
    """

    def __init__(self, store: TreeStore, read_only: bool = False):
        self._store = store
        self._read_only = read_only
        self._renaming_id: Optional[str] = None

    @property
    def renaming_id(self) -> Optional[str]:
        return self._renaming_id

    @property
    def is_renaming(self) -> bool:
        return self._renaming_id is not None

    @property
    def read_only(self) -> bool:
        return self._read_only

    # -------------------------------------------------------------------------
    # Key handling
    # -------------------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> NavigationOutcome:
        snapshot = self._store.snapshot
        if self._read_only or event.target_is_editable or self.is_renaming:
            return NavigationOutcome.ignored(snapshot)

        key = Key.parse(event.key)
        if key is None:
            return NavigationOutcome.ignored(snapshot)

        if key in DIRECTIONAL_KEYS:
            target = self._navigate(snapshot, key)
            if target is None:
                return NavigationOutcome(snapshot=snapshot, handled=True)
            return self._dispatch(Select(target))

        if key is Key.SPACE:
            selected = snapshot.selected_id
            if selected is None:
                return NavigationOutcome(snapshot=snapshot, handled=True)
            self._renaming_id = selected
            return NavigationOutcome(snapshot=snapshot, handled=True, renaming_id=selected)

        return self._dispatch(EDIT_COMMANDS[key])

    def _dispatch(self, command: Command) -> NavigationOutcome:
        outcome: CommandOutcome = self._store.apply_command(command)
        if outcome.rename_id is not None:
            self._renaming_id = outcome.rename_id
        return NavigationOutcome(
            snapshot=outcome.snapshot,
            handled=True,
            command=command,
            changed=outcome.changed,
            focus=outcome.focus,
            renaming_id=self._renaming_id,
        )

    # -------------------------------------------------------------------------
    # Rename mode
    # -------------------------------------------------------------------------

    def begin_rename(self, node_id: str) -> bool:
        """Open the label editor on a node (e.g. double click)."""
        if self._read_only or not self._store.snapshot.has_node(node_id):
            return False
        self._renaming_id = node_id
        return True

    def commit_rename(self, label: str) -> CommandOutcome:
        node_id = self._renaming_id
        self._renaming_id = None
        if node_id is None:
            return CommandOutcome.unchanged(self._store.snapshot)
        return self._store.apply_command(Rename(node_id=node_id, label=label))

    def cancel_rename(self) -> None:
        self._renaming_id = None

    # -------------------------------------------------------------------------
    # Directional moves
    # -------------------------------------------------------------------------

    def _navigate(self, snapshot: TreeSnapshot, key: Key) -> Optional[str]:
        selected = snapshot.selected_id
        if selected is None:
            roots = self._visible_roots(snapshot)
            return roots[0] if roots else None

        if key is Key.ARROW_RIGHT:
            node = snapshot.node(selected)
            if not node.expanded:
                return None
            children = self._visible_children(snapshot, selected)
            if not children:
                return None
            return children[len(children) // 2]

        if key is Key.ARROW_LEFT:
            return snapshot.parent_of(selected)

        parent_id = snapshot.parent_of(selected)
        if parent_id is None:
            siblings = self._visible_roots(snapshot)
        else:
            siblings = self._visible_children(snapshot, parent_id)
        if selected not in siblings:
            return None

        index = siblings.index(selected)
        index += -1 if key is Key.ARROW_UP else 1
        if 0 <= index < len(siblings):
            return siblings[index]
        return None

    def _visible_children(self, snapshot: TreeSnapshot, node_id: str) -> Tuple[str, ...]:
        return _vertical_order(snapshot, snapshot.children_of(node_id))

    def _visible_roots(self, snapshot: TreeSnapshot) -> Tuple[str, ...]:
        return _vertical_order(snapshot, snapshot.roots())


def _vertical_order(snapshot: TreeSnapshot, node_ids: Sequence[str]) -> Tuple[str, ...]:
    """Visible ids sorted top to bottom; creation order breaks ties."""
    creation = {n.node_id: i for i, n in enumerate(snapshot.nodes)}
    visible = []
    for node_id in dict.fromkeys(node_ids):
        node = snapshot.node(node_id)
        if node is not None and not node.hidden:
            visible.append(node)
    visible.sort(key=lambda n: (n.position.y, creation[n.node_id]))
    return tuple(n.node_id for n in visible)
