"""
Tree Store
==========

Holds the current snapshot of ONE open document.

GUARANTEES:
===========
1. Every candidate snapshot is checked against the forest invariant
   (no cycle, no dangling edge endpoint, at most one selection)
   before it becomes current
2. A failing candidate is a silent no-op - no partial mutation
3. Snapshots are immutable; the store only swaps references
"""

from __future__ import annotations
from typing import Optional
import logging

from ..contracts.document import TreeSnapshot
from .commands import Command, CommandOutcome, CommandProcessor
from .topology import check_forest


logger = logging.getLogger(__name__)


def apply_command(
    snapshot: TreeSnapshot,
    command: Command,
    processor: CommandProcessor
) -> CommandOutcome:
    """
    Pure, validated command application.

    Same snapshot + same command + same id sequence = same outcome.
    """
    outcome = processor.apply(snapshot, command)
    if not outcome.changed:
        return outcome

    check = check_forest(outcome.snapshot.nodes, outcome.snapshot.edges)
    if not check.is_valid:
        logger.warning(
            "Rejected %s: %s", type(command).__name__, check.reason
        )
        return CommandOutcome.unchanged(snapshot)
    return outcome


class TreeStore:
    """
    Current (nodes, edges) for one document.

    The store owns no editing logic; it delegates to the processor
    and commits only validated results.
    """

    def __init__(
        self,
        snapshot: Optional[TreeSnapshot] = None,
        processor: Optional[CommandProcessor] = None
    ):
        self._processor = processor or CommandProcessor()
        self._snapshot = TreeSnapshot()
        if snapshot is not None:
            check = check_forest(snapshot.nodes, snapshot.edges)
            if check.is_valid:
                self._snapshot = snapshot
            else:
                logger.warning("Initial snapshot rejected, starting empty: %s", check.reason)

    @property
    def snapshot(self) -> TreeSnapshot:
        return self._snapshot

    @property
    def processor(self) -> CommandProcessor:
        return self._processor

    def apply_command(self, command: Command) -> CommandOutcome:
        outcome = apply_command(self._snapshot, command, self._processor)
        if outcome.changed:
            self._snapshot = outcome.snapshot
        return outcome

    def replace(self, snapshot: TreeSnapshot, keep_selection: bool = True) -> bool:
        """
        Install a full snapshot (remote update or initial load).

        The incoming document wins wholesale. Selection is UI state and
        is not part of the document, so the local selection is carried
        over when its node still exists.

        Returns False and keeps the current snapshot if the incoming
        one violates the forest invariant.
        """
        check = check_forest(snapshot.nodes, snapshot.edges)
        if not check.is_valid:
            logger.warning("Rejected snapshot replace: %s", check.reason)
            return False

        selected = self._snapshot.selected_id if keep_selection else None
        if not snapshot.has_node(selected):
            selected = None
        self._snapshot = self._processor.relayout(snapshot.with_selection(selected))
        return True
