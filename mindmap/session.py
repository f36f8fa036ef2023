"""
Meeting Session
===============

Wires one document's tree store, navigation and sync gateway together
for one participant.

ROLES:
======
EDITOR  applies commands and key presses, pushes snapshots (debounced)
VIEWER  read-only; only ever replaces its snapshot from the change feed

LIFECYCLE:
==========
start  -> document loaded from the store, or seeded with one root
          labeled with the session theme
live   -> edits flow out, remote snapshots flow in
end    -> final snapshot (with action items) saved, document frozen
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import logging

from .config import EditorConfig
from .contracts.base import MalformedSnapshotError, SaveResult
from .contracts.document import TreeSnapshot
from .contracts.wire import decode_snapshot
from .core.commands import Command, CommandOutcome, CommandProcessor, IdFactory, Select
from .core.store import TreeStore
from .core.topology import check_forest
from .interaction.navigation import KeyEvent, NavigationOutcome, NavigationStateMachine
from .sync.clock import Clock
from .sync.gateway import SyncGateway
from .sync.persistence import DocumentStore, ErrorCallback


logger = logging.getLogger(__name__)


class SessionRole(Enum):
    EDITOR = "editor"
    VIEWER = "viewer"


class SessionStatus(Enum):
    LIVE = "live"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TranscriptEntry:
    """
    One captioned utterance.
    Kept as a plain note next to the tree, never turned into a node.
    """
    speaker_role: str
    text: str
    timestamp: datetime


class MeetingSession:
    """One participant's view of a live mind-map document."""

    def __init__(
        self,
        document_id: str,
        store: DocumentStore,
        role: SessionRole = SessionRole.EDITOR,
        theme: Optional[str] = None,
        config: Optional[EditorConfig] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[IdFactory] = None,
        on_error: Optional[ErrorCallback] = None
    ):
        self._document_id = document_id
        self._store = store
        self._role = role
        self._config = config or EditorConfig()
        self._status = SessionStatus.LIVE
        self._notes: List[TranscriptEntry] = []

        processor = CommandProcessor(self._config, id_factory=id_factory)
        initial, loaded = self._initial_snapshot(processor, theme)

        self._tree = TreeStore(initial, processor)
        self._navigation = NavigationStateMachine(
            self._tree, read_only=role is SessionRole.VIEWER
        )
        self._gateway = SyncGateway(
            document_id,
            store,
            config=self._config.sync,
            clock=clock,
            on_error=on_error,
        )
        self._gateway.subscribe(self.apply_remote)

        if self.is_editor and not loaded:
            # Make the seeded root visible to a viewer straight away
            self._gateway.push(self._tree.snapshot)
            self._gateway.flush()

        logger.info(
            "Session %s started as %s (%s)", document_id, role.value,
            "loaded" if loaded else "seeded"
        )

    def _initial_snapshot(
        self,
        processor: CommandProcessor,
        theme: Optional[str]
    ) -> Tuple[TreeSnapshot, bool]:
        document = self._store.load(self._document_id)
        if document is not None:
            try:
                snapshot = decode_snapshot(document)
            except MalformedSnapshotError as e:
                logger.warning("Stored document %s unusable, reseeding: %s", self._document_id, e)
            else:
                if check_forest(snapshot.nodes, snapshot.edges).is_valid:
                    return processor.relayout(snapshot), True
                logger.warning("Stored document %s violates the forest invariant, reseeding", self._document_id)
        return processor.seed_snapshot(theme), False

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def role(self) -> SessionRole:
        return self._role

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_editor(self) -> bool:
        return self._role is SessionRole.EDITOR

    @property
    def is_live(self) -> bool:
        return self._status is SessionStatus.LIVE

    @property
    def snapshot(self) -> TreeSnapshot:
        return self._tree.snapshot

    @property
    def navigation(self) -> NavigationStateMachine:
        return self._navigation

    @property
    def gateway(self) -> SyncGateway:
        return self._gateway

    @property
    def notes(self) -> Tuple[TranscriptEntry, ...]:
        return tuple(self._notes)

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def dispatch(self, command: Command) -> CommandOutcome:
        if not (self.is_editor and self.is_live):
            return CommandOutcome.unchanged(self.snapshot)
        outcome = self._tree.apply_command(command)
        self._after_edit(command, outcome.changed)
        return outcome

    def handle_key(self, event: KeyEvent) -> NavigationOutcome:
        if not self.is_live:
            return NavigationOutcome.ignored(self.snapshot)
        outcome = self._navigation.handle_key(event)
        self._after_edit(outcome.command, outcome.changed)
        return outcome

    def commit_rename(self, label: str) -> CommandOutcome:
        if not self.is_live:
            self._navigation.cancel_rename()
            return CommandOutcome.unchanged(self.snapshot)
        outcome = self._navigation.commit_rename(label)
        if outcome.changed:
            self._gateway.push(outcome.snapshot)
        return outcome

    def _after_edit(self, command: Optional[Command], changed: bool) -> None:
        # Selection is UI state and is never persisted
        if changed and command is not None and not isinstance(command, Select):
            self._gateway.push(self._tree.snapshot)

    # -------------------------------------------------------------------------
    # Remote updates
    # -------------------------------------------------------------------------

    def apply_remote(self, snapshot: TreeSnapshot) -> bool:
        """Replace the local document wholesale with a remote one."""
        if not self._tree.replace(snapshot):
            return False
        renaming = self._navigation.renaming_id
        if renaming is not None and not self.snapshot.has_node(renaming):
            self._navigation.cancel_rename()
        logger.debug("Session %s applied remote snapshot (%d nodes)", self._document_id, len(snapshot))
        return True

    def pump(self) -> Optional[SaveResult]:
        return self._gateway.pump()

    async def run(self) -> None:
        await self._gateway.run()

    # -------------------------------------------------------------------------
    # Transcript notes
    # -------------------------------------------------------------------------

    def append_transcript(
        self,
        speaker_role: str,
        text: str,
        timestamp: Optional[datetime] = None
    ) -> Optional[TranscriptEntry]:
        if not text.strip():
            return None
        entry = TranscriptEntry(
            speaker_role=speaker_role,
            text=text,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._notes.append(entry)
        return entry

    # -------------------------------------------------------------------------
    # End of session
    # -------------------------------------------------------------------------

    def end(self, action_items: Optional[Sequence[str]] = None) -> Optional[SaveResult]:
        """
        Persist the final snapshot and freeze the document.

        Viewers simply stop listening. Returns the final save result
        for editors, None otherwise.
        """
        if not self.is_live:
            return None
        self._status = SessionStatus.COMPLETED
        self._navigation.cancel_rename()

        if not self.is_editor:
            self._gateway.close()
            return None

        final = self._tree.snapshot
        if action_items is not None:
            final = replace(final, action_items=tuple(action_items))
            self._tree.replace(final)

        self._gateway.push(final)
        result = self._gateway.close()

        frozen = self._store.freeze(self._document_id)
        if frozen.is_failure:
            logger.error("Could not freeze %s: %s", self._document_id, frozen.error.message)
        logger.info("Session %s ended", self._document_id)
        return result
