"""
Sync Gateway
============

The only asynchronous boundary of the editor.

OUTBOUND (debounced):
=====================
push() replaces the pending snapshot and restarts the window.
pump() saves it once `debounce_seconds` have passed without a newer push.
Only the newest state is ever queued, so no cancel token is needed.
A failed save is logged and reported; it is NOT retried and local
state is NOT rolled back.

INBOUND (wholesale replace):
============================
Every remote document is decoded and validated. A valid one is handed
to the subscriber as a full snapshot; there is no field-level merge.
A malformed one is rejected and reported; local state is untouched.

ECHOES:
=======
Stores deliver (document, revision). Anything delivered while one of
our saves is in flight is held back until the save returns its
revision; deliveries at or below that revision are our own write (or
older) and are dropped, newer ones are applied.

CONSISTENCY:
============
Last writer wins at snapshot granularity. Two concurrent editors
overwrite each other's unseen changes. This is a known limitation.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
import asyncio
import logging

from ..config import SyncConfig
from ..contracts.base import Error, ErrorCode, MalformedSnapshotError, SaveResult
from ..contracts.document import TreeSnapshot
from ..contracts.wire import decode_snapshot, encode_snapshot
from ..core.topology import check_forest
from .clock import Clock, MonotonicClock
from .persistence import DocumentStore, ErrorCallback, Unsubscribe


logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[TreeSnapshot], None]


class SyncGateway:
    """
    Debounced push + subscription for one document.

    GUARANTEES:
    ===========
    1. N pushes inside one window produce exactly one save
    2. The saved document is the most recent pushed snapshot
    3. Errors never escape: they are logged and passed to on_error,
       always tagged with the document id
    4. Our own saves echoed back by the store are not re-applied;
       every newer remote revision is
    """

    def __init__(
        self,
        document_id: str,
        store: DocumentStore,
        config: Optional[SyncConfig] = None,
        clock: Optional[Clock] = None,
        on_error: Optional[ErrorCallback] = None
    ):
        self._document_id = document_id
        self._store = store
        self._config = config or SyncConfig()
        self._clock = clock or MonotonicClock()
        self._on_error = on_error

        self._pending: Optional[Dict[str, Any]] = None
        self._due_at: Optional[float] = None
        self._saving = False
        self._held: List[Tuple[Dict[str, Any], int]] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._on_snapshot: Optional[SnapshotCallback] = None
        self._closed = False

        self._save_count = 0
        self._failure_count = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def due_at(self) -> Optional[float]:
        return self._due_at

    @property
    def save_count(self) -> int:
        return self._save_count

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def closed(self) -> bool:
        return self._closed

    # -------------------------------------------------------------------------
    # Outbound
    # -------------------------------------------------------------------------

    def push(self, snapshot: TreeSnapshot) -> None:
        """Queue a snapshot; supersedes anything still pending."""
        if self._closed:
            logger.debug("Push after close ignored for %s", self._document_id)
            return
        self._pending = encode_snapshot(snapshot)
        self._due_at = self._clock.now() + self._config.debounce_seconds

    def pump(self) -> Optional[SaveResult]:
        """
        Drive the gateway once: save if the window elapsed, then
        collect remote changes from poll-based stores.
        """
        result = None
        if self._is_due():
            result = self._save_pending()
        if self._unsubscribe is not None:
            self._store.poll()
        return result

    async def pump_async(self) -> Optional[SaveResult]:
        """pump() for the event loop: store I/O is awaited, never blocking."""
        result = None
        if self._is_due():
            document = self._take_pending()
            self._saving = True
            try:
                result = await self._store.save_async(self._document_id, document)
            finally:
                self._saving = False
            self._finish_save(result)
        if self._unsubscribe is not None:
            await self._store.poll_async()
        return result

    def flush(self) -> Optional[SaveResult]:
        """Save the pending snapshot now, ignoring the window."""
        if self._pending is None:
            return None
        return self._save_pending()

    def _is_due(self) -> bool:
        return self._pending is not None and self._clock.now() >= self._due_at

    def _take_pending(self) -> Dict[str, Any]:
        document = self._pending
        self._pending = None
        self._due_at = None
        return document

    def _save_pending(self) -> SaveResult:
        document = self._take_pending()
        # Push-style stores notify subscribers inside save()
        self._saving = True
        try:
            result = self._store.save(self._document_id, document)
        finally:
            self._saving = False
        self._finish_save(result)
        return result

    def _finish_save(self, result: SaveResult) -> None:
        if result.is_success:
            self._save_count += 1
            logger.debug("Saved %s revision %d", self._document_id, result.revision)
        else:
            self._failure_count += 1
            logger.error(
                "Push failed for %s: %s", self._document_id, result.error.message
            )
            self._report(result.error)
        self._release_held(result)

    def _release_held(self, result: SaveResult) -> None:
        held, self._held = self._held, []
        for document, revision in held:
            if result.is_success and revision <= result.revision:
                logger.debug(
                    "Ignoring revision %d of %s: not newer than our save",
                    revision, self._document_id,
                )
                continue
            self._apply_remote(document)

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def subscribe(self, on_snapshot: SnapshotCallback) -> None:
        """Start delivering remote snapshots. Re-subscribing replaces the callback."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._on_snapshot = on_snapshot
        self._unsubscribe = self._store.subscribe(
            self._document_id,
            self._on_remote_document,
            self._report,
        )

    def _on_remote_document(self, document: Dict[str, Any], revision: int) -> None:
        if self._saving:
            self._held.append((document, revision))
            return
        self._apply_remote(document)

    def _apply_remote(self, document: Dict[str, Any]) -> None:
        try:
            snapshot = decode_snapshot(document)
        except MalformedSnapshotError as e:
            logger.warning("Rejected remote snapshot for %s: %s", self._document_id, e)
            self._report(Error.create(ErrorCode.MALFORMED_SNAPSHOT, str(e)))
            return

        check = check_forest(snapshot.nodes, snapshot.edges)
        if not check.is_valid:
            logger.warning(
                "Rejected remote snapshot for %s: %s", self._document_id, check.reason
            )
            self._report(Error.create(ErrorCode.MALFORMED_SNAPSHOT, check.reason))
            return

        if self._pending is not None:
            # The remote document replaces what the pending push was based on
            logger.info("Remote snapshot supersedes pending push for %s", self._document_id)
            self._pending = None
            self._due_at = None

        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> Optional[SaveResult]:
        """Flush pending work and stop listening."""
        if self._closed:
            return None
        result = self.flush()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._closed = True
        return result

    async def run(self) -> None:
        """Pump until close(), yielding to the event loop between ticks."""
        interval = self._config.poll_interval_seconds
        while not self._closed:
            await self.pump_async()
            await asyncio.sleep(interval)

    def _report(self, error: Error) -> None:
        if self._on_error is None:
            return
        if "document_id" not in dict(error.context):
            error = error.with_context("document_id", self._document_id)
        self._on_error(error)
