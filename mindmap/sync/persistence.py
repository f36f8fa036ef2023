"""
Document Persistence
====================

Key-value document store keyed by session id, with change notification.

RESPONSIBILITY: Store wire documents, notify subscribers of new revisions
OUTPUTS: SaveResult, wire dicts delivered to subscribers

WHAT THIS LAYER MUST NOT DO:
============================
- Merge documents (last full write wins)
- Interpret nodes or edges
- Hand out references to stored data (copies only)
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

from ..contracts.base import Error, ErrorCode, SaveResult


logger = logging.getLogger(__name__)

DocumentCallback = Callable[[Dict[str, Any], int], None]
ErrorCallback = Callable[[Error], None]
Unsubscribe = Callable[[], None]


# =============================================================================
# STORE INTERFACE (Dependency Inversion)
# =============================================================================

class DocumentStore:
    """
    Abstract document store.

    Implementations may be in-process, HTTP, or a hosted realtime
    database, but all share last-writer-wins semantics.
    """

    def save(self, document_id: str, document: Dict[str, Any]) -> SaveResult:
        """Replace the stored document. Never raises for transport errors."""
        raise NotImplementedError

    def load(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Current document, or None if never written."""
        raise NotImplementedError

    def subscribe(
        self,
        document_id: str,
        on_document: DocumentCallback,
        on_error: Optional[ErrorCallback] = None
    ) -> Unsubscribe:
        """Deliver every new revision to on_document(document, revision)."""
        raise NotImplementedError

    def freeze(self, document_id: str) -> SaveResult:
        """Make the document read-only history."""
        raise NotImplementedError

    def poll(self) -> int:
        """
        Deliver pending notifications on the caller's thread.

        Push-capable stores deliver inside save() and return 0 here.
        Returns the number of documents delivered.
        """
        return 0

    # -------------------------------------------------------------------------
    # Async path (used by SyncGateway.run)
    # -------------------------------------------------------------------------

    async def save_async(self, document_id: str, document: Dict[str, Any]) -> SaveResult:
        """
        Non-blocking save for the event loop.
        In-process stores have nothing to wait on and answer directly.
        """
        return self.save(document_id, document)

    async def poll_async(self) -> int:
        return self.poll()


# =============================================================================
# IN-MEMORY STORE (Reference Implementation)
# =============================================================================

@dataclass
class _StoredDocument:
    document: Dict[str, Any]
    revision: int
    frozen: bool = False


class InMemoryDocumentStore(DocumentStore):
    """
    In-process store with synchronous notification.

    Suitable for tests, for the HTTP service, and for two clients
    sharing one process.
    """

    def __init__(self):
        self._documents: Dict[str, _StoredDocument] = {}
        self._subscribers: Dict[str, List[DocumentCallback]] = {}

    def save(self, document_id: str, document: Dict[str, Any]) -> SaveResult:
        current = self._documents.get(document_id)
        if current is not None and current.frozen:
            return SaveResult.failure(document_id, Error.create(
                ErrorCode.DOCUMENT_FROZEN,
                "Document is frozen and can no longer be written",
                document_id=document_id,
            ))

        revision = (current.revision if current else 0) + 1
        self._documents[document_id] = _StoredDocument(
            document=deepcopy(document),
            revision=revision,
        )
        logger.debug("Stored %s revision %d", document_id, revision)
        self._notify(document_id)
        return SaveResult.success(document_id, revision)

    def load(self, document_id: str) -> Optional[Dict[str, Any]]:
        stored = self._documents.get(document_id)
        return deepcopy(stored.document) if stored else None

    def revision(self, document_id: str) -> int:
        stored = self._documents.get(document_id)
        return stored.revision if stored else 0

    def document_ids(self) -> List[str]:
        return list(self._documents)

    def is_frozen(self, document_id: str) -> bool:
        stored = self._documents.get(document_id)
        return bool(stored and stored.frozen)

    def subscribe(
        self,
        document_id: str,
        on_document: DocumentCallback,
        on_error: Optional[ErrorCallback] = None
    ) -> Unsubscribe:
        callbacks = self._subscribers.setdefault(document_id, [])
        callbacks.append(on_document)

        def unsubscribe() -> None:
            if on_document in callbacks:
                callbacks.remove(on_document)

        return unsubscribe

    def freeze(self, document_id: str) -> SaveResult:
        stored = self._documents.get(document_id)
        if stored is None:
            return SaveResult.failure(document_id, Error.create(
                ErrorCode.DOCUMENT_NOT_FOUND,
                "Cannot freeze a document that was never saved",
                document_id=document_id,
            ))
        stored.frozen = True
        return SaveResult.success(document_id, stored.revision)

    def _notify(self, document_id: str) -> None:
        stored = self._documents[document_id]
        # Copy the list: a callback may unsubscribe while we iterate
        for callback in list(self._subscribers.get(document_id, [])):
            callback(deepcopy(stored.document), stored.revision)
