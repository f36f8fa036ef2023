"""
Base Contracts and Shared Types

Foundational types shared by every layer of the mind-map engine.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- No imports from core, sync or interaction
- Errors are data, never exceptions crossing a layer
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Optional, Tuple


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the sync boundary.

    Editing commands never produce errors: invalid commands are no-ops.
    Only persistence and remote delivery can fail.
    """
    # Outbound
    PUSH_FAILED = auto()
    DOCUMENT_FROZEN = auto()

    # Inbound
    SUBSCRIBE_FAILED = auto()
    MALFORMED_SNAPSHOT = auto()

    # Lookup
    DOCUMENT_NOT_FOUND = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with context.
    Errors are data, not exceptions - they can be logged and shown.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: str) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple(sorted((k, str(v)) for k, v in context.items()))
        )

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


@dataclass(frozen=True)
class SaveResult:
    """
    Outcome of a persistence write.
    Either ok OR carries an error, never both.
    """
    document_id: str
    revision: int = 0
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(document_id: str, revision: int) -> SaveResult:
        return SaveResult(document_id=document_id, revision=revision)

    @staticmethod
    def failure(document_id: str, error: Error) -> SaveResult:
        return SaveResult(document_id=document_id, error=error)


class MalformedSnapshotError(ValueError):
    """Raised by the wire decoder when a remote document cannot be trusted."""
    pass
