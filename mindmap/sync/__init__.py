"""
Sync Layer

RESPONSIBILITY: Debounced outbound pushes, inbound wholesale replace
ALLOWED INPUTS: Snapshots (outbound), wire documents (inbound)
OUTPUTS: SaveResult, validated snapshots, Error notifications

WHAT THIS LAYER MUST NOT DO:
============================
- Merge concurrent edits (last full snapshot wins)
- Retry failed pushes
- Roll back local state on failure
"""

from .clock import Clock, ManualClock, MonotonicClock
from .gateway import SyncGateway
from .persistence import DocumentStore, InMemoryDocumentStore

__all__ = [
    'Clock', 'ManualClock', 'MonotonicClock',
    'SyncGateway',
    'DocumentStore', 'InMemoryDocumentStore',
]
