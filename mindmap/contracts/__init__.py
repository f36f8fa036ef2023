"""
Contracts Layer

Immutable data shared by every other layer.

PRINCIPLES:
1. Immutable (Frozen)
2. No Business Logic
3. No Rendering Logic
"""

from .base import (
    ErrorCode, Error, SaveResult, MalformedSnapshotError
)
from .document import (
    Position, Node, Edge, TreeSnapshot, ROOT_NODE_TYPE, DEFAULT_NODE_TYPE
)
from .wire import (
    WireDocument, encode_snapshot, decode_snapshot
)

__all__ = [
    'ErrorCode', 'Error', 'SaveResult', 'MalformedSnapshotError',
    'Position', 'Node', 'Edge', 'TreeSnapshot', 'ROOT_NODE_TYPE', 'DEFAULT_NODE_TYPE',
    'WireDocument', 'encode_snapshot', 'decode_snapshot',
]
