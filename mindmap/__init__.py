"""
Mind-Map Tree Engine
====================

Forest data model, command set, visibility and layout, keyboard
navigation and snapshot synchronization for a collaborative mind map
shared by one editor and one read-only viewer.

LAYER FLOW:
===========
1. Interaction: key presses -> commands / selection moves
2. Core: commands -> validated snapshot -> visibility -> layout
3. Sync: snapshot -> debounced push; remote document -> wholesale replace
"""

from .config import EditorConfig, LayoutConfig, SyncConfig
from .contracts import Edge, Node, Position, TreeSnapshot
from .core import (
    AddChild, AddSibling, DeleteSelected, Rename, ToggleExpand, Select,
    CommandOutcome, CommandProcessor, LayoutEngine, TreeStore
)
from .interaction import KeyEvent, NavigationStateMachine
from .session import MeetingSession, SessionRole, SessionStatus
from .sync import InMemoryDocumentStore, SyncGateway

__version__ = "0.1.0"

__all__ = [
    'EditorConfig', 'LayoutConfig', 'SyncConfig',
    'Edge', 'Node', 'Position', 'TreeSnapshot',
    'AddChild', 'AddSibling', 'DeleteSelected', 'Rename', 'ToggleExpand', 'Select',
    'CommandOutcome', 'CommandProcessor', 'LayoutEngine', 'TreeStore',
    'KeyEvent', 'NavigationStateMachine',
    'MeetingSession', 'SessionRole', 'SessionStatus',
    'InMemoryDocumentStore', 'SyncGateway',
]
