"""
Core Engine Layer

RESPONSIBILITY: Tree topology, visibility, layout and the command set
ALLOWED INPUTS: Snapshots and commands (contracts only)
OUTPUTS: New snapshots plus focus / rename requests

WHAT THIS LAYER MUST NOT DO:
============================
- Talk to persistence or the network
- Interpret keyboard events
- Paint anything
"""

from .commands import (
    AddChild, AddSibling, DeleteSelected, Rename, ToggleExpand, Select,
    Command, CommandOutcome, CommandProcessor
)
from .layout import FocusRequest, LayoutEngine
from .store import TreeStore, apply_command
from .topology import ForestCheck, check_forest
from .visibility import resolve, visible_subset

__all__ = [
    'AddChild', 'AddSibling', 'DeleteSelected', 'Rename', 'ToggleExpand', 'Select',
    'Command', 'CommandOutcome', 'CommandProcessor',
    'FocusRequest', 'LayoutEngine',
    'TreeStore', 'apply_command',
    'ForestCheck', 'check_forest',
    'resolve', 'visible_subset',
]
