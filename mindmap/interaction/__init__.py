"""
Interaction Layer

Responsibility:
Turn raw user input into selection moves and editing commands.
No rendering and no persistence here.
"""

from .navigation import (
    Key, KeyEvent, NavigationOutcome, NavigationStateMachine
)

__all__ = ['Key', 'KeyEvent', 'NavigationOutcome', 'NavigationStateMachine']
