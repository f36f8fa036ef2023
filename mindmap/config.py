"""
Engine Configuration

Dataclass configuration for layout, sync and editing defaults.
Values can be overridden from MINDMAP_* environment variables.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import os


DEFAULT_LABEL = "New Topic"
DEFAULT_THEME = "1on1 Session"


@dataclass(frozen=True)
class LayoutConfig:
    """
    Geometry constants for the hierarchical layout.

    Node boxes are treated as fixed size, so label text never
    changes the layout.
    """
    rank_spacing: float = 250.0   # x distance between layers
    node_spacing: float = 80.0    # y distance between adjacent slots
    origin_x: float = 0.0
    origin_y: float = 0.0

    def __post_init__(self):
        if self.rank_spacing <= 0 or self.node_spacing <= 0:
            raise ValueError("Layout spacing must be positive")


@dataclass(frozen=True)
class SyncConfig:
    """
    Outbound push policy.

    No retry, no timeout - a failed push is reported and dropped.
    """
    debounce_seconds: float = 1.0
    poll_interval_seconds: float = 0.25

    def __post_init__(self):
        if self.debounce_seconds < 0:
            raise ValueError("debounce_seconds must be >= 0")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")


@dataclass
class EditorConfig:
    """Unified configuration for one editing session."""
    default_label: str = DEFAULT_LABEL
    default_theme: str = DEFAULT_THEME
    layout: LayoutConfig = None
    sync: SyncConfig = None

    def __post_init__(self):
        self.layout = self.layout or LayoutConfig()
        self.sync = self.sync or SyncConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'EditorConfig':
        env = os.environ if environ is None else environ

        layout = LayoutConfig(
            rank_spacing=float(env.get("MINDMAP_RANK_SPACING", LayoutConfig.rank_spacing)),
            node_spacing=float(env.get("MINDMAP_NODE_SPACING", LayoutConfig.node_spacing)),
        )
        sync = SyncConfig(
            debounce_seconds=float(env.get("MINDMAP_DEBOUNCE_SECONDS", SyncConfig.debounce_seconds)),
            poll_interval_seconds=float(
                env.get("MINDMAP_POLL_INTERVAL_SECONDS", SyncConfig.poll_interval_seconds)
            ),
        )
        return cls(
            default_label=env.get("MINDMAP_DEFAULT_LABEL", DEFAULT_LABEL),
            default_theme=env.get("MINDMAP_DEFAULT_THEME", DEFAULT_THEME),
            layout=layout,
            sync=sync,
        )
