"""
Per-layer state records mirrored from Arena's OSC output.

One LayerState per layer index, each holding the single clip currently
driving the layer's output plus scratch state for duration estimation.
"""

from dataclasses import dataclass, field
from typing import List, Optional

# Layer direction values as sent by Arena
DIRECTION_BACKWARD = 0
DIRECTION_PAUSED = 1
DIRECTION_FORWARD = 2

# Clip connected values: 0=disconnected, 1=in deck, 2=connected, 3=connected+selected
CONNECTED_NONE = 0
CONNECTED_STAGED = 1
CONNECTED = 2
CONNECTED_SELECTED = 3


@dataclass
class ClipState:
    """The clip currently considered active (output) on a layer."""
    active_clip: int = 0  # Column index, 0 = none
    connected: int = CONNECTED_NONE
    position: float = 0.0  # Normalized
    duration: float = 0.0  # Normalized, 0 = unknown
    duration_estimated: bool = False
    queried: bool = False  # Duration/name query already sent for this instance
    speed: float = 0.0
    name: str = ""

    def reset(self):
        """Forget everything known about the previous clip instance."""
        self.position = 0.0
        self.duration = 0.0
        self.duration_estimated = False
        self.queried = False
        self.name = ""

    def adopt(self, column: int, connected: int = CONNECTED):
        """Track a new clip instance on this layer."""
        self.active_clip = column
        self.connected = connected
        self.reset()

    def disconnect(self):
        self.active_clip = 0
        self.connected = CONNECTED_NONE
        self.position = 0.0
        self.duration = 0.0
        self.name = ""


@dataclass
class EstimationState:
    """Scratch state for the duration estimator."""
    prev_pos: float = 0.0
    prev_time: Optional[float] = None
    samples: List[float] = field(default_factory=list)  # Seconds, newest last
    estimated_duration_sec: float = 0.0
    settled: bool = False

    def reset(self):
        self.prev_pos = 0.0
        self.prev_time = None
        self.samples = []
        self.estimated_duration_sec = 0.0
        self.settled = False


@dataclass
class LayerState:
    """State for a single layer."""
    master: float = 1.0
    opacity: float = 1.0
    volume: float = 1.0
    bypassed: bool = False
    direction: int = DIRECTION_FORWARD
    # Output position of the layer itself - source of truth for which clip is outputting
    layer_position: Optional[float] = None
    clip: ClipState = field(default_factory=ClipState)
    estimation: EstimationState = field(default_factory=EstimationState)

    def invalidate_clip_info(self):
        """
        Drop duration, name and estimation for the tracked clip while keeping
        its identity, so the next position update re-queries.
        """
        self.clip.duration = 0.0
        self.clip.duration_estimated = False
        self.clip.queried = False
        self.clip.name = ""
        self.estimation.reset()
