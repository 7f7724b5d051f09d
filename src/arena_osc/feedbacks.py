"""
Feedback evaluation on top of ArenaState.

ArenaState signals the ids below when the underlying values may have
changed; subscribers re-evaluate with the functions here.
"""

from typing import Optional

FEEDBACK_PROGRESS_BAR = 'progress_bar'
FEEDBACK_CONNECTED_CLIP = 'connected_clip'
FEEDBACK_ACTIVE_COLUMN = 'active_column'

WARNING_SECONDS = 30
CRITICAL_SECONDS = 10


def countdown_warning(state, layer: int,
                      warning_seconds: float = WARNING_SECONDS,
                      critical_seconds: float = CRITICAL_SECONDS) -> Optional[str]:
    """
    Countdown level for a layer.

    Returns:
        'red' under critical_seconds, 'orange' under warning_seconds,
        None above that or when the duration is unknown
    """
    if state.get_layer_duration_seconds(layer) <= 0:
        return None

    remaining = state.get_layer_remaining_seconds(layer)
    if 0 < remaining <= critical_seconds:
        return 'red'
    if remaining <= warning_seconds:
        return 'orange'
    return None


def active_column(state, column: int) -> bool:
    return state.active_column == column


def connected_clip(state, layer: int, column: int) -> bool:
    """True if the clip at (layer, column) is the one driving the layer's output."""
    return state.get_active_clip_column(layer) == column
