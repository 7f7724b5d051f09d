"""
ArenaOSC - outbound transport commands for Arena.

Commands go to Arena's OSC input port through a plain UDP client; only
'?' queries need to leave from the listener's port. Commands that change
which clip is playing schedule a quick refresh so the mirrored state
catches up without waiting for the periodic refresh.
"""

from typing import Optional

from pythonosc import udp_client

from .addresses import clip_address, clip_position_address, clip_speed_address, column_address, layer_address
from .layer_state import DIRECTION_BACKWARD, DIRECTION_FORWARD, DIRECTION_PAUSED
from .log import log as console_log

DIRECTIONS = {
    'backward': DIRECTION_BACKWARD,
    'pause': DIRECTION_PAUSED,
    'forward': DIRECTION_FORWARD,
}


class ArenaOSC:
    """
    Wrapper for OSC commands to Arena.

    Clip transport commands address the clip currently active on the
    layer, as tracked by ArenaState, and do nothing when no clip is active.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 7000, state=None):
        self.client = udp_client.SimpleUDPClient(host, port)
        self.host = host
        self.port = port
        self.state = state

    def log(self, level: str, message: str):
        if self.state is not None:
            self.state.log(level, message)
        else:
            console_log(level, message)

    def send(self, address: str, value):
        try:
            self.client.send_message(address, value)
        except OSError as e:
            self.log('error', f"OSC send error: {address}: {e}")

    def _refresh(self):
        if self.state is not None:
            self.state.scheduler.schedule_quick_refresh()

    def _active_clip(self, layer: int) -> Optional[int]:
        if self.state is None:
            return None
        return self.state.get_active_clip_column(layer)

    def _duration(self, layer: int, action: str) -> float:
        duration = self.state.get_layer_duration_seconds(layer) if self.state else 0.0
        if duration <= 0:
            self.log('warn', f"{action}: No duration data for layer {layer}")
        return duration

    # ============= COLUMNS =============

    def trigger_column(self, column: int):
        self.send(column_address(column, 'connect'), 1)
        self._refresh()

    def next_column(self):
        self.send('/composition/connectnextcolumn', 1)
        self._refresh()

    def prev_column(self):
        self.send('/composition/connectprevcolumn', 1)
        self._refresh()

    def select_column(self, column: int):
        """Highlight a column without triggering it"""
        self.send(column_address(column, 'select'), 1)

    # ============= CLIPS =============

    def connect_clip(self, layer: int, column: int):
        self.send(clip_address(layer, column, 'connect'), 1)
        self._refresh()

    def select_clip(self, layer: int, column: int):
        self.send(clip_address(layer, column, 'select'), 1)

    def clear_layer(self, layer: int):
        self.send(layer_address(layer, 'clear'), 1)
        self._refresh()

    def clear_all_layers(self):
        self.send('/composition/disconnectall', 1)

    def layer_next_clip(self, layer: int):
        self.send(layer_address(layer, 'connectnextclip'), 1)
        self._refresh()

    def layer_prev_clip(self, layer: int):
        self.send(layer_address(layer, 'connectprevclip'), 1)
        self._refresh()

    # ============= TRANSPORT =============

    def set_direction(self, layer: int, direction: str):
        """
        Set playback direction: 'backward', 'pause', 'forward' or 'toggle'.
        Toggle resumes a paused layer and pauses anything else.
        """
        if direction == 'toggle':
            layer_state = self.state.get_layer(layer) if self.state else None
            if layer_state is not None and layer_state.direction == DIRECTION_PAUSED:
                value = DIRECTION_FORWARD
            else:
                value = DIRECTION_PAUSED
        else:
            value = DIRECTIONS[direction]
        self.send(layer_address(layer, 'direction'), value)

    def set_clip_speed(self, layer: int, speed: float):
        """Raw normalized speed value for the active clip (Arena's slider is nonlinear)."""
        clip = self._active_clip(layer)
        if clip:
            self.send(clip_speed_address(layer, clip), float(speed))

    def set_clip_opacity(self, layer: int, value: float):
        clip = self._active_clip(layer)
        if clip:
            self.send(clip_address(layer, clip, 'video/opacity'), float(value))

    def set_clip_volume(self, layer: int, value: float):
        clip = self._active_clip(layer)
        if clip:
            self.send(clip_address(layer, clip, 'audio/volume'), float(value))

    def go_to_position(self, layer: int, position: float):
        """Jump to a normalized position (0.0 = start, 1.0 = end) in the active clip"""
        clip = self._active_clip(layer)
        if clip:
            self.send(clip_position_address(layer, clip), float(position))

    def go_to_time(self, layer: int, seconds: float):
        clip = self._active_clip(layer)
        if not clip:
            return
        duration = self._duration(layer, "GoToTime")
        if duration <= 0:
            return
        normalized = max(0.0, min(1.0, seconds / duration))
        self.send(clip_position_address(layer, clip), normalized)

    def jog_time(self, layer: int, seconds: float):
        """Jump forward (positive) or backward (negative) by a number of seconds"""
        clip = self._active_clip(layer)
        if not clip:
            return
        duration = self._duration(layer, "JogTime")
        if duration <= 0:
            return
        elapsed = self.state.get_layer_elapsed_seconds(layer)
        target = max(0.0, min(duration, elapsed + seconds))
        self.send(clip_position_address(layer, clip), target / duration)

    def go_to_seconds_from_end(self, layer: int, seconds: float):
        clip = self._active_clip(layer)
        if not clip:
            return
        duration = self._duration(layer, "GoToSecondsFromEnd")
        if duration <= 0:
            return
        target = max(0.0, duration - seconds)
        self.send(clip_position_address(layer, clip), target / duration)

    def restart_clip(self, layer: int):
        clip = self._active_clip(layer)
        if clip:
            self.send(clip_position_address(layer, clip), 0.0)

    # ============= COMPOSITION / LAYER LEVELS =============

    def set_composition_master(self, value: float):
        self.send('/composition/master', float(value))

    def set_composition_opacity(self, value: float):
        self.send('/composition/video/opacity', float(value))

    def set_composition_volume(self, value: float):
        self.send('/composition/audio/volume', float(value))

    def set_composition_speed(self, value: float):
        """Normalized composition speed (0.5 = normal)"""
        self.send('/composition/speed', float(value))

    def set_composition_tempo(self, bpm: float):
        self.send('/composition/tempocontroller/tempo', float(bpm))

    def tempo_tap(self):
        self.send('/composition/tempocontroller/tempotap', 1)

    def tempo_resync(self):
        self.send('/composition/tempocontroller/resync', 1)

    def set_layer_master(self, layer: int, value: float):
        self.send(layer_address(layer, 'master'), float(value))

    def set_layer_opacity(self, layer: int, value: float):
        self.send(layer_address(layer, 'video/opacity'), float(value))

    def set_layer_volume(self, layer: int, value: float):
        self.send(layer_address(layer, 'audio/volume'), float(value))
