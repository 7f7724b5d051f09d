"""
ArenaState - mirror of Arena's playback state built from its OSC output.

Arena pushes an unordered, partly redundant stream of OSC updates. Several
clips on the same layer can report transport positions at once (the one
outputting plus any being previewed), clip duration is not broadcast by
default and names arrive only when asked for. ArenaState reconciles that
stream into one active clip per layer and fills the gaps with queries and
duration estimation.

All methods run on a single event loop (message callbacks and timer
callbacks), so nothing here takes a lock.
"""

from typing import Dict, Optional, Set

from . import addresses
from .addresses import DEFAULT_COLUMN_NAME, ROOT
from .estimator import DurationEstimator
from .feedbacks import FEEDBACK_ACTIVE_COLUMN, FEEDBACK_CONNECTED_CLIP, FEEDBACK_PROGRESS_BAR
from .layer_state import CONNECTED, CONNECTED_NONE, ClipState, LayerState
from .log import log as console_log
from .query_scheduler import QUERY_THROTTLE, QUICK_REFRESH_DELAY, REFRESH_INTERVAL, QueryScheduler
from .timecode import MAX_RANGE, seconds_to_timecode
from .variables import ACTIVE_COLUMN, ACTIVE_COLUMN_NAME, OSC_DEFAULT_LAYERS, layer_variable_id

# Output position and clip position are compared with this tolerance to tell
# the outputting clip from a previewed one. Empirical, not documented by Arena.
POSITION_TOLERANCE = 1e-4

# Composition scalars: address -> attribute
COMPOSITION_SCALARS = {
    addresses.COMPOSITION_MASTER: 'composition_master',
    addresses.COMPOSITION_OPACITY: 'composition_opacity',
    addresses.COMPOSITION_VOLUME: 'composition_volume',
    addresses.COMPOSITION_TEMPO: 'composition_tempo',
}


class ArenaState:
    """
    Manages all state received from Arena's OSC output.

    Collaborators are injected:
        loop: provides time() and call_later() (an asyncio event loop)
        host: optional; provides log(), set_variable_values(),
              check_feedbacks(), register_variables(), get_osc_listener()
              and get_config(). Without a host, publishing and queries
              are silently skipped.
    """

    def __init__(self, loop, host=None,
                 max_range: float = MAX_RANGE,
                 position_tolerance: float = POSITION_TOLERANCE,
                 estimator: Optional[DurationEstimator] = None,
                 quick_refresh_delay: float = QUICK_REFRESH_DELAY,
                 refresh_interval: float = REFRESH_INTERVAL,
                 query_throttle: float = QUERY_THROTTLE):
        self.loop = loop
        self.host = host
        self.max_range = max_range
        self.position_tolerance = position_tolerance
        self.estimator = estimator or DurationEstimator(max_range=max_range)
        self.scheduler = QueryScheduler(self, loop,
                                        quick_refresh_delay=quick_refresh_delay,
                                        refresh_interval=refresh_interval,
                                        query_throttle=query_throttle)

        self.layers: Dict[int, LayerState] = {}
        # Layers that have been seen, for variable registration
        self.registered_layers: Set[int] = set()
        self._last_remaining_int: Dict[int, int] = {}

        # Composition-level state
        self.active_column = 0
        self.column_names: Dict[int, str] = {}
        self.composition_master = 1.0
        self.composition_opacity = 1.0
        self.composition_volume = 1.0
        self.composition_tempo = 120.0

        # Ordered - first match wins. Clip position is by far the most
        # frequent message but must come after layer position, which
        # decides whether a clip position is accepted.
        self._routes = [
            (addresses.LAYER_POSITION, self._on_layer_position),
            (addresses.CLIP_POSITION, self._on_clip_position),
            (addresses.CLIP_DURATION, self._on_clip_duration),
            (addresses.CLIP_SPEED, self._on_clip_speed),
            (addresses.CLIP_CONNECTED, self._on_clip_connected),
            (addresses.CLIP_CONNECT, self._on_clip_connect),
            (addresses.COLUMN_CONNECTED, self._on_column_connected),
            (addresses.COLUMN_NAME, self._on_column_name),
            (addresses.CLIP_NAME, self._on_clip_name),
            (addresses.LAYER_DIRECTION, self._on_layer_direction),
            (addresses.LAYER_MASTER, self._on_layer_master),
            (addresses.LAYER_OPACITY, self._on_layer_opacity),
            (addresses.LAYER_VOLUME, self._on_layer_volume),
            (addresses.LAYER_BYPASSED, self._on_layer_bypassed),
        ]

    def log(self, level: str, message: str):
        if self.host is not None:
            self.host.log(level, message)
        else:
            console_log(level, message)

    # ============= MESSAGE ROUTING =============

    def handle_message(self, address: str, value):
        """
        Route one incoming OSC message. Called for every message, no throttling.
        Addresses that match nothing are ignored.
        """
        if not address.startswith(ROOT):
            return

        try:
            for pattern, handler in self._routes:
                match = pattern.match(address)
                if match:
                    handler(value, *(int(group) for group in match.groups()))
                    return

            attr = COMPOSITION_SCALARS.get(address)
            if attr is not None:
                setattr(self, attr, float(value))
        except (TypeError, ValueError) as e:
            self.log('debug', f"Dropped {address} {value!r}: {e}")

    def _on_layer_position(self, value, layer: int):
        self.get_or_create_layer(layer).layer_position = float(value)

    def _on_clip_position(self, value, layer: int, column: int):
        pos = float(value)
        layer_state = self.get_or_create_layer(layer)
        clip = layer_state.clip

        # A previewed clip reports its own position, which differs from the
        # layer's output position. Only the outputting clip matches.
        if layer_state.layer_position is not None:
            if abs(pos - layer_state.layer_position) > self.position_tolerance:
                return

        if clip.active_clip != 0 and clip.active_clip != column:
            # A different clip is now the output
            clip.adopt(column)
            layer_state.estimation.reset()
            self.scheduler.schedule_quick_refresh()
        elif clip.active_clip == 0:
            # First clip seen on this layer
            clip.adopt(column)
            layer_state.estimation.reset()

        clip.position = pos

        if not clip.queried:
            clip.queried = True
            self.scheduler.query_clip_info(layer, column)

        if clip.duration == 0 and not layer_state.estimation.settled:
            if self.estimator.update(layer_state, pos, self.loop.time()):
                self.log('debug', f"Layer {layer}: estimated duration "
                                  f"{layer_state.estimation.estimated_duration_sec:.2f}s")

        self.update_layer_variables(layer)

    def _on_clip_duration(self, value, layer: int, column: int):
        duration = float(value)
        layer_state = self.get_or_create_layer(layer)
        if layer_state.clip.active_clip != column:
            return

        layer_state.clip.duration = duration
        layer_state.clip.duration_estimated = False
        # Real value arrived, stop estimating
        layer_state.estimation.settled = True
        self.update_layer_variables(layer)

    def _on_clip_speed(self, value, layer: int, column: int):
        speed = float(value)
        layer_state = self.get_or_create_layer(layer)
        if layer_state.clip.active_clip in (0, column):
            layer_state.clip.speed = speed
            self.update_layer_variables(layer)

    def _on_clip_connected(self, value, layer: int, column: int):
        connected = int(float(value))
        layer_state = self.get_or_create_layer(layer)
        clip = layer_state.clip

        if connected >= CONNECTED:
            if clip.active_clip != column:
                # Query happens from the position handler
                clip.adopt(column, connected)
                layer_state.estimation.reset()
            else:
                clip.connected = connected
        elif connected == CONNECTED_NONE and clip.active_clip == column:
            clip.disconnect()

        self.update_layer_variables(layer)
        self._check_feedbacks(FEEDBACK_CONNECTED_CLIP)

    def _on_clip_connect(self, value, layer: int, column: int):
        self._check_feedbacks(FEEDBACK_CONNECTED_CLIP)

    def _on_column_connected(self, value, column: int):
        connected = int(float(value))
        if connected < CONNECTED or self.active_column == column:
            return

        self.active_column = column
        self._set_variable_values({
            ACTIVE_COLUMN: str(column),
            ACTIVE_COLUMN_NAME: self.get_column_name(column),
        })
        self._check_feedbacks(FEEDBACK_ACTIVE_COLUMN)

        # A column trigger swaps the clip on every layer at once
        for layer_state in self.layers.values():
            layer_state.invalidate_clip_info()

        # Immediate, not debounced
        self.scheduler.query_clip_info_wildcard()

    def _on_column_name(self, value, column: int):
        name = str(value)
        if name == DEFAULT_COLUMN_NAME:
            name = f"Column {column}"
        self.column_names[column] = name
        if column == self.active_column:
            self._set_variable_values({ACTIVE_COLUMN_NAME: name})

    def _on_clip_name(self, value, layer: int, column: int):
        layer_state = self.get_or_create_layer(layer)
        if layer_state.clip.active_clip != column:
            return

        new_name = str(value)
        # Name changed - the slot holds different media now. The next
        # position message or the periodic refresh re-queries.
        if layer_state.clip.name and layer_state.clip.name != new_name:
            layer_state.invalidate_clip_info()
        layer_state.clip.name = new_name
        self.update_layer_variables(layer)

    def _on_layer_direction(self, value, layer: int):
        self.get_or_create_layer(layer).direction = int(float(value))

    def _on_layer_master(self, value, layer: int):
        self.get_or_create_layer(layer).master = float(value)

    def _on_layer_opacity(self, value, layer: int):
        self.get_or_create_layer(layer).opacity = float(value)

    def _on_layer_volume(self, value, layer: int):
        self.get_or_create_layer(layer).volume = float(value)

    def _on_layer_bypassed(self, value, layer: int):
        self.get_or_create_layer(layer).bypassed = bool(value)

    # ============= STATE ACCESSORS =============

    def get_or_create_layer(self, layer: int) -> LayerState:
        layer_state = self.layers.get(layer)
        if layer_state is None:
            layer_state = LayerState()
            self.layers[layer] = layer_state

            is_new = layer not in self.registered_layers
            self.registered_layers.add(layer)
            # Layers 1-10 are always defined; only rebuild for layers beyond
            if is_new and layer > OSC_DEFAULT_LAYERS and self.host is not None:
                self.host.register_variables()
        return layer_state

    def get_layer(self, layer: int) -> Optional[LayerState]:
        return self.layers.get(layer)

    def get_active_clip(self, layer: int) -> Optional[ClipState]:
        layer_state = self.layers.get(layer)
        return layer_state.clip if layer_state else None

    def get_all_layers(self) -> Dict[int, LayerState]:
        return self.layers

    def get_registered_layers(self) -> Set[int]:
        return self.registered_layers

    def get_active_clip_column(self, layer: int) -> Optional[int]:
        """Column of the active clip on a layer, for addressing commands to it."""
        clip = self.get_active_clip(layer)
        if clip is None or clip.active_clip == 0:
            return None
        return clip.active_clip

    def get_column_name(self, column: int) -> str:
        return self.column_names.get(column) or f"Column {column}"

    # ============= DERIVED VALUES =============

    def normalized_to_seconds(self, normalized: float) -> float:
        return normalized * self.max_range

    def seconds_to_normalized(self, seconds: float) -> float:
        return seconds / self.max_range

    def get_layer_duration_seconds(self, layer: int) -> float:
        clip = self.get_active_clip(layer)
        if clip is None or clip.duration == 0:
            return 0.0
        return clip.duration * self.max_range

    def get_layer_elapsed_seconds(self, layer: int) -> float:
        clip = self.get_active_clip(layer)
        if clip is None or clip.duration == 0:
            return 0.0
        return clip.position * clip.duration * self.max_range

    def get_layer_remaining_seconds(self, layer: int) -> float:
        clip = self.get_active_clip(layer)
        if clip is None or clip.duration == 0:
            return 0.0
        return max(0.0, (1 - clip.position) * clip.duration * self.max_range)

    def get_layer_progress(self, layer: int) -> float:
        """Playhead progress as a 0-1 fraction."""
        clip = self.get_active_clip(layer)
        if clip is None:
            return 0.0
        return clip.position

    def get_position_for_seconds_from_end(self, layer: int, seconds_from_end: float) -> Optional[float]:
        """
        Normalized duration value for "N seconds before the end of the clip".

        Returns:
            Value clamped to [0, duration], or None without duration data
        """
        clip = self.get_active_clip(layer)
        if clip is None or clip.duration == 0:
            return None
        target = clip.duration - self.seconds_to_normalized(seconds_from_end)
        return max(0.0, min(target, clip.duration))

    # ============= VARIABLE PUBLICATION =============

    def update_layer_variables(self, layer: int):
        """
        Recompute and publish variables for a layer. Called on every accepted
        update so countdowns stay smooth; feedbacks are only signalled when
        the whole-second remaining value changes.
        """
        clip = self.get_active_clip(layer)
        if clip is None:
            return

        duration_sec = clip.duration * self.max_range
        elapsed_sec = clip.position * duration_sec if duration_sec > 0 else 0.0
        remaining_sec = max(0.0, (1 - clip.position) * duration_sec) if duration_sec > 0 else 0.0

        self._set_variable_values({
            layer_variable_id(layer, 'elapsed'): seconds_to_timecode(elapsed_sec),
            layer_variable_id(layer, 'duration'): seconds_to_timecode(duration_sec),
            layer_variable_id(layer, 'remaining'): seconds_to_timecode(remaining_sec),
            layer_variable_id(layer, 'remaining_seconds'): str(round(remaining_sec)),
            layer_variable_id(layer, 'progress'): f"{clip.position * 100:.0f}",
            layer_variable_id(layer, 'clip_name'): clip.name,
        })

        remaining_int = int(remaining_sec)
        if self._last_remaining_int.get(layer) != remaining_int:
            self._last_remaining_int[layer] = remaining_int
            self._check_feedbacks(FEEDBACK_PROGRESS_BAR)

    def _set_variable_values(self, values: Dict[str, str]):
        if self.host is None:
            return
        try:
            self.host.set_variable_values(values)
        except Exception as e:
            self.log('warn', f"Failed to set variable values: {e}")

    def _check_feedbacks(self, *feedback_ids: str):
        if self.host is not None:
            self.host.check_feedbacks(*feedback_ids)

    # ============= LIFECYCLE =============

    def clear(self):
        """Forget everything. Used on reconnect."""
        self.scheduler.stop_periodic_refresh()
        self.scheduler.clear()
        self.layers.clear()
        self.registered_layers.clear()
        self._last_remaining_int.clear()
        self.active_column = 0
        self.column_names.clear()
        self.composition_master = 1.0
        self.composition_opacity = 1.0
        self.composition_volume = 1.0
        self.composition_tempo = 120.0

    def destroy(self):
        self.scheduler.destroy()
        self.clear()
