"""
Outbound '?' queries for values Arena does not push on its own.

Three request-shaping policies share one send path:
- one-shot clip info query per clip instance, throttled per layer
- debounced quick refresh after clip/column changes
- periodic wildcard refresh to correct drift from lost or reordered messages

All timers live on the state's event loop, so callbacks never interleave
with message handling.
"""

from typing import Dict

from .addresses import (
    QUERY_ARG,
    QUERY_CLIPS_DURATION,
    QUERY_CLIPS_NAME,
    QUERY_COLUMNS_CONNECTED,
    QUERY_COLUMNS_NAME,
    QUERY_LAYERS_DIRECTION,
    clip_duration_address,
    clip_name_address,
)

QUICK_REFRESH_DELAY = 0.2
REFRESH_INTERVAL = 5.0
QUERY_THROTTLE = 1.0


class QueryScheduler:
    """
    Issues queries through the host's OSC listener.

    Queries are sent FROM the listener's port because Arena answers to the
    sender's port. Replies come back as ordinary messages and go through
    ArenaState.handle_message like everything else.
    """

    def __init__(self, state, loop,
                 quick_refresh_delay: float = QUICK_REFRESH_DELAY,
                 refresh_interval: float = REFRESH_INTERVAL,
                 query_throttle: float = QUERY_THROTTLE):
        self.state = state
        self.loop = loop
        self.quick_refresh_delay = quick_refresh_delay
        self.refresh_interval = refresh_interval
        self.query_throttle = query_throttle

        self._quick_refresh_handle = None
        self._refresh_handle = None
        self._last_query_time: Dict[int, float] = {}

    def _send(self, *addresses: str) -> bool:
        """Send a '?' query for each address. Returns False if there is no listener."""
        host = self.state.host
        listener = host.get_osc_listener() if host else None
        if listener is None:
            return False

        config = host.get_config()
        for address in addresses:
            listener.send(address, [QUERY_ARG], config.host, config.port)
        return True

    def _has_listener(self) -> bool:
        host = self.state.host
        return bool(host) and host.get_osc_listener() is not None

    # ============= ONE-SHOT =============

    def query_clip_info(self, layer: int, column: int) -> bool:
        """
        Query duration and name of one clip.

        No more than one query pair per layer per throttle window. A request
        inside the window is dropped, not queued; the periodic refresh or the
        next clip change will try again.

        Returns:
            True if the queries were sent
        """
        if not self._has_listener():
            return False

        now = self.loop.time()
        last_query = self._last_query_time.get(layer)
        if last_query is not None and now - last_query < self.query_throttle:
            self.state.log('debug', f"Query for layer {layer} throttled")
            return False
        self._last_query_time[layer] = now

        return self._send(clip_duration_address(layer, column),
                          clip_name_address(layer, column))

    def query_all_layers(self):
        """Query clip info for every layer that has an active clip."""
        for layer_num, layer in list(self.state.get_all_layers().items()):
            if layer.clip.active_clip > 0:
                self.query_clip_info(layer_num, layer.clip.active_clip)

    # ============= WILDCARDS =============

    def query_columns(self):
        self._send(QUERY_COLUMNS_CONNECTED, QUERY_COLUMNS_NAME)

    def query_clip_info_wildcard(self):
        """Query name and duration of every clip. Used right after a column change."""
        self._send(QUERY_CLIPS_NAME, QUERY_CLIPS_DURATION)

    def query_all(self):
        """Full refresh - columns + clip info."""
        self.query_columns()
        self.query_clip_info_wildcard()

    # ============= QUICK REFRESH =============

    @property
    def quick_refresh_pending(self) -> bool:
        return self._quick_refresh_handle is not None

    def schedule_quick_refresh(self):
        """
        Coalesce bursts of triggers (a column change cascades into every
        layer changing clip) into one wildcard batch after a short delay.
        """
        if self._quick_refresh_handle is not None:
            return
        self._quick_refresh_handle = self.loop.call_later(
            self.quick_refresh_delay, self._run_quick_refresh)

    def _run_quick_refresh(self):
        self._quick_refresh_handle = None
        self._send(QUERY_COLUMNS_CONNECTED,
                   QUERY_COLUMNS_NAME,
                   QUERY_CLIPS_NAME,
                   QUERY_CLIPS_DURATION,
                   QUERY_LAYERS_DIRECTION)

    def cancel_quick_refresh(self):
        if self._quick_refresh_handle is not None:
            self._quick_refresh_handle.cancel()
            self._quick_refresh_handle = None

    # ============= PERIODIC =============

    @property
    def periodic_refresh_running(self) -> bool:
        return self._refresh_handle is not None

    def start_periodic_refresh(self):
        """
        Query columns now, then re-query everything on a fixed interval.

        Catches media replaced in the same slot, UI rearrangements that don't
        send connected messages and state that existed before we started.
        """
        self.stop_periodic_refresh()
        self.query_columns()
        self._refresh_handle = self.loop.call_later(self.refresh_interval, self._periodic_tick)

    def _periodic_tick(self):
        self._refresh_handle = self.loop.call_later(self.refresh_interval, self._periodic_tick)
        self._send(QUERY_CLIPS_NAME,
                   QUERY_CLIPS_DURATION,
                   QUERY_COLUMNS_CONNECTED,
                   QUERY_COLUMNS_NAME)

    def stop_periodic_refresh(self):
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    # ============= LIFECYCLE =============

    def clear(self):
        self._last_query_time.clear()

    def destroy(self):
        self.stop_periodic_refresh()
        self.cancel_quick_refresh()
        self.clear()
