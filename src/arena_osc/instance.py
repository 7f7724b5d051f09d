"""
ArenaInstance - wires config, OSC listener, command client and ArenaState
together and hosts the presentation-facing variable store.

The listener and all timers run on one asyncio loop in a background
thread. Anything that touches ArenaState from another thread goes through
call(), which runs it on that loop, so state is only ever mutated from
one thread.
"""

import asyncio
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from .commands import ArenaOSC
from .config import ArenaConfig
from .listener import ArenaOscListener
from .log import log as console_log
from .state import ArenaState
from .variables import get_all_variables


class ArenaInstance:
    """
    Host for ArenaState.

    Implements the host interface ArenaState expects (log,
    set_variable_values, check_feedbacks, register_variables,
    get_osc_listener, get_config).
    """

    def __init__(self, config: Optional[ArenaConfig] = None):
        self.config = config or ArenaConfig.from_env()
        self.loop = asyncio.new_event_loop()
        self.thread: Optional[threading.Thread] = None

        self.osc_listener: Optional[ArenaOscListener] = None
        self.osc_api: Optional[ArenaOSC] = None
        self.state = self._create_state()

        # Presentation-facing store
        self.variables: Dict[str, str] = {}
        self.variable_definitions: List[Dict[str, str]] = get_all_variables()
        self._feedback_subscribers: Dict[str, List[Callable]] = defaultdict(list)

    def _create_state(self) -> ArenaState:
        return ArenaState(
            self.loop,
            host=self,
            max_range=self.config.max_range,
            position_tolerance=self.config.position_tolerance,
            quick_refresh_delay=self.config.quick_refresh_delay,
            refresh_interval=self.config.refresh_interval,
            query_throttle=self.config.query_throttle,
        )

    # ============= HOST INTERFACE =============

    def log(self, level: str, message: str):
        console_log(level, message, tag='OSC')

    def set_variable_values(self, values: Dict[str, str]):
        self.variables.update(values)

    def get_variable_value(self, variable_id: str) -> Optional[str]:
        return self.variables.get(variable_id)

    def check_feedbacks(self, *feedback_ids: str):
        for feedback_id in feedback_ids:
            for callback in list(self._feedback_subscribers[feedback_id]):
                try:
                    callback(self.state)
                except Exception as e:
                    self.log('warn', f"Feedback '{feedback_id}' failed: {e}")

    def subscribe_feedback(self, feedback_id: str, callback: Callable):
        """Call callback(state) whenever feedback_id may need re-evaluation"""
        self._feedback_subscribers[feedback_id].append(callback)

    def register_variables(self):
        """Rebuild variable definitions to include newly discovered layers."""
        self.variable_definitions = get_all_variables(self.state.get_registered_layers())
        self.log('debug', f"Registered {len(self.variable_definitions)} variables")

    def get_osc_listener(self) -> Optional[ArenaOscListener]:
        return self.osc_listener

    def get_config(self) -> ArenaConfig:
        return self.config

    def get_osc_api(self) -> Optional[ArenaOSC]:
        return self.osc_api

    def handle_osc_input(self, address: str, value, args=None):
        self.state.handle_message(address, value)

    def is_osc_listener_active(self) -> bool:
        return self.osc_listener is not None and self.osc_listener.is_active()

    # ============= LIFECYCLE =============

    def _run_loop(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def call(self, func: Callable, *args, timeout: float = 5.0) -> Any:
        """Run func(*args) on the event loop thread and return its result."""
        if self.thread is None or not self.thread.is_alive():
            raise RuntimeError("ArenaInstance is not running")

        async def _invoke():
            result = func(*args)
            if asyncio.iscoroutine(result):
                result = await result
            return result

        return asyncio.run_coroutine_threadsafe(_invoke(), self.loop).result(timeout)

    def start(self) -> bool:
        """Start the event loop thread and connect."""
        if self.thread is not None and self.thread.is_alive():
            self.log('info', "Already running")
            return False

        self.thread = threading.Thread(target=self._run_loop, daemon=True)
        self.thread.start()
        return self.call(self.restart_apis)

    async def restart_apis(self) -> bool:
        """Tear down connections, forget all state and connect again."""
        config = self.config

        if self.osc_listener is not None:
            self.osc_listener.destroy()
            self.osc_listener = None
        self.state.clear()

        self.osc_api = ArenaOSC(config.host, config.port, self.state) if config.port else None

        ok = True
        if config.use_osc_listener and config.osc_rx_port:
            self.osc_listener = ArenaOscListener(config.osc_rx_port, self)
            ok = await self.osc_listener.start()
            self.state.scheduler.start_periodic_refresh()

        self.register_variables()
        return ok

    def configure(self, config: ArenaConfig) -> bool:
        """Apply a new config. ArenaState is rebuilt since its tuning comes from config."""
        running = self.thread is not None and self.thread.is_alive()
        if running:
            self.call(self.state.destroy)
        self.config = config
        self.state = self._create_state()
        if running:
            return self.call(self.restart_apis)
        return True

    def _teardown(self):
        if self.osc_listener is not None:
            self.osc_listener.destroy()
            self.osc_listener = None
        self.osc_api = None
        self.state.destroy()

    def stop(self) -> bool:
        if self.thread is None or not self.thread.is_alive():
            return False

        self.call(self._teardown)
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.thread.join(timeout=2)
        self.thread = None
        self.log('info', "Stopped")
        return True

    def close(self):
        self.stop()
        self.loop.close()

    def status(self) -> Dict[str, Any]:
        """Snapshot of connection and per-layer playback state."""
        state = self.state
        layers = {}
        for layer_num, layer in sorted(state.get_all_layers().items()):
            layers[layer_num] = {
                'clip': layer.clip.active_clip,
                'name': layer.clip.name,
                'elapsed': state.get_layer_elapsed_seconds(layer_num),
                'remaining': state.get_layer_remaining_seconds(layer_num),
                'duration': state.get_layer_duration_seconds(layer_num),
                'estimated': layer.clip.duration_estimated,
            }
        return {
            'listener_active': self.is_osc_listener_active(),
            'target': f"{self.config.host}:{self.config.port}",
            'active_column': state.active_column,
            'active_column_name': state.get_column_name(state.active_column) if state.active_column else '',
            'tempo': state.composition_tempo,
            'layers': layers,
        }
