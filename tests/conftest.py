"""
Shared fakes for ArenaState tests.

FakeLoop drives timers and the clock deterministically; no test sleeps
or touches the network.
"""

import pytest

from arena_osc.config import ArenaConfig
from arena_osc.state import ArenaState


class FakeHandle:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Minimal stand-in for the asyncio loop: time(), call_later(), advance()."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.handles = []

    def time(self):
        return self.now

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float):
        """Move the clock forward, firing due timers in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback(*handle.args)
        self.now = target

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]


class FakeListener:
    def __init__(self):
        self.sent = []

    def send(self, address, args, host, port):
        self.sent.append((address, list(args), host, port))

    @property
    def addresses(self):
        return [s[0] for s in self.sent]


class FakeHost:
    """Records everything ArenaState publishes."""

    def __init__(self, listener=None, config=None):
        self.listener = listener
        self.config = config or ArenaConfig(host="10.0.0.5", port=7000)
        self.variables = {}
        self.feedbacks = []
        self.logs = []
        self.register_calls = 0
        self.fail_publish = False

    def log(self, level, message):
        self.logs.append((level, message))

    def set_variable_values(self, values):
        if self.fail_publish:
            raise RuntimeError("publish failed")
        self.variables.update(values)

    def check_feedbacks(self, *feedback_ids):
        self.feedbacks.extend(feedback_ids)

    def register_variables(self):
        self.register_calls += 1

    def get_osc_listener(self):
        return self.listener

    def get_config(self):
        return self.config


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def listener():
    return FakeListener()


@pytest.fixture
def host(listener):
    return FakeHost(listener)


@pytest.fixture
def state(loop, host):
    return ArenaState(loop, host=host)
