"""
Console log sink with severity levels.

Lines are tagged with the component that wrote them, e.g.
    [Listener] OSC listener active on port 7001
    [OSC] WARN: Failed to set variable values: ...
Debug lines only print when ARENA_VERBOSE is set.
"""

import os
import sys

LEVELS = ('debug', 'info', 'warn', 'error')


def verbose() -> bool:
    return os.environ.get('ARENA_VERBOSE', '0') not in ('', '0')


def log(level: str, message: str, tag: str = 'OSC'):
    if level == 'debug' and not verbose():
        return

    if level == 'info':
        line = f"[{tag}] {message}"
    else:
        line = f"[{tag}] {level.upper()}: {message}"

    stream = sys.stderr if level in ('warn', 'error') else sys.stdout
    print(line, file=stream)
