"""
Configuration for the Arena OSC connection.

Defaults can be overridden from the environment (ARENA_*), optionally
loaded from a .env.arena file first.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from .log import log
from .query_scheduler import QUERY_THROTTLE, QUICK_REFRESH_DELAY, REFRESH_INTERVAL
from .state import POSITION_TOLERANCE
from .timecode import MAX_RANGE

ENV_FILE = ".env.arena"


@dataclass
class ArenaConfig:
    """OSC connection and state tracking configuration."""
    host: str = "127.0.0.1"
    # Arena listens on this port (Preferences > OSC > Input)
    port: int = 7000
    # We listen on this port; set Arena's OSC output to send here
    osc_rx_port: int = 7001
    use_osc_listener: bool = True

    max_range: float = MAX_RANGE
    position_tolerance: float = POSITION_TOLERANCE
    quick_refresh_delay: float = QUICK_REFRESH_DELAY
    refresh_interval: float = REFRESH_INTERVAL
    query_throttle: float = QUERY_THROTTLE

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ArenaConfig":
        """Build a config from ARENA_* variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        config.host = env.get('ARENA_HOST', config.host)
        config.port = int(env.get('ARENA_PORT', config.port))
        config.osc_rx_port = int(env.get('ARENA_RX_PORT', config.osc_rx_port))
        if 'ARENA_USE_LISTENER' in env:
            config.use_osc_listener = env['ARENA_USE_LISTENER'].strip().lower() in ('1', 'true', 'yes', 'on')
        config.max_range = float(env.get('ARENA_MAX_RANGE', config.max_range))
        config.position_tolerance = float(env.get('ARENA_POSITION_TOLERANCE', config.position_tolerance))
        return config


def find_env_file(env_path: str = ENV_FILE) -> Optional[Path]:
    """First existing env file: as given, then cwd, then the project root."""
    for location in (Path(env_path), Path.cwd() / env_path, Path(__file__).parents[2] / env_path):
        if location.is_file():
            return location
    return None


def parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    """KEY=VALUE with '#' comments stripped, or None for blank/comment lines."""
    line = line.split('#', 1)[0].strip()
    key, sep, value = line.partition('=')
    if not sep or not key.strip():
        return None
    return key.strip(), value.strip()


def load_env_file(env_path: str = ENV_FILE) -> Dict[str, str]:
    location = find_env_file(env_path)
    if location is None:
        return {}

    pairs = (parse_env_line(line) for line in location.read_text().splitlines())
    env_vars = dict(pair for pair in pairs if pair)
    log('debug', f"Loaded {len(env_vars)} settings from {location}", tag='Config')
    return env_vars


def apply_env_file(env_path: str = ENV_FILE) -> Dict[str, str]:
    """Load an env file into os.environ without overriding what is already set."""
    env_vars = load_env_file(env_path)
    for key, value in env_vars.items():
        os.environ.setdefault(key, value)
    return env_vars
