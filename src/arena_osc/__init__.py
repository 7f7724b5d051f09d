"""
Arena OSC - mirror of Resolume Arena playback state over OSC
Clip countdowns, names and active column from Arena's OSC output
"""

__version__ = "0.1.0"

from .state import ArenaState
from .instance import ArenaInstance
from .config import ArenaConfig

__all__ = ['ArenaState', 'ArenaInstance', 'ArenaConfig']
