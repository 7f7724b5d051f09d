"""
Time conversion and timecode formatting for Arena OSC values.

Arena sends transport position and duration as normalized floats (0.0-1.0)
over a fixed range of MAX_RANGE seconds (604800 = 7 days).

    seconds = normalized * max_range
    normalized = seconds / max_range
"""

import math

MAX_RANGE = 604800.0


def normalized_to_seconds(normalized: float, max_range: float = MAX_RANGE) -> float:
    """Convert a normalized value (0-1) to seconds"""
    return normalized * max_range


def seconds_to_normalized(seconds: float, max_range: float = MAX_RANGE) -> float:
    """Convert seconds to a normalized value (0-1)"""
    return seconds / max_range


def _split(total_seconds: float):
    abs_seconds = abs(total_seconds)
    hours = int(abs_seconds // 3600)
    minutes = int((abs_seconds % 3600) // 60)
    seconds = int(abs_seconds % 60)
    prefix = '-' if total_seconds < 0 else ''
    return prefix, abs_seconds, hours, minutes, seconds


def seconds_to_timecode(total_seconds: float) -> str:
    """
    Format seconds as MM:SS, or H:MM:SS once past the hour.

    Fractions are truncated, not rounded, so a countdown shows 00:09
    for the whole of its tenth-to-last second.
    """
    prefix, _, hours, minutes, seconds = _split(total_seconds)
    if hours > 0:
        return f"{prefix}{hours}:{minutes:02d}:{seconds:02d}"
    return f"{prefix}{minutes:02d}:{seconds:02d}"


def seconds_to_timecode_frames(total_seconds: float, fps: int = 30) -> str:
    """Format seconds as MM:SS:FF, or H:MM:SS:FF once past the hour"""
    prefix, abs_seconds, hours, minutes, seconds = _split(total_seconds)
    frames = int(math.modf(abs_seconds)[0] * fps)
    if hours > 0:
        return f"{prefix}{hours}:{minutes:02d}:{seconds:02d}:{frames:02d}"
    return f"{prefix}{minutes:02d}:{seconds:02d}:{frames:02d}"
