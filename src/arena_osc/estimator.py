"""
Duration estimation from transport position rate.

Arena does not broadcast clip duration by default, but the rate at which
the normalized position advances encodes it: if position moves dp in dt
seconds, the full 0-1 range takes dt / dp seconds. Samples are collected
in a sliding window and the estimate is committed once they agree.
"""

import numpy as np

from .layer_state import LayerState
from .timecode import MAX_RANGE


class DurationEstimator:
    """
    Sliding-window duration estimator.

    The thresholds are tunable heuristics, not a guaranteed-correct model of
    Arena's playback.
    """

    def __init__(
        self,
        max_range: float = MAX_RANGE,
        min_position: float = 0.002,
        min_duration: float = 0.5,
        max_duration: float = 86400.0,
        window: int = 10,
        min_samples: int = 3,
        tolerance: float = 0.1
    ):
        """
        Args:
            max_range: Seconds represented by a normalized value of 1.0
            min_position: Positions below this are treated as an unstable start
            min_duration: Shortest plausible clip duration in seconds
            max_duration: Longest plausible clip duration in seconds
            window: Number of most recent samples kept
            min_samples: Samples required before committing
            tolerance: Maximum relative deviation of any sample from the mean
        """
        self.max_range = max_range
        self.min_position = min_position
        self.min_duration = min_duration
        self.max_duration = max_duration
        self.window = window
        self.min_samples = min_samples
        self.tolerance = tolerance

    def update(self, layer: LayerState, pos: float, now: float) -> bool:
        """
        Feed one accepted position sample.

        Args:
            layer: Layer whose clip duration is unknown
            pos: Normalized transport position
            now: Monotonic time of the sample in seconds

        Returns:
            True if this sample committed a duration estimate
        """
        est = layer.estimation

        # Clip just started, position is unstable
        if pos < self.min_position:
            est.prev_pos = pos
            est.prev_time = now
            return False

        # Need a previous sample to calculate a delta
        if est.prev_time is None or est.prev_pos == 0:
            est.prev_pos = pos
            est.prev_time = now
            return False

        delta_pos = pos - est.prev_pos
        delta_time = now - est.prev_time
        est.prev_pos = pos
        est.prev_time = now

        # Loop reset, seek backwards or no movement
        if delta_pos <= 0 or delta_time <= 0:
            return False

        sample_duration = delta_time / delta_pos
        if sample_duration < self.min_duration or sample_duration > self.max_duration:
            return False

        est.samples.append(sample_duration)
        if len(est.samples) > self.window:
            del est.samples[0]

        if len(est.samples) < self.min_samples:
            return False

        samples = np.asarray(est.samples, dtype=np.float64)
        avg = float(samples.mean())
        if not np.all(np.abs(samples - avg) / avg < self.tolerance):
            return False

        est.estimated_duration_sec = avg
        est.settled = True
        layer.clip.duration = avg / self.max_range
        layer.clip.duration_estimated = True
        return True
