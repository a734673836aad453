"""
RTT Estimator
=============

Exponentially weighted moving average of request round-trip time.
"""

from typing import Optional

DEFAULT_ALPHA = 0.3


class RttEstimator:
    """EWMA round-trip-time estimate, in seconds.

    The first sample seeds the estimate verbatim; each later sample is
    blended in as ``(1 - alpha) * estimate + alpha * sample``.

    Args:
        alpha: Weight of the newest sample.
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA):
        self.alpha = alpha
        self._estimate: Optional[float] = None
        self.sample_count: int = 0

    def push(self, sample: float):
        """Record one round-trip sample (seconds)."""
        if self._estimate is None:
            self._estimate = sample
        else:
            self._estimate = (1.0 - self.alpha) * self._estimate + self.alpha * sample
        self.sample_count += 1

    def average(self) -> float:
        """Current estimate, or 0.0 if nothing has been pushed yet."""
        return self._estimate if self._estimate is not None else 0.0

    def is_empty(self) -> bool:
        return self._estimate is None

    def __str__(self) -> str:
        return f"avg={self.average() * 1000:.3f}ms n={self.sample_count}"
