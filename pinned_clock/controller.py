"""
Offset Controller
=================

Proportional-integral controller that learns how much of the measured
RTT to send ahead of each second boundary.

    error = -1.0   edit landed before the target second (too early)
    error = +1.0   edit landed at/after the target second (too late)

    i += error
    v  = clamp(v + Kp * error + Ki * i, 0, 1)
    lead = rtt * v
"""

DEFAULT_INITIAL = 0.5
DEFAULT_KP = 0.01
DEFAULT_KI = 0.01


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class OffsetController:
    """PI controller over the lead-time ratio ``v``.

    ``v`` is kept in [0, 1] so the lead time never exceeds the measured
    RTT nor goes negative. The integral term ``i`` is unbounded.

    Args:
        initial: Starting ratio.
        kp:      Proportional gain.
        ki:      Integral gain.
    """

    def __init__(self, initial: float = DEFAULT_INITIAL, kp: float = DEFAULT_KP, ki: float = DEFAULT_KI):
        self.kp = kp
        self.ki = ki
        self.v: float = clamp(initial, 0.0, 1.0)
        self.i: float = 0.0

    def update(self, error: float):
        """Apply one correction step."""
        self.i += error
        self.v = clamp(self.v + self.kp * error + self.ki * self.i, 0.0, 1.0)

    def apply(self, rtt: float) -> float:
        """Lead time (seconds) for a given RTT estimate (seconds)."""
        return rtt * self.v

    def __str__(self) -> str:
        return f"r={self.v:.3f} i={self.i:g}"
