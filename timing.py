# =========  timing.py  =========
"""
Fixed-tempo frame clock.

The scheduler (requestAnimationFrame in the browser, the pygame display
loop natively) calls back at whatever cadence it manages.  `advance()`
turns each callback's timestamp into a whole number of frame steps so the
average rate stays at *fps* however irregular the callbacks are.

All times are milliseconds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional


def frame_interval(fps: float) -> float:
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps!r}")
    return 1000.0 / fps


@dataclass
class FrameClock:
    """
    Timer state for one playing animation.  Owned by the playback state
    machine and handed explicitly to every scheduled tick.
    """
    interval_ms: float
    last_tick: Optional[float] = None     # None until the first tick primes it
    handle: Any = None                    # pending scheduler request, if any

    @classmethod
    def for_fps(cls, fps: float) -> "FrameClock":
        return cls(interval_ms=frame_interval(fps))

    def set_fps(self, fps: float) -> None:
        # keeps last_tick, so the current phase carries over to the new rate
        self.interval_ms = frame_interval(fps)

    def reset(self) -> None:
        self.last_tick = None


def advance(clock: FrameClock, now: float) -> int:
    """
    Return how many frames to step at time *now* and move the clock on.

    The first call only primes the clock.  Afterwards the step count is
    floor(elapsed / interval); the remainder stays on the clock so it
    counts toward the next tick.
    """
    if clock.last_tick is None:
        clock.last_tick = now
        return 0

    elapsed = now - clock.last_tick
    if elapsed < clock.interval_ms:
        return 0

    steps = int(math.floor(elapsed / clock.interval_ms))
    clock.last_tick += steps * clock.interval_ms
    return steps
