"""
demo_data.py — Realistic fake data generator for demo / presentation mode.

Used by the dashboard when no real counter source is wired in, and by the
tests. The fake counters behave like the kernel's cumulative totals: they
only ever grow, by an amount proportional to the time since the last read.
"""

import random
import time
from typing import Callable, Dict, Optional, Tuple

from config import (
    DEMO_IDLE_PROBABILITY,
    DEMO_RX_MEAN_BPS,
    DEMO_RX_STD_BPS,
    DEMO_TX_MEAN_BPS,
    DEMO_TX_STD_BPS,
    KEY_CLOCK_24_HOUR,
    KEY_CLOCK_AM_PM,
    KEY_CLOCK_COLOR,
    KEY_CLOCK_DOW,
    KEY_TRAFFIC_COLOR_DOWN,
    KEY_TRAFFIC_COLOR_ICON,
    KEY_TRAFFIC_COLOR_UP,
    KEY_TRAFFIC_HIDE,
    KEY_TRAFFIC_ICON,
    KEY_TRAFFIC_INTERVAL,
    KEY_TRAFFIC_STATE,
    KEY_TRAFFIC_TEXT,
    KEY_TRAFFIC_UNIT,
    MASK_DOWN,
    MASK_UP,
)


class FakeTrafficCounters:
    """Cumulative (rx, tx) byte counters with Gaussian per-second throughput.

    Call the instance to read it, like any other counter source.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        start: Tuple[int, int] = (0, 0),
    ):
        self._rng = random.Random(seed)
        self._clock = clock
        self._rx, self._tx = start
        self._last_read = clock()

    def _throughput(self, mean: float, std: float) -> float:
        return max(0.0, self._rng.gauss(mean, std))

    def __call__(self) -> Tuple[int, int]:
        now = self._clock()
        elapsed = max(0.0, now - self._last_read)
        self._last_read = now

        # Occasionally the link is idle for a whole interval
        if self._rng.random() >= DEMO_IDLE_PROBABILITY:
            self._rx += int(self._throughput(DEMO_RX_MEAN_BPS, DEMO_RX_STD_BPS) * elapsed)
            self._tx += int(self._throughput(DEMO_TX_MEAN_BPS, DEMO_TX_STD_BPS) * elapsed)
        return self._rx, self._tx

    def reset(self) -> None:
        """Simulate an interface reset: both counters drop back to zero."""
        self._rx = self._tx = 0


def get_fake_settings() -> Dict[str, int]:
    """Return raw traffic settings with both directions shown."""
    return {
        KEY_TRAFFIC_STATE: MASK_UP | MASK_DOWN,
        KEY_TRAFFIC_TEXT: 1,
        KEY_TRAFFIC_ICON: 1,
        KEY_TRAFFIC_HIDE: 0,
        KEY_TRAFFIC_UNIT: 1,
        KEY_TRAFFIC_INTERVAL: 1000,
        KEY_TRAFFIC_COLOR_UP: 0xFF00D4FF,
        KEY_TRAFFIC_COLOR_DOWN: 0xFFEC4899,
        KEY_TRAFFIC_COLOR_ICON: 0xFFFFFFFF,
    }


def get_fake_clock_settings() -> Dict[str, int]:
    """Return raw clock settings showing every segment."""
    return {
        KEY_CLOCK_AM_PM: 1,
        KEY_CLOCK_DOW: 0,
        KEY_CLOCK_24_HOUR: 0,
        KEY_CLOCK_COLOR: 0xFFFFFFFF,
    }
