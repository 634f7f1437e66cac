"""
sampler.py — Capture cumulative counters and drive the periodic tick.

A counter source is any zero-argument callable returning the cumulative
`(rx_bytes, tx_bytes)` totals since boot. The sampler pairs every read with
a monotonic timestamp and remembers exactly one previous reading, which is
all the delta math needs.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

log = logging.getLogger(__name__)

CounterSource = Callable[[], Tuple[int, int]]
MonotonicClock = Callable[[], float]


def monotonic_ms() -> float:
    """Milliseconds from the monotonic clock."""
    return time.monotonic() * 1000.0


# ── Data model ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class SampleReading:
    """One snapshot of both cumulative counters."""
    rx_bytes: int
    tx_bytes: int
    timestamp_ms: float


# ── Sampling ─────────────────────────────────────────────────────────

def sample(counter_source: CounterSource, clock: MonotonicClock = monotonic_ms) -> SampleReading:
    """Read the counters once and stamp the reading with *clock*."""
    rx_bytes, tx_bytes = counter_source()
    return SampleReading(rx_bytes=int(rx_bytes), tx_bytes=int(tx_bytes), timestamp_ms=clock())


class Sampler:
    """Reads a counter source and keeps the baseline for the next delta."""

    def __init__(self, counter_source: CounterSource, clock: MonotonicClock = monotonic_ms):
        self._counter_source = counter_source
        self._clock = clock
        self._previous: Optional[SampleReading] = None

    @property
    def previous(self) -> Optional[SampleReading]:
        """The baseline reading, or None right after a (re)start."""
        return self._previous

    def now_ms(self) -> float:
        return self._clock()

    def sample(self) -> SampleReading:
        return sample(self._counter_source, self._clock)

    def commit(self, reading: SampleReading) -> None:
        """Make *reading* the baseline for the next delta."""
        self._previous = reading

    def reset(self) -> None:
        """Forget the baseline; the next computation reports no data yet."""
        self._previous = None

    def rebaseline(self) -> SampleReading:
        """Take a fresh reading and use it as the baseline."""
        reading = self.sample()
        self.commit(reading)
        return reading


# ── Periodic timer ───────────────────────────────────────────────────

class Ticker:
    """The single logical timer behind a sampler.

    Calls *callback(periodic=True)* every *interval_ms* on a daemon thread.
    A tick runs to completion before the next wait starts, so ticks never
    overlap. `start` and `stop` are both idempotent.

    `stop` never joins the timer thread: the caller may hold the lock that a
    firing tick is waiting on. A tick that was already in flight can ask
    `tick_cancelled()` once it gets that lock and bail out.
    """

    def __init__(self, callback: Callable[..., object], name: str = "statusbar-ticker"):
        self._callback = callback
        self._name = name
        self._lock = threading.Lock()
        self._local = threading.local()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._interval_ms: Optional[int] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._thread is not None

    @property
    def interval_ms(self) -> Optional[int]:
        return self._interval_ms

    def start(self, interval_ms: int) -> bool:
        """Start ticking. Returns False if the ticker was already running."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        with self._lock:
            if self._thread is not None:
                return False
            self._interval_ms = interval_ms
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event, interval_ms / 1000.0),
                name=self._name,
                daemon=True,
            )
            self._thread.start()
        log.debug("%s started (%d ms)", self._name, interval_ms)
        return True

    def stop(self) -> bool:
        """Cancel the pending tick. Returns False if the ticker was not running."""
        with self._lock:
            if self._thread is None:
                return False
            self._stop_event.set()
            self._thread = None
            self._stop_event = None
        log.debug("%s stopped", self._name)
        return True

    def restart(self, interval_ms: int) -> None:
        self.stop()
        self.start(interval_ms)

    def tick_cancelled(self) -> bool:
        """True when called from a timer thread that has since been stopped."""
        stop_event = getattr(self._local, "stop_event", None)
        return stop_event is not None and stop_event.is_set()

    def _run(self, stop_event: threading.Event, period_s: float) -> None:
        self._local.stop_event = stop_event
        while not stop_event.wait(period_s):
            try:
                self._callback(periodic=True)
            except Exception:
                # Keep the timer alive; the indicator just shows stale data
                log.exception("%s: tick failed", self._name)
