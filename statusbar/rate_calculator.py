"""
rate_calculator.py — Turn consecutive counter readings into bandwidth.

Rates are computed per direction from the delta between two readings and
the elapsed monotonic time, then bucketed into BASE / KILO / MEGA / GIGA
tiers using base 1024 (bytes) or 1000 (bits).

Irregular sampling is expected: periodic ticks that arrive too soon after
the last update are skipped, and ad-hoc refreshes with (almost) no elapsed
time produce a zero rate instead of a division fault.
"""

import enum
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from config import DEGENERATE_ELAPSED_MS, MAX_DISPLAY_VALUE, TOO_SOON_FACTOR
from statusbar.config_policy import UnitSystem
from statusbar.errors import CounterRegression, DivisionDegenerate
from statusbar.sampler import SampleReading, Sampler

log = logging.getLogger(__name__)


# ── Data model ───────────────────────────────────────────────────────

class Tier(enum.IntEnum):
    """Magnitude bucket; the value is the power of the base."""
    BASE = 0
    KILO = 1
    MEGA = 2
    GIGA = 3

    @property
    def prefix(self) -> str:
        return ("", "k", "M", "G")[self.value]


class Direction(enum.Flag):
    UP = 1
    DOWN = 2


@dataclass(frozen=True)
class RateResult:
    """Derived rate for one direction of one tick."""
    speed: float                # units per second, before scaling
    magnitude: float            # speed / base ** tier
    tier: Tier
    unit_system: UnitSystem
    direction: Direction

    @property
    def text(self) -> str:
        return format_magnitude(self.magnitude, self.tier, self.unit_system)

    @classmethod
    def empty(cls, unit_system: UnitSystem, direction: Direction) -> "RateResult":
        """The "no data yet" result used before a baseline exists."""
        return cls(speed=0.0, magnitude=0.0, tier=Tier.BASE,
                   unit_system=unit_system, direction=direction)


@dataclass(frozen=True)
class TrafficRates:
    """Both directions of one tick."""
    up: RateResult
    down: RateResult

    @classmethod
    def empty(cls, unit_system: UnitSystem) -> "TrafficRates":
        return cls(up=RateResult.empty(unit_system, Direction.UP),
                   down=RateResult.empty(unit_system, Direction.DOWN))


# ── Delta & timing ───────────────────────────────────────────────────

def counter_delta(previous: int, current: int) -> int:
    """Return current - previous, or 0 if the counter went backwards."""
    delta = current - previous
    if delta < 0:
        log.warning("%s; treating delta as 0", CounterRegression(previous, current))
        return 0
    return delta


def elapsed_for_tick(
    previous: SampleReading,
    current: SampleReading,
    interval_ms: int,
    periodic: bool,
) -> Optional[float]:
    """Return the divisor (ms) to use for this tick, or None to skip it.

    A periodic tick that lands earlier than TOO_SOON_FACTOR of the interval
    means the display was just refreshed out of band, so it is skipped. An
    out-of-band refresh is always computed; with under 1 ms elapsed the
    divisor is clamped so the rate comes out as zero.
    """
    elapsed = current.timestamp_ms - previous.timestamp_ms
    if elapsed < interval_ms * TOO_SOON_FACTOR:
        if periodic:
            return None
        if elapsed < 1:
            return DEGENERATE_ELAPSED_MS
    return elapsed


def speed_for(delta: int, elapsed_ms: float) -> float:
    """Units per second for *delta* units over *elapsed_ms*."""
    if elapsed_ms <= 0:
        raise DivisionDegenerate(f"cannot compute a rate over {elapsed_ms} ms")
    return delta / (elapsed_ms / 1000.0)


# ── Scaling & formatting ─────────────────────────────────────────────

def select_tier(speed: float, base: int) -> Tier:
    if speed < base:
        return Tier.BASE
    if speed < base ** 2:
        return Tier.KILO
    if speed < base ** 3:
        return Tier.MEGA
    return Tier.GIGA


def _round_half_up(value: float, places: str) -> Decimal:
    return Decimal(repr(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def format_magnitude(magnitude: float, tier: Tier, unit_system: UnitSystem) -> str:
    """Render an already-scaled value, e.g. "512B/s", "2.0MB/s", "8.0kb/s"."""
    if tier is Tier.BASE:
        number = _round_half_up(magnitude, "1")
        if number > MAX_DISPLAY_VALUE:
            number = Decimal("999")
    else:
        number = _round_half_up(magnitude, "0.1")
        if number > MAX_DISPLAY_VALUE:
            number = Decimal(repr(MAX_DISPLAY_VALUE))
    return f"{number}{tier.prefix}{unit_system.symbol}"


def format_speed(speed: float, unit_system: UnitSystem) -> str:
    """Scale and render a raw speed in units per second."""
    tier = select_tier(speed, unit_system.base)
    return format_magnitude(speed / unit_system.base ** tier, tier, unit_system)


# ── Public API ───────────────────────────────────────────────────────

def compute_rate(
    previous: SampleReading,
    current: SampleReading,
    unit_system: UnitSystem,
    direction: Direction,
    elapsed_ms: Optional[float] = None,
) -> RateResult:
    """Compute the rate of one direction between two readings.

    *elapsed_ms* defaults to the difference of the reading timestamps.
    """
    if direction is Direction.UP:
        delta = counter_delta(previous.tx_bytes, current.tx_bytes)
    else:
        delta = counter_delta(previous.rx_bytes, current.rx_bytes)
    if unit_system is UnitSystem.BIT:
        delta *= 8

    if elapsed_ms is None:
        elapsed_ms = current.timestamp_ms - previous.timestamp_ms
    try:
        speed = speed_for(delta, elapsed_ms)
    except DivisionDegenerate as exc:
        log.debug("%s; clamping", exc)
        speed = speed_for(delta, DEGENERATE_ELAPSED_MS)

    base = unit_system.base
    tier = select_tier(speed, base)
    return RateResult(
        speed=speed,
        magnitude=speed / base ** tier,
        tier=tier,
        unit_system=unit_system,
        direction=direction,
    )


class RateCalculator:
    """Stateful wrapper: sample, compute both directions, keep the baseline."""

    def __init__(self, sampler: Sampler, interval_ms: int, unit_system: UnitSystem):
        self.sampler = sampler
        self.interval_ms = interval_ms
        self.unit_system = unit_system
        self._last: Optional[TrafficRates] = None

    @property
    def last(self) -> Optional[TrafficRates]:
        return self._last

    def configure(self, interval_ms: int, unit_system: UnitSystem) -> None:
        self.interval_ms = interval_ms
        self.unit_system = unit_system

    def restart(self) -> None:
        """Take a new baseline; the cached result is dropped."""
        self.sampler.rebaseline()
        self._last = None

    def update(self, periodic: bool = True) -> Optional[TrafficRates]:
        """Run one tick.

        Returns the freshly computed rates, or None when a periodic tick
        arrived too soon (the caller keeps showing `last`). Without a
        baseline the "no data yet" result is returned and the reading
        becomes the baseline.
        """
        previous = self.sampler.previous
        current = self.sampler.sample()

        if previous is None:
            self.sampler.commit(current)
            self._last = TrafficRates.empty(self.unit_system)
            return self._last

        elapsed = elapsed_for_tick(previous, current, self.interval_ms, periodic)
        if elapsed is None:
            return None

        self._last = TrafficRates(
            up=compute_rate(previous, current, self.unit_system, Direction.UP, elapsed),
            down=compute_rate(previous, current, self.unit_system, Direction.DOWN, elapsed),
        )
        self.sampler.commit(current)
        return self._last
