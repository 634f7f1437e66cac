"""
controllers.py — Wire host events to the sampling pipeline.

The host (a UI shell) calls the `on_*` methods and supplies two callbacks:
`render(RenderInstruction)` and `set_visible(bool)`. One lock serialises
ticks and configuration swaps, so a tick always sees a whole config even
when events arrive from other threads.
"""

import logging
import threading
import time
from typing import Any, Callable, Mapping, Optional

from config import CLOCK_TICK_MS, DEFAULT_TIME_ZONE
from statusbar.clock_formatter import ClockFormatter
from statusbar.config_policy import (
    ClockConfig,
    FormatConfig,
    apply_clock_settings,
    apply_format_settings,
    should_run,
)
from statusbar.presenter import RenderInstruction, present_clock, present_traffic
from statusbar.rate_calculator import RateCalculator, TrafficRates
from statusbar.sampler import CounterSource, MonotonicClock, Sampler, Ticker, monotonic_ms

log = logging.getLogger(__name__)

RenderCallback = Callable[[RenderInstruction], None]
VisibilityCallback = Callable[[bool], None]


class TrafficMonitor:
    """Network traffic indicator: sample counters, compute rates, render."""

    def __init__(
        self,
        counter_source: CounterSource,
        render: RenderCallback,
        set_visible: VisibilityCallback,
        raw_settings: Optional[Mapping[str, Any]] = None,
        clock: MonotonicClock = monotonic_ms,
        own_timer: bool = True,
    ):
        self._render = render
        self._set_visible = set_visible
        self._lock = threading.RLock()
        self._config = apply_format_settings(raw_settings or {})
        self._calculator = RateCalculator(
            Sampler(counter_source, clock),
            self._config.interval_ms,
            self._config.unit_system,
        )
        self._ticker = Ticker(self.on_tick, name="traffic-ticker") if own_timer else None
        self._attached = False
        self._screen_on = True
        self._link_active = True
        self._running = False
        self._last_text: Optional[str] = None

    # ── Properties ──

    @property
    def config(self) -> FormatConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._running

    @property
    def last_rates(self) -> Optional[TrafficRates]:
        return self._calculator.last

    @property
    def attached(self) -> bool:
        return self._attached

    # ── Lifecycle ──

    def attach(self) -> None:
        with self._lock:
            if self._attached:
                return
            self._attached = True
            self._update_state()

    def detach(self) -> None:
        with self._lock:
            if not self._attached:
                return
            self._attached = False
            self._stop_updates()

    # ── Host events ──

    def on_config_changed(self, raw_settings: Mapping[str, Any]) -> None:
        config = apply_format_settings(raw_settings)
        with self._lock:
            self._config = config
            self._calculator.configure(config.interval_ms, config.unit_system)
            self._update_state()

    def on_connectivity_changed(self, active: bool) -> None:
        with self._lock:
            self._link_active = active
            self._update_state()

    def on_screen_state(self, on: bool) -> None:
        with self._lock:
            self._screen_on = on
            self._update_state()

    def on_tick(self, periodic: bool = True) -> Optional[RenderInstruction]:
        """Run one sampling cycle; returns the instruction sent to the host, if any."""
        with self._lock:
            if not self._running or self._stale_tick():
                return None
            rates = self._calculator.update(periodic=periodic)
            if rates is None:
                return None
            instruction = present_traffic(rates, self._config, self._last_text)
            if instruction.visible:
                self._last_text = instruction.text
                self._set_visible(True)
                self._render(instruction)
            else:
                self._set_visible(False)
            return instruction

    # ── Internals ──

    def _stale_tick(self) -> bool:
        return self._ticker is not None and self._ticker.tick_cancelled()

    def _update_state(self) -> None:
        if self._attached and should_run(self._config, self._screen_on, self._link_active):
            self._start_updates()
        else:
            self._stop_updates()
            self._set_visible(False)

    def _start_updates(self) -> None:
        self._calculator.restart()
        self._last_text = None
        self._running = True
        if self._ticker is not None:
            if self._ticker.running and self._ticker.interval_ms != self._config.interval_ms:
                self._ticker.stop()
            self._ticker.start(self._config.interval_ms)
        log.debug("Traffic updates running every %d ms", self._config.interval_ms)
        self.on_tick(periodic=False)

    def _stop_updates(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
        if self._running:
            log.debug("Traffic updates stopped")
        self._running = False


class StatusClock:
    """Status bar clock: format on every tick and on zone/locale changes."""

    def __init__(
        self,
        render: RenderCallback,
        set_visible: VisibilityCallback,
        raw_settings: Optional[Mapping[str, Any]] = None,
        time_zone_id: str = DEFAULT_TIME_ZONE,
        now: Callable[[], float] = time.time,
        own_timer: bool = True,
    ):
        self._render = render
        self._set_visible = set_visible
        self._lock = threading.RLock()
        self._formatter = ClockFormatter(apply_clock_settings(raw_settings or {}), time_zone_id, now)
        self._ticker = Ticker(self.on_tick, name="clock-ticker") if own_timer else None
        self._attached = False

    @property
    def formatter(self) -> ClockFormatter:
        return self._formatter

    @property
    def config(self) -> ClockConfig:
        return self._formatter.config

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        with self._lock:
            if self._attached:
                return
            self._attached = True
            if self._ticker is not None:
                self._ticker.start(CLOCK_TICK_MS)
            self._set_visible(True)
            self._emit(self._formatter.tick())

    def detach(self) -> None:
        with self._lock:
            if not self._attached:
                return
            self._attached = False
            if self._ticker is not None:
                self._ticker.stop()

    def on_tick(self, periodic: bool = True) -> Optional[RenderInstruction]:
        with self._lock:
            if not self._attached:
                return None
            if self._ticker is not None and self._ticker.tick_cancelled():
                return None
            return self._emit(self._formatter.tick())

    def on_config_changed(self, raw_settings: Mapping[str, Any]) -> Optional[RenderInstruction]:
        config = apply_clock_settings(raw_settings)
        with self._lock:
            self._formatter.set_config(config)
            return self.on_tick(periodic=False)

    def on_timezone_changed(self, time_zone_id: str) -> Optional[RenderInstruction]:
        with self._lock:
            text = self._formatter.on_time_zone_changed(time_zone_id)
            return self._emit(text) if self._attached else None

    def on_locale_changed(self, locale: str) -> Optional[RenderInstruction]:
        with self._lock:
            text = self._formatter.on_locale_changed(locale)
            return self._emit(text) if self._attached else None

    def on_demo_command(self, command: str, args: Optional[Mapping[str, str]] = None) -> bool:
        with self._lock:
            accepted = self._formatter.dispatch_demo_command(command, args)
            if accepted and self._attached and self._formatter.last is not None:
                self._emit(self._formatter.last)
            return accepted

    def _emit(self, text) -> RenderInstruction:
        instruction = present_clock(text, self._formatter.config)
        self._render(instruction)
        return instruction
