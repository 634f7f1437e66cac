"""
clock_formatter.py — Status bar clock text with per-segment styling.

The clock string is built from three independent segments:

  • day of week ("Wed ")   — omitted when GONE, 70 % size when SMALL
  • time ("1:05" / "13:05")
  • AM/PM marker (" PM")   — omitted in 24-hour mode or when GONE,
                              70 % size when SMALL

`ClockFormatter` adds the refresh state machine (IDLE → FORMATTING → IDLE
on every tick) and a demo mode in which the displayed time is injected
instead of read from the real clock.
"""

import enum
import logging
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone, tzinfo
from typing import Callable, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import DEFAULT_TIME_ZONE, SMALL_RELATIVE_SIZE
from statusbar.config_policy import ClockConfig, SegmentStyle
from statusbar.errors import ClockAmbiguous

log = logging.getLogger(__name__)

COMMAND_ENTER = "enter"
COMMAND_EXIT = "exit"
COMMAND_CLOCK = "clock"

_PATTERN_24 = "%H:%M"


# ── Data model ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class TimeSnapshot:
    """The instant to display and the zone to display it in."""
    epoch_millis: int
    time_zone_id: str = DEFAULT_TIME_ZONE

    def local_time(self) -> datetime:
        return datetime.fromtimestamp(self.epoch_millis / 1000.0, tz=resolve_zone(self.time_zone_id))


@dataclass(frozen=True)
class Segment:
    text: str
    relative_size: float = 1.0


@dataclass(frozen=True)
class StyledText:
    """Concatenated clock segments plus their styling."""
    segments: Tuple[Segment, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.segments)

    def spans(self) -> Tuple[Tuple[int, int, float], ...]:
        """(start, end, relative_size) for every segment drawn at reduced size."""
        spans = []
        offset = 0
        for segment in self.segments:
            end = offset + len(segment.text)
            if segment.relative_size != 1.0:
                spans.append((offset, end, segment.relative_size))
            offset = end
        return tuple(spans)

    def __str__(self) -> str:
        return self.text


class ClockState(enum.Enum):
    IDLE = "idle"
    FORMATTING = "formatting"
    DEMO = "demo"


# ── Helpers ──────────────────────────────────────────────────────────

def resolve_zone(time_zone_id: str) -> tzinfo:
    """Return the tzinfo for *time_zone_id*, falling back to UTC."""
    if time_zone_id in ("UTC", "GMT", "Z"):
        return timezone.utc
    try:
        return ZoneInfo(time_zone_id)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("Unknown time zone %r, using UTC", time_zone_id)
        return timezone.utc


def _segment(text: str, style: SegmentStyle) -> Segment:
    if style is SegmentStyle.SMALL:
        return Segment(text, SMALL_RELATIVE_SIZE)
    return Segment(text)


def _time_text(moment: datetime, is_24_hour: bool) -> str:
    if is_24_hour:
        return moment.strftime(_PATTERN_24)
    # h:mm, no leading zero on the hour
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment.minute:02d}"


def parse_hhmm(hhmm: str) -> Tuple[int, int]:
    """Parse a four-digit "HHMM" literal into (hour, minute)."""
    if not isinstance(hhmm, str) or len(hhmm) != 4 or not hhmm.isdigit():
        raise ClockAmbiguous(f"expected four digits HHMM, got {hhmm!r}")
    hour, minute = int(hhmm[:2]), int(hhmm[2:])
    if hour > 23 or minute > 59:
        raise ClockAmbiguous(f"{hhmm!r} is not a valid time of day")
    return hour, minute


# ── Formatting ───────────────────────────────────────────────────────

def format_clock(snapshot: TimeSnapshot, config: ClockConfig, time_pattern: Optional[str] = None) -> StyledText:
    """Render *snapshot* according to *config*.

    *time_pattern* is an optional strftime pattern for the time segment;
    by default the fixed "h:mm" / "HH:mm" templates are used.

    The day-of-week and AM/PM segments come from strftime("%a") and
    strftime("%p"), so they follow the process LC_TIME locale rather than
    *config.locale*; only the time segment is chosen per locale.
    """
    moment = snapshot.local_time()
    segments = []

    if config.day_of_week_style is not SegmentStyle.GONE:
        segments.append(_segment(moment.strftime("%a") + " ", config.day_of_week_style))

    if time_pattern:
        segments.append(Segment(moment.strftime(time_pattern)))
    else:
        segments.append(Segment(_time_text(moment, config.is_24_hour)))

    if not config.is_24_hour and config.am_pm_style is not SegmentStyle.GONE:
        segments.append(_segment(" " + moment.strftime("%p"), config.am_pm_style))

    return StyledText(tuple(segments))


class ClockFormatter:
    """Clock refresh state machine with demo-mode overrides."""

    def __init__(
        self,
        config: Optional[ClockConfig] = None,
        time_zone_id: str = DEFAULT_TIME_ZONE,
        now: Callable[[], float] = time.time,
        patterns: Optional[Mapping[Tuple[str, bool], str]] = None,
    ):
        self._config = config or ClockConfig()
        self._now = now
        self._state = ClockState.IDLE
        # Optional locale-specific time patterns keyed by (locale, is_24_hour)
        self._patterns = dict(patterns or {})
        self._pattern_cache: Dict[Tuple[str, bool], Optional[str]] = {}
        self._snapshot = self._read_clock(time_zone_id)
        self._last: Optional[StyledText] = None

    # ── Properties ──

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def in_demo(self) -> bool:
        return self._state is ClockState.DEMO

    @property
    def snapshot(self) -> TimeSnapshot:
        return self._snapshot

    @property
    def config(self) -> ClockConfig:
        return self._config

    @property
    def last(self) -> Optional[StyledText]:
        return self._last

    # ── Formatting ──

    def _read_clock(self, time_zone_id: str) -> TimeSnapshot:
        return TimeSnapshot(epoch_millis=int(self._now() * 1000), time_zone_id=time_zone_id)

    def _pattern(self, config: ClockConfig) -> Optional[str]:
        key = (config.locale, config.is_24_hour)
        if key not in self._pattern_cache:
            self._pattern_cache[key] = self._patterns.get(key)
        return self._pattern_cache[key]

    def format(self, snapshot: Optional[TimeSnapshot] = None, config: Optional[ClockConfig] = None) -> StyledText:
        """Format *snapshot* (default: the current one) without changing state."""
        config = config or self._config
        return format_clock(snapshot or self._snapshot, config, self._pattern(config))

    def tick(self) -> StyledText:
        """Recompute the display value.

        Outside demo mode the real clock is read first; in demo mode the
        injected snapshot is reused.
        """
        if self._state is ClockState.DEMO:
            self._last = self.format()
            return self._last

        self._state = ClockState.FORMATTING
        try:
            self._snapshot = self._read_clock(self._snapshot.time_zone_id)
            self._last = self.format()
        finally:
            self._state = ClockState.IDLE
        return self._last

    # ── External events ──

    def set_config(self, config: ClockConfig) -> None:
        self._config = config

    def on_time_zone_changed(self, time_zone_id: str) -> StyledText:
        self._pattern_cache.clear()
        if self._state is ClockState.DEMO:
            self._snapshot = replace(self._snapshot, time_zone_id=time_zone_id)
        else:
            self._snapshot = self._read_clock(time_zone_id)
        return self.tick()

    def on_locale_changed(self, locale: str) -> StyledText:
        if locale != self._config.locale:
            self._config = replace(self._config, locale=locale)
            self._pattern_cache.clear()
        return self.tick()

    # ── Demo mode ──

    def set_clock_millis(self, millis) -> None:
        try:
            epoch = int(millis)
        except (TypeError, ValueError):
            raise ClockAmbiguous(f"invalid epoch millis {millis!r}")
        self._snapshot = replace(self._snapshot, epoch_millis=epoch)

    def set_clock_hhmm(self, hhmm: str) -> None:
        hour, minute = parse_hhmm(hhmm)
        local = self._snapshot.local_time().replace(hour=hour, minute=minute)
        self._snapshot = replace(self._snapshot, epoch_millis=int(local.timestamp() * 1000))

    def dispatch_demo_command(self, command: str, args: Optional[Mapping[str, str]] = None) -> bool:
        """Apply a demo-mode command. Returns False if it was ignored or rejected."""
        args = args or {}
        if command == COMMAND_ENTER and self._state is not ClockState.DEMO:
            self._state = ClockState.DEMO
            return True
        if command == COMMAND_EXIT and self._state is ClockState.DEMO:
            self._state = ClockState.IDLE
            self.tick()
            return True
        if command == COMMAND_CLOCK and self._state is ClockState.DEMO:
            try:
                if args.get("millis") is not None:
                    self.set_clock_millis(args["millis"])
                elif args.get("hhmm") is not None:
                    self.set_clock_hhmm(args["hhmm"])
                else:
                    raise ClockAmbiguous("clock command needs 'millis' or 'hhmm'")
            except ClockAmbiguous as exc:
                log.warning("Rejected demo clock command: %s", exc)
                return False
            self._last = self.format()
            return True
        log.debug("Ignoring demo command %r in state %s", command, self._state.value)
        return False
