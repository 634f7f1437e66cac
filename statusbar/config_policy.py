"""
config_policy.py — Turn raw settings into validated, immutable configs.

Raw settings are whatever the host's settings provider hands over: a
mapping of key → int or numeric string. Every missing or malformed key is
replaced by its documented default from `config`; nothing here raises.

Decides whether traffic sampling should run at all (screen on, link up,
and at least one direction requested).
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from config import (
    CLOCK_KEYS,
    DEFAULT_24_HOUR,
    DEFAULT_AM_PM_STYLE,
    DEFAULT_COLOR,
    DEFAULT_DOW_STYLE,
    DEFAULT_INTERVAL_MS,
    DEFAULT_LOCALE,
    DEFAULT_TRAFFIC_HIDE,
    DEFAULT_TRAFFIC_ICON,
    DEFAULT_TRAFFIC_STATE,
    DEFAULT_TRAFFIC_TEXT,
    DEFAULT_TRAFFIC_UNIT,
    KEY_CLOCK_24_HOUR,
    KEY_CLOCK_AM_PM,
    KEY_CLOCK_COLOR,
    KEY_CLOCK_DOW,
    KEY_CLOCK_LOCALE,
    KEY_TRAFFIC_COLOR_DOWN,
    KEY_TRAFFIC_COLOR_ICON,
    KEY_TRAFFIC_COLOR_UP,
    KEY_TRAFFIC_HIDE,
    KEY_TRAFFIC_ICON,
    KEY_TRAFFIC_INTERVAL,
    KEY_TRAFFIC_STATE,
    KEY_TRAFFIC_TEXT,
    KEY_TRAFFIC_UNIT,
    KILOBIT,
    KILOBYTE,
    MASK_DOWN,
    MASK_PERIOD,
    MASK_UNIT,
    MASK_UP,
    PERIOD_SHIFT,
    STYLE_GONE,
    STYLE_NORMAL,
    STYLE_SMALL,
)
from statusbar.errors import ConfigInvalid

log = logging.getLogger(__name__)


# ── Data model ───────────────────────────────────────────────────────

class UnitSystem(enum.Enum):
    """How transferred data is counted and scaled."""
    BIT = "bit"
    BYTE = "byte"

    @property
    def base(self) -> int:
        return KILOBYTE if self is UnitSystem.BYTE else KILOBIT

    @property
    def symbol(self) -> str:
        return "B/s" if self is UnitSystem.BYTE else "b/s"


class SegmentStyle(enum.IntEnum):
    """Display style of an optional clock segment (AM/PM, day of week)."""
    NORMAL = STYLE_NORMAL
    SMALL = STYLE_SMALL
    GONE = STYLE_GONE


@dataclass(frozen=True)
class FormatConfig:
    """Validated network traffic settings."""
    interval_ms: int = DEFAULT_INTERVAL_MS
    unit_system: UnitSystem = UnitSystem.BYTE
    show_text: bool = False
    show_icon: bool = True
    hide_when_idle: bool = False
    color_up: int = DEFAULT_COLOR
    color_down: int = DEFAULT_COLOR
    color_icon: int = DEFAULT_COLOR
    show_up: bool = False
    show_down: bool = False

    def __post_init__(self):
        if self.interval_ms <= 0:
            object.__setattr__(self, "interval_ms", DEFAULT_INTERVAL_MS)

    @property
    def state_mask(self) -> int:
        """Re-encode the legacy packed state word."""
        mask = 0
        if self.show_up:
            mask |= MASK_UP
        if self.show_down:
            mask |= MASK_DOWN
        if self.unit_system is UnitSystem.BIT:
            mask |= MASK_UNIT
        mask |= (self.interval_ms << PERIOD_SHIFT) & MASK_PERIOD
        return mask

    @property
    def any_direction(self) -> bool:
        return self.show_up or self.show_down


@dataclass(frozen=True)
class ClockConfig:
    """Validated clock settings."""
    am_pm_style: SegmentStyle = SegmentStyle(DEFAULT_AM_PM_STYLE)
    day_of_week_style: SegmentStyle = SegmentStyle(DEFAULT_DOW_STYLE)
    is_24_hour: bool = DEFAULT_24_HOUR
    locale: str = DEFAULT_LOCALE
    color: int = DEFAULT_COLOR


# ── Raw value parsing ────────────────────────────────────────────────

def _parse_int(key: str, value: Any) -> int:
    """Parse an int setting; hex strings ("0xffff0000", "#ff0000") are accepted."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.startswith("#"):
                return int(text[1:], 16)
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text)
        except ValueError:
            pass
    raise ConfigInvalid(key, value, None)


def _get_int(raw: Mapping[str, Any], key: str, default: int) -> int:
    if key not in raw or raw[key] is None:
        return default
    try:
        return _parse_int(key, raw[key])
    except ConfigInvalid as exc:
        log.debug("%s", ConfigInvalid(key, exc.value, default))
        return default


def _get_bool(raw: Mapping[str, Any], key: str, default: int) -> bool:
    return _get_int(raw, key, default) != 0


def _get_color(raw: Mapping[str, Any], key: str) -> int:
    return _get_int(raw, key, DEFAULT_COLOR) & 0xFFFFFFFF


def _get_style(raw: Mapping[str, Any], key: str, default: int) -> SegmentStyle:
    value = _get_int(raw, key, default)
    try:
        return SegmentStyle(value)
    except ValueError:
        log.debug("%s", ConfigInvalid(key, value, default))
        return SegmentStyle(default)


# ── Public API ───────────────────────────────────────────────────────

def apply_format_settings(raw: Mapping[str, Any]) -> FormatConfig:
    """Build a FormatConfig from raw traffic settings.

    The packed state word supplies the direction flags. Its UNIT bit and
    PERIOD field are only consulted when the dedicated unit / interval keys
    are absent.
    """
    state = _get_int(raw, KEY_TRAFFIC_STATE, DEFAULT_TRAFFIC_STATE)

    if KEY_TRAFFIC_UNIT in raw:
        unit = _get_int(raw, KEY_TRAFFIC_UNIT, DEFAULT_TRAFFIC_UNIT)
    elif state & MASK_UNIT:
        unit = 0
    else:
        unit = DEFAULT_TRAFFIC_UNIT

    period = (state & MASK_PERIOD) >> PERIOD_SHIFT
    interval_default = period if period > 0 else DEFAULT_INTERVAL_MS
    interval = _get_int(raw, KEY_TRAFFIC_INTERVAL, interval_default)
    if interval <= 0:
        log.debug("%s", ConfigInvalid(KEY_TRAFFIC_INTERVAL, interval, DEFAULT_INTERVAL_MS))
        interval = DEFAULT_INTERVAL_MS

    return FormatConfig(
        interval_ms=interval,
        unit_system=UnitSystem.BYTE if unit == 1 else UnitSystem.BIT,
        show_text=_get_bool(raw, KEY_TRAFFIC_TEXT, DEFAULT_TRAFFIC_TEXT),
        show_icon=_get_bool(raw, KEY_TRAFFIC_ICON, DEFAULT_TRAFFIC_ICON),
        hide_when_idle=_get_bool(raw, KEY_TRAFFIC_HIDE, DEFAULT_TRAFFIC_HIDE),
        color_up=_get_color(raw, KEY_TRAFFIC_COLOR_UP),
        color_down=_get_color(raw, KEY_TRAFFIC_COLOR_DOWN),
        color_icon=_get_color(raw, KEY_TRAFFIC_COLOR_ICON),
        show_up=bool(state & MASK_UP),
        show_down=bool(state & MASK_DOWN),
    )


def apply_clock_settings(raw: Mapping[str, Any]) -> ClockConfig:
    """Build a ClockConfig from raw clock settings."""
    locale = raw.get(KEY_CLOCK_LOCALE)
    if not isinstance(locale, str) or not locale.strip():
        locale = DEFAULT_LOCALE

    return ClockConfig(
        am_pm_style=_get_style(raw, KEY_CLOCK_AM_PM, DEFAULT_AM_PM_STYLE),
        day_of_week_style=_get_style(raw, KEY_CLOCK_DOW, DEFAULT_DOW_STYLE),
        is_24_hour=_get_bool(raw, KEY_CLOCK_24_HOUR, int(DEFAULT_24_HOUR)),
        locale=locale.strip(),
        color=_get_color(raw, KEY_CLOCK_COLOR),
    )


def apply(raw: Mapping[str, Any]) -> Union[FormatConfig, ClockConfig]:
    """Validate *raw* as clock settings if it holds any clock key, else as traffic settings."""
    if any(key in raw for key in CLOCK_KEYS):
        return apply_clock_settings(raw)
    return apply_format_settings(raw)


def should_run(config: Optional[FormatConfig], screen_on: bool, link_active: bool) -> bool:
    """Return True if traffic sampling should be running right now."""
    if config is None:
        return False
    # Precedence kept as (screen and UP) or (screen and DOWN).
    wanted = screen_on and config.show_up or screen_on and config.show_down
    return bool(wanted and link_active)
