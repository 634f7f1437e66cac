import logging

import pytest

from config import (
    DEFAULT_COLOR,
    DEFAULT_INTERVAL_MS,
    KEY_CLOCK_24_HOUR,
    KEY_CLOCK_AM_PM,
    KEY_CLOCK_COLOR,
    KEY_CLOCK_DOW,
    KEY_CLOCK_LOCALE,
    KEY_TRAFFIC_COLOR_UP,
    KEY_TRAFFIC_HIDE,
    KEY_TRAFFIC_ICON,
    KEY_TRAFFIC_INTERVAL,
    KEY_TRAFFIC_STATE,
    KEY_TRAFFIC_TEXT,
    KEY_TRAFFIC_UNIT,
    MASK_DOWN,
    MASK_UNIT,
    MASK_UP,
)
from statusbar.config_policy import (
    ClockConfig,
    FormatConfig,
    SegmentStyle,
    UnitSystem,
    apply,
    apply_clock_settings,
    apply_format_settings,
    should_run,
)


class TestFormatSettings:
    def test_empty_settings_use_documented_defaults(self):
        cfg = apply_format_settings({})
        assert cfg.interval_ms == DEFAULT_INTERVAL_MS
        assert cfg.unit_system is UnitSystem.BYTE
        assert cfg.show_icon is True
        assert cfg.show_text is False
        assert cfg.hide_when_idle is False
        assert cfg.show_up is False and cfg.show_down is False
        assert cfg.color_up == cfg.color_down == cfg.color_icon == DEFAULT_COLOR

    def test_state_mask_sets_directions(self):
        cfg = apply_format_settings({KEY_TRAFFIC_STATE: MASK_UP | MASK_DOWN})
        assert cfg.show_up and cfg.show_down
        assert apply_format_settings({KEY_TRAFFIC_STATE: MASK_DOWN}).show_up is False

    @pytest.mark.parametrize("interval", [0, -5, "0", "-1000"])
    def test_non_positive_interval_falls_back(self, interval):
        cfg = apply_format_settings({KEY_TRAFFIC_INTERVAL: interval})
        assert cfg.interval_ms == DEFAULT_INTERVAL_MS

    @pytest.mark.parametrize("value", ["fast", "", None, 3.5, object()])
    def test_malformed_values_fall_back(self, value):
        cfg = apply_format_settings({KEY_TRAFFIC_INTERVAL: value, KEY_TRAFFIC_ICON: value})
        assert cfg.interval_ms == DEFAULT_INTERVAL_MS
        assert cfg.show_icon is True

    def test_malformed_value_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="statusbar.config_policy"):
            apply_format_settings({KEY_TRAFFIC_INTERVAL: "soon"})
        assert "network_traffic_interval" in caplog.text

    def test_string_values_are_parsed(self):
        cfg = apply_format_settings({
            KEY_TRAFFIC_STATE: "3",
            KEY_TRAFFIC_TEXT: "1",
            KEY_TRAFFIC_HIDE: "1",
            KEY_TRAFFIC_UNIT: "0",
            KEY_TRAFFIC_INTERVAL: "2000",
            KEY_TRAFFIC_COLOR_UP: "#FF0000",
        })
        assert cfg.show_up and cfg.show_down
        assert cfg.show_text and cfg.hide_when_idle
        assert cfg.unit_system is UnitSystem.BIT
        assert cfg.interval_ms == 2000
        assert cfg.color_up == 0xFF0000

    def test_signed_color_is_normalised(self):
        cfg = apply_format_settings({KEY_TRAFFIC_COLOR_UP: -1})
        assert cfg.color_up == 0xFFFFFFFF

    def test_unit_bit_and_period_used_when_keys_absent(self):
        state = MASK_UP | MASK_UNIT | (500 << 16)
        cfg = apply_format_settings({KEY_TRAFFIC_STATE: state})
        assert cfg.unit_system is UnitSystem.BIT
        assert cfg.interval_ms == 500

    def test_dedicated_keys_win_over_packed_state(self):
        state = MASK_UP | MASK_UNIT | (500 << 16)
        cfg = apply_format_settings({
            KEY_TRAFFIC_STATE: state,
            KEY_TRAFFIC_UNIT: 1,
            KEY_TRAFFIC_INTERVAL: 1500,
        })
        assert cfg.unit_system is UnitSystem.BYTE
        assert cfg.interval_ms == 1500

    def test_state_mask_round_trips_flags(self):
        cfg = FormatConfig(interval_ms=750, unit_system=UnitSystem.BIT, show_up=True)
        mask = cfg.state_mask
        assert mask & MASK_UP
        assert not mask & MASK_DOWN
        assert mask & MASK_UNIT
        assert mask >> 16 == 750

    def test_direct_construction_clamps_interval(self):
        assert FormatConfig(interval_ms=0).interval_ms == DEFAULT_INTERVAL_MS


class TestClockSettings:
    def test_defaults_hide_optional_segments(self):
        cfg = apply_clock_settings({})
        assert cfg.am_pm_style is SegmentStyle.GONE
        assert cfg.day_of_week_style is SegmentStyle.GONE
        assert cfg.is_24_hour is False
        assert cfg.color == DEFAULT_COLOR

    def test_styles_and_flags(self):
        cfg = apply_clock_settings({
            KEY_CLOCK_AM_PM: "1",
            KEY_CLOCK_DOW: 0,
            KEY_CLOCK_24_HOUR: 1,
            KEY_CLOCK_COLOR: 0xFF00FF00,
            KEY_CLOCK_LOCALE: "de_DE",
        })
        assert cfg == ClockConfig(
            am_pm_style=SegmentStyle.SMALL,
            day_of_week_style=SegmentStyle.NORMAL,
            is_24_hour=True,
            locale="de_DE",
            color=0xFF00FF00,
        )

    def test_out_of_range_style_falls_back(self):
        cfg = apply_clock_settings({KEY_CLOCK_AM_PM: 7, KEY_CLOCK_DOW: "x"})
        assert cfg.am_pm_style is SegmentStyle.GONE
        assert cfg.day_of_week_style is SegmentStyle.GONE


def test_apply_dispatches_on_keys():
    assert isinstance(apply({KEY_CLOCK_DOW: 0}), ClockConfig)
    assert isinstance(apply({KEY_TRAFFIC_STATE: 1}), FormatConfig)
    assert isinstance(apply({}), FormatConfig)


class TestShouldRun:
    @pytest.mark.parametrize("up, down, screen, link, expected", [
        (True, False, True, True, True),
        (False, True, True, True, True),
        (True, True, True, True, True),
        (False, False, True, True, False),
        (True, True, False, True, False),
        (True, True, True, False, False),
        (False, False, False, False, False),
    ])
    def test_truth_table(self, up, down, screen, link, expected):
        cfg = FormatConfig(show_up=up, show_down=down)
        assert should_run(cfg, screen, link) is expected

    def test_no_config(self):
        assert should_run(None, True, True) is False
