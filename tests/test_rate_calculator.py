import logging
import random

import pytest

from config import DEGENERATE_ELAPSED_MS
from statusbar.config_policy import UnitSystem
from statusbar.rate_calculator import (
    Direction,
    RateCalculator,
    RateResult,
    Tier,
    TrafficRates,
    compute_rate,
    counter_delta,
    elapsed_for_tick,
    format_magnitude,
    format_speed,
    select_tier,
)
from statusbar.sampler import SampleReading, Sampler


def reading(rx=0, tx=0, ts=0.0):
    return SampleReading(rx_bytes=rx, tx_bytes=tx, timestamp_ms=ts)


class TestExamples:
    def test_two_megabytes_per_second(self):
        prev = reading(rx=0, ts=0)
        curr = reading(rx=2_097_152, ts=1000)
        result = compute_rate(prev, curr, UnitSystem.BYTE, Direction.DOWN)
        assert result.speed == 2_097_152
        assert result.tier is Tier.MEGA
        assert result.text == "2.0MB/s"

    def test_bits_over_half_interval(self):
        prev = reading(tx=0, ts=0)
        curr = reading(tx=500, ts=500)
        result = compute_rate(prev, curr, UnitSystem.BIT, Direction.UP)
        assert result.speed == 8000
        assert result.tier is Tier.KILO
        assert result.text == "8.0kb/s"

    def test_base_tier_is_whole_units(self):
        result = compute_rate(reading(ts=0), reading(rx=512, ts=1000), UnitSystem.BYTE, Direction.DOWN)
        assert result.text == "512B/s"


class TestCounterRegression:
    def test_negative_delta_is_zero(self, caplog):
        with caplog.at_level(logging.WARNING, logger="statusbar.rate_calculator"):
            assert counter_delta(1000, 900) == 0
        assert "regressed" in caplog.text

    def test_wrapped_counter_gives_zero_rate(self):
        result = compute_rate(reading(rx=1000, ts=0), reading(rx=900, ts=1000),
                              UnitSystem.BYTE, Direction.DOWN)
        assert result.speed == 0
        assert result.text == "0B/s"


class TestTiers:
    @pytest.mark.parametrize("speed, base, tier", [
        (0, 1024, Tier.BASE),
        (1023, 1024, Tier.BASE),
        (1024, 1024, Tier.KILO),
        (1024 ** 2 - 1, 1024, Tier.KILO),
        (1024 ** 2, 1024, Tier.MEGA),
        (1024 ** 3, 1024, Tier.GIGA),
        (999, 1000, Tier.BASE),
        (1000, 1000, Tier.KILO),
        (10 ** 12, 1000, Tier.GIGA),
    ])
    def test_thresholds(self, speed, base, tier):
        assert select_tier(speed, base) is tier

    @pytest.mark.parametrize("unit_system", [UnitSystem.BIT, UnitSystem.BYTE])
    def test_tier_brackets_speed(self, unit_system):
        rng = random.Random(7)
        base = unit_system.base
        for _ in range(200):
            delta = rng.randrange(0, 5 * 10 ** 9)
            elapsed = rng.uniform(1, 5000)
            prev = reading(rx=10, ts=100)
            curr = reading(rx=10 + delta, ts=100 + elapsed)
            result = compute_rate(prev, curr, unit_system, Direction.DOWN)
            assert result.speed >= 0
            assert result.magnitude >= 0
            assert base ** result.tier <= result.speed or result.tier is Tier.BASE
            if result.tier is not Tier.GIGA:
                assert result.speed < base ** (result.tier + 1)


class TestFormatting:
    @pytest.mark.parametrize("speed, unit_system, text", [
        (0, UnitSystem.BYTE, "0B/s"),
        (1536, UnitSystem.BYTE, "1.5kB/s"),
        (1024 * 1.25, UnitSystem.BYTE, "1.3kB/s"),
        (1000 * 1.05, UnitSystem.BIT, "1.1kb/s"),
        (3 * 1000 ** 3, UnitSystem.BIT, "3.0Gb/s"),
        (999.5, UnitSystem.BIT, "999b/s"),
    ])
    def test_half_up_rounding(self, speed, unit_system, text):
        assert format_speed(speed, unit_system) == text

    def test_at_most_three_integer_digits(self):
        assert format_magnitude(1023.4, Tier.KILO, UnitSystem.BYTE) == "999.9kB/s"
        assert format_magnitude(999.96, Tier.KILO, UnitSystem.BIT) == "999.9kb/s"
        assert format_magnitude(1010, Tier.BASE, UnitSystem.BYTE) == "999B/s"


class TestElapsed:
    def test_periodic_tick_too_soon_is_skipped(self):
        assert elapsed_for_tick(reading(ts=0), reading(ts=900), 1000, periodic=True) is None

    def test_periodic_tick_on_time(self):
        assert elapsed_for_tick(reading(ts=0), reading(ts=950), 1000, periodic=True) == 950

    def test_adhoc_tick_too_soon_is_computed(self):
        assert elapsed_for_tick(reading(ts=0), reading(ts=300), 1000, periodic=False) == 300

    def test_adhoc_tick_with_no_elapsed_time_is_clamped(self):
        assert elapsed_for_tick(reading(ts=5), reading(ts=5), 1000, periodic=False) == DEGENERATE_ELAPSED_MS

    def test_degenerate_divisor_rounds_to_zero(self):
        result = compute_rate(reading(ts=5), reading(rx=10 ** 9, ts=5), UnitSystem.BYTE,
                              Direction.DOWN, DEGENERATE_ELAPSED_MS)
        assert result.text == "0B/s"

    def test_zero_elapsed_without_override_does_not_raise(self):
        result = compute_rate(reading(ts=5), reading(rx=100, ts=5), UnitSystem.BYTE, Direction.DOWN)
        assert result.text == "0B/s"


class TestRateCalculator:
    def make(self, counters, clock, interval=1000, unit=UnitSystem.BYTE):
        return RateCalculator(Sampler(counters, clock), interval, unit)

    def test_first_update_reports_no_data_yet(self, counters, clock):
        calc = self.make(counters, clock)
        rates = calc.update()
        assert rates == TrafficRates.empty(UnitSystem.BYTE)
        assert calc.sampler.previous is not None

    def test_update_computes_both_directions(self, counters, clock):
        calc = self.make(counters, clock)
        calc.update()
        counters.add(rx=2048, tx=1024)
        clock.advance(1000)
        rates = calc.update()
        assert rates.down.text == "2.0kB/s"
        assert rates.up.text == "1.0kB/s"
        assert rates.up.direction is Direction.UP

    def test_baseline_moves_forward(self, counters, clock):
        calc = self.make(counters, clock)
        calc.update()
        counters.add(rx=1024)
        clock.advance(1000)
        calc.update()
        clock.advance(1000)
        rates = calc.update()
        assert rates.down.speed == 0

    def test_too_soon_periodic_tick_keeps_last_result(self, counters, clock):
        calc = self.make(counters, clock)
        calc.update()
        counters.add(rx=4096)
        clock.advance(1000)
        first = calc.update()

        counters.add(rx=10 ** 6)
        clock.advance(200)
        assert calc.update(periodic=True) is None
        assert calc.last is first

        # The skipped reading is not used as the baseline
        clock.advance(800)
        rates = calc.update(periodic=True)
        assert rates.down.speed == 10 ** 6

    def test_restart_rebaselines(self, counters, clock):
        calc = self.make(counters, clock)
        calc.update()
        counters.add(rx=10 ** 6)
        calc.restart()
        assert calc.last is None
        rates = calc.update(periodic=False)
        assert rates.down.speed == 0

    def test_configure_switches_units(self, counters, clock):
        calc = self.make(counters, clock)
        calc.update()
        calc.configure(2000, UnitSystem.BIT)
        counters.add(tx=1000)
        clock.advance(2000)
        rates = calc.update()
        assert rates.up.text == "4.0kb/s"


def test_empty_result():
    result = RateResult.empty(UnitSystem.BIT, Direction.UP)
    assert result.tier is Tier.BASE
    assert result.text == "0b/s"
