"""
errors.py — Error kinds raised or recovered by the sampling core.

None of these are fatal: the worst outcome of any of them is a stale or
blank indicator.
"""


class StatusBarError(Exception):
    """Base class for every error produced by the status bar core."""


class ConfigInvalid(StatusBarError, ValueError):
    """A setting is missing or malformed; the documented default is used."""

    def __init__(self, key: str, value: object, default: object):
        super().__init__(f"Invalid value {value!r} for {key}, using {default!r}")
        self.key = key
        self.value = value
        self.default = default


class CounterRegression(StatusBarError):
    """A cumulative counter went backwards (reset or wrap)."""

    def __init__(self, previous: int, current: int):
        super().__init__(f"Counter regressed from {previous} to {current}")
        self.previous = previous
        self.current = current


class ClockAmbiguous(StatusBarError, ValueError):
    """A demo clock command carried a time that cannot be applied."""


class DivisionDegenerate(StatusBarError, ArithmeticError):
    """The sampling interval is too small to divide by."""
