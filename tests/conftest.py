import pytest


class ManualClock:
    """Monotonic clock in milliseconds that only moves when told to."""

    def __init__(self, start_ms: float = 10_000.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


class ManualCounters:
    """Counter source whose cumulative totals are set by the test."""

    def __init__(self, rx: int = 0, tx: int = 0):
        self.rx = rx
        self.tx = tx
        self.reads = 0

    def __call__(self):
        self.reads += 1
        return self.rx, self.tx

    def add(self, rx: int = 0, tx: int = 0) -> None:
        self.rx += rx
        self.tx += tx


class HostRecorder:
    """Collects what the core sends back to the host."""

    def __init__(self):
        self.instructions = []
        self.visibility = []

    def render(self, instruction) -> None:
        self.instructions.append(instruction)

    def set_visible(self, visible: bool) -> None:
        self.visibility.append(visible)

    @property
    def last(self):
        return self.instructions[-1] if self.instructions else None


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def counters():
    return ManualCounters(rx=1_000_000, tx=500_000)


@pytest.fixture
def host():
    return HostRecorder()
