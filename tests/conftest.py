import threading
from datetime import datetime, timedelta

import pytest

T0 = datetime(2024, 5, 1, 9, 0, 0)


class FakeClock:
    """Manually advanced clock; optionally ticks forward on every read."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(0)) -> None:
        self.current = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            value = self.current
            self.current += self.step
            return value

    def advance(self, seconds: float) -> datetime:
        with self._lock:
            self.current += timedelta(seconds=seconds)
            return self.current

    def set(self, value: datetime) -> None:
        with self._lock:
            self.current = value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
