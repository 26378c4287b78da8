from datetime import datetime, timedelta, timezone

import pytest

from floor_replan.service import ReplanService
from floor_replan.storage import MemoryStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def service(store, clock):
    svc = ReplanService(store, clock=clock)
    svc.set_default_limits(1, 3)
    return svc


@pytest.fixture
def stock_rows():
    return [
        ("Dresses", None),
        ("Quantity", None),
        ("[100] Summer Dress (M, Red)", 10),
        ("[101] Maxi Dress (Blue, S)", 4),
        ("Kids", None),
        ("[200] Kids Set (6Y)", 6),
    ]
