from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest

from fitstudio.services.booking_service import BookingService
from fitstudio.services.cancellation_request_service import CancellationRequestService

# Class slots built by the factory default to 2025-03-14 07:00 Nairobi
SLOT_START_UTC = datetime(2025, 3, 14, 4, 0, tzinfo=timezone.utc)


class MutableClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def hours_before_slot(self, hours: float) -> None:
        self.now = SLOT_START_UTC - timedelta(hours=hours)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(SLOT_START_UTC - timedelta(days=3))


@pytest.fixture
def make_booking_service(db, test_settings, clock) -> Callable[..., BookingService]:
    def _make(**overrides) -> BookingService:
        overrides.setdefault("config", test_settings)
        overrides.setdefault("clock", clock)
        return BookingService(db, **overrides)

    return _make


@pytest.fixture
def booking_service(make_booking_service) -> BookingService:
    return make_booking_service()


@pytest.fixture
def request_service(db, booking_service) -> CancellationRequestService:
    return CancellationRequestService(db, booking_service)


@pytest.fixture
def guest_data() -> Callable[..., dict]:
    def _data(slot, name: str = "Achieng", phone: Optional[str] = "+254722000000", **extra) -> dict:
        return dict(time_slot_id=slot.id, guest_name=name, guest_phone=phone, **extra)

    return _data
