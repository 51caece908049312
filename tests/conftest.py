import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest

from app.core.exceptions import PersistenceError
from app.models.reservation import Reservation

FIXED_NOW = datetime(2025, 10, 30, 12, 0, 0)

SALON_CONFIG = {
    "salon_name": "Test Salon",
    "slot_capacity": 2,
    "opening_hour": 0,
    "closing_hour": 24,
    "default_duration_hours": 1,
    "services": {"protein treatment + haircut": 2},
    "combined_services": [{"keywords": ["protein", "haircut"], "duration_hours": 2}],
}


class InMemoryReservationStore:
    """Stands in for the Supabase-backed store."""

    def __init__(self):
        self.records: List[Reservation] = []
        self.fail_inserts = False
        self._created = datetime(2025, 1, 1)

    async def insert(self, record: Dict[str, Any]) -> Reservation:
        if self.fail_inserts:
            raise PersistenceError("insert failed: database unavailable")
        self._created += timedelta(seconds=1)
        reservation = Reservation(id=str(uuid.uuid4()), created_at=self._created, **record)
        self.records.append(reservation)
        return reservation

    async def count_by_date_time(self, date: str, time: str) -> int:
        return len([r for r in self.records if r.date == date and r.time == time])

    async def find_by_date(self, date: str) -> List[Reservation]:
        return [r for r in self.records if r.date == date]

    async def find_all(self) -> List[Reservation]:
        return sorted(self.records, key=lambda r: r.created_at, reverse=True)

    async def find_by_date_sorted(self, date: str) -> List[Reservation]:
        return sorted(await self.find_by_date(date), key=lambda r: r.hour)


@pytest.fixture
def store():
    return InMemoryReservationStore()


def make_reservation(date="2025-10-31", time="10", service="Haircut", **extra) -> Reservation:
    fields = {
        "id": str(uuid.uuid4()),
        "fullname": "Jane Doe",
        "date": date,
        "time": time,
        "service": service,
        "mobile": "+33600000000",
        "created_at": FIXED_NOW,
    }
    fields.update(extra)
    return Reservation(**fields)
