"""
Slot availability rules for a single calendar day.

A reservation blocks the whole hours ``{time, time + 1, ..., time + duration - 1}``
where the duration comes from the service catalog. A request is checked, in this
order, for being in the past, running past the end of the day, overlapping a
reservation that starts at another hour, and finally the per-slot capacity.
Reservations that start at the very same hour share the slot and only count
towards its capacity.
"""
from datetime import date, datetime, time as dt_time
from typing import Iterable, Set

from app.core.config_loader import ServiceCatalog
from app.core.exceptions import SlotFull, SlotInPast, SlotOutOfRange, SlotOverlap
from app.models.reservation import Reservation

DEFAULT_CAPACITY = 2


def occupied_hours(start_hour: int, duration: int) -> Set[int]:
    return {start_hour + offset for offset in range(duration)}


def slot_start(day: date, hour: int) -> datetime:
    return datetime.combine(day, dt_time(hour=hour))


def check_not_in_past(day: date, hour: int, now: datetime) -> None:
    # Compare at minute resolution so a request sent during the slot's first minute still passes
    now = now.replace(second=0, microsecond=0)
    if slot_start(day, hour) < now:
        raise SlotInPast(f"This slot ({day.isoformat()} at {hour}:00) is already in the past.")


def check_within_day(hour: int, duration: int, opening_hour: int = 0, closing_hour: int = 24) -> None:
    last_hour = hour + duration - 1
    if hour < opening_hour or last_hour >= closing_hour:
        raise SlotOutOfRange(
            f"A {duration}h service starting at {hour}:00 would end after closing time ({closing_hour}:00)."
        )


def check_no_overlap(hour: int, duration: int, existing: Iterable[Reservation], catalog: ServiceCatalog) -> None:
    requested = occupied_hours(hour, duration)
    for reservation in existing:
        if reservation.hour == hour:
            continue
        taken = occupied_hours(reservation.hour, catalog.duration(reservation.service))
        if requested & taken:
            raise SlotOverlap(
                f"This slot overlaps the reservation at {reservation.time}:00 ({reservation.service}).",
                conflicting_time=reservation.time,
                conflicting_service=reservation.service,
            )


def check_capacity(hour: int, count: int, capacity: int = DEFAULT_CAPACITY) -> None:
    if count >= capacity:
        raise SlotFull(f"This slot ({hour}:00) is already full ({count}/{capacity} reservations).")


def check_availability(
    day: date,
    hour: int,
    service: str,
    existing: Iterable[Reservation],
    same_slot_count: int,
    catalog: ServiceCatalog,
    now: datetime,
    capacity: int = DEFAULT_CAPACITY,
    opening_hour: int = 0,
    closing_hour: int = 24,
) -> Set[int]:
    """
    Raises the first failing ``BookingRejected`` or returns the hours the
    requested reservation would occupy.
    """
    duration = catalog.duration(service)

    check_not_in_past(day, hour, now)
    check_within_day(hour, duration, opening_hour, closing_hour)
    check_no_overlap(hour, duration, existing, catalog)
    check_capacity(hour, same_slot_count, capacity)

    return occupied_hours(hour, duration)
