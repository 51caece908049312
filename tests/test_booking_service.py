import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from app.core.exceptions import PersistenceError, SlotFull, SlotInPast, SlotOverlap, ValidationError
from app.models.reservation import ReservationCreate
from app.services.booking_service import BookingService
from app.services.notification_service import ConnectionManager
from conftest import FIXED_NOW, SALON_CONFIG, make_reservation


def make_request(**overrides) -> ReservationCreate:
    payload = {
        "fullname": "Jane Doe",
        "date": "2025-10-31",
        "time": "10",
        "service": "Haircut",
        "message": "First visit",
        "mobile": "+33600000000",
    }
    payload.update(overrides)
    return ReservationCreate(**payload)


@pytest.fixture
def notifier():
    return AsyncMock()


@pytest.fixture
def service(store, notifier):
    return BookingService(store=store, notifier=notifier, config=SALON_CONFIG, clock=lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_create_and_read_back(service, store):
    created = await service.create_reservation(make_request())

    assert created.id
    assert created.time == "10"

    by_date = await store.find_by_date("2025-10-31")
    everything = await store.find_all()
    for stored in (by_date[0], everything[0]):
        assert stored.fullname == "Jane Doe"
        assert stored.date == "2025-10-31"
        assert stored.time == "10"
        assert stored.service == "Haircut"
        assert stored.message == "First visit"
        assert stored.mobile == "+33600000000"


@pytest.mark.asyncio
async def test_time_is_normalized_to_hour(service):
    created = await service.create_reservation(make_request(time="09:00"))
    assert created.time == "9"


@pytest.mark.asyncio
async def test_broadcasts_created_reservation(service, notifier):
    created = await service.create_reservation(make_request())

    notifier.broadcast.assert_awaited_once()
    event, payload = notifier.broadcast.call_args.args
    assert event == "newReservation"
    assert payload["id"] == created.id
    assert payload["fullname"] == "Jane Doe"
    assert "createdAt" in payload


@pytest.mark.asyncio
async def test_broadcast_failure_does_not_fail_creation(service, notifier, store):
    notifier.broadcast.side_effect = RuntimeError("socket closed")

    created = await service.create_reservation(make_request())

    assert created.id
    assert len(store.records) == 1


@pytest.mark.asyncio
async def test_works_without_notifier(store):
    service = BookingService(store=store, config=SALON_CONFIG, clock=lambda: FIXED_NOW)
    created = await service.create_reservation(make_request())
    assert created.id


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["fullname", "date", "time", "service", "mobile"])
async def test_missing_required_field(service, store, missing):
    with pytest.raises(ValidationError) as exc_info:
        await service.create_reservation(make_request(**{missing: ""}))

    assert missing in exc_info.value.message
    assert store.records == []


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_time", ["24", "10:30", "noon"])
async def test_invalid_time_is_rejected(service, bad_time):
    with pytest.raises(ValidationError):
        await service.create_reservation(make_request(time=bad_time))


@pytest.mark.asyncio
async def test_invalid_date_is_rejected(service):
    with pytest.raises(ValidationError):
        await service.create_reservation(make_request(date="31/10/2025"))


@pytest.mark.asyncio
async def test_past_slot_rejected(service, notifier):
    with pytest.raises(SlotInPast):
        await service.create_reservation(make_request(date="2025-10-29"))
    notifier.broadcast.assert_not_awaited()


@pytest.mark.asyncio
async def test_overlap_with_double_service(service, store):
    await service.create_reservation(make_request(time="10", service="Protein treatment + haircut"))

    assert await store.count_by_date_time("2025-10-31", "11") == 0
    with pytest.raises(SlotOverlap):
        await service.create_reservation(make_request(time="11"))


@pytest.mark.asyncio
async def test_slot_full_after_two_reservations(service):
    await service.create_reservation(make_request(time="14"))
    await service.create_reservation(make_request(time="14", fullname="John Roe"))

    with pytest.raises(SlotFull) as exc_info:
        await service.create_reservation(make_request(time="14", fullname="Third"))
    assert "2/2" in exc_info.value.message

    other = await service.create_reservation(make_request(time="16", fullname="Third"))
    assert other.time == "16"


@pytest.mark.asyncio
async def test_persistence_error_is_not_announced(service, store, notifier):
    store.fail_inserts = True

    with pytest.raises(PersistenceError):
        await service.create_reservation(make_request())
    notifier.broadcast.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_reservations_routing(service):
    await service.create_reservation(make_request(date="2025-10-30", time="15"))
    await service.create_reservation(make_request(date="2025-10-30", time="13"))
    await service.create_reservation(make_request(date="2025-10-31", time="9"))

    everything = await service.list_reservations()
    assert [r.date for r in everything] == ["2025-10-31", "2025-10-30", "2025-10-30"]

    today = await service.list_reservations("today")
    assert [r.time for r in today] == ["13", "15"]

    other_day = await service.list_reservations("2025-10-31")
    assert [r.time for r in other_day] == ["9"]


async def never_returns(*args, **kwargs):
    await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_stalled_listener_does_not_hold_up_creation(store):
    manager = ConnectionManager(send_timeout=0.05)
    listener = MagicMock()
    listener.accept = AsyncMock()
    listener.send_json = AsyncMock()
    await manager.connect(listener)
    listener.send_json.side_effect = never_returns

    service = BookingService(store=store, notifier=manager, config=SALON_CONFIG, clock=lambda: FIXED_NOW)
    created = await asyncio.wait_for(service.create_reservation(make_request()), timeout=1.0)

    assert created.id
    assert len(store.records) == 1
    assert manager.listener_count == 0


@pytest.mark.asyncio
async def test_hanging_notifier_is_abandoned(store):
    notifier = AsyncMock()
    notifier.broadcast.side_effect = never_returns
    service = BookingService(
        store=store, notifier=notifier, config=SALON_CONFIG, clock=lambda: FIXED_NOW, notify_timeout=0.05
    )

    created = await asyncio.wait_for(service.create_reservation(make_request()), timeout=1.0)

    assert created.id
    notifier.broadcast.assert_awaited_once()


@pytest.mark.asyncio
async def test_hh_mm_rows_still_block_overlaps(service, store):
    store.records.append(make_reservation(time="10:00", service="Protein treatment + haircut"))

    with pytest.raises(SlotOverlap):
        await service.create_reservation(make_request(time="11"))

    later = await service.create_reservation(make_request(time="12"))
    assert later.time == "12"
