import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.core.config import settings
from app.core.config_loader import ServiceCatalog, load_salon_config
from app.core.exceptions import BookingRejected, ValidationError
from app.core.logger import logger
from app.models.reservation import Reservation, ReservationCreate, normalize_time, parse_date
from app.services.availability import DEFAULT_CAPACITY, check_availability
from app.services.notification_service import NEW_RESERVATION_EVENT
from app.services.reservation_store import ReservationStore

REQUIRED_FIELDS = ("fullname", "date", "time", "service", "mobile")


class BookingService:
    """
    Creates reservations after checking availability and reads them back.

    The store, the real-time notifier and the clock are passed in so the
    service can run against fakes. ``notifier`` only needs an async
    ``broadcast(event, payload)``; ``None`` disables broadcasting. A broadcast
    that outlasts ``notify_timeout`` seconds is abandoned, the reservation stays.
    """

    def __init__(
        self,
        store: ReservationStore,
        notifier=None,
        config: Optional[Dict[str, Any]] = None,
        clock: Callable[[], datetime] = datetime.now,
        notify_timeout: Optional[float] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.config = config if config is not None else load_salon_config()
        self.catalog = ServiceCatalog.from_config(self.config)
        self.capacity = int(self.config.get("slot_capacity", DEFAULT_CAPACITY))
        self.opening_hour = int(self.config.get("opening_hour", 0))
        self.closing_hour = int(self.config.get("closing_hour", 24))
        self.clock = clock
        self.notify_timeout = notify_timeout if notify_timeout is not None else settings.NOTIFY_TIMEOUT

    def today(self) -> str:
        return self.clock().date().isoformat()

    async def create_reservation(self, data: ReservationCreate) -> Reservation:
        """
        Validate, persist and announce a new reservation (Async).
        Raises a ``BookingRejected`` subclass or ``PersistenceError``.
        """
        logger.info(f"📥 Reservation Request - Date: {data.date}, Time: {data.time}, Service: {data.service}")

        missing = [name for name in REQUIRED_FIELDS if getattr(data, name) in (None, "")]
        if missing:
            logger.info(f"🚫 Missing fields: {', '.join(missing)}")
            raise ValidationError(f"Missing required fields: {', '.join(missing)}.")

        time = normalize_time(data.time)
        day = parse_date(data.date)
        date = day.isoformat()

        existing = await self.store.find_by_date(date)
        same_slot_count = await self.store.count_by_date_time(date, time)

        try:
            hours = check_availability(
                day,
                int(time),
                data.service,
                existing,
                same_slot_count,
                self.catalog,
                now=self.clock(),
                capacity=self.capacity,
                opening_hour=self.opening_hour,
                closing_hour=self.closing_hour,
            )
        except BookingRejected as e:
            logger.info(f"🚫 Rejected {date} {time}:00 - {e}")
            raise

        record = {
            "fullname": data.fullname,
            "date": date,
            "time": time,
            "service": data.service,
            "message": data.message,
            "mobile": data.mobile,
        }
        reservation = await self.store.insert(record)
        logger.info(f"📢 New reservation: {reservation.fullname} on {date}, hours {sorted(hours)}")

        await self.notify_created(reservation)
        return reservation

    async def notify_created(self, reservation: Reservation):
        if not self.notifier:
            return
        try:
            payload = reservation.model_dump(mode="json", by_alias=True)
            await asyncio.wait_for(
                self.notifier.broadcast(NEW_RESERVATION_EVENT, payload),
                timeout=self.notify_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"⚠️ Broadcast of reservation {reservation.id} timed out after {self.notify_timeout}s")
        except Exception as e:
            logger.error(f"❌ Failed to broadcast reservation {reservation.id}: {e}")

    async def list_reservations(self, date: Optional[str] = None) -> List[Reservation]:
        """
        No date: everything, newest first. "today" or a YYYY-MM-DD date:
        that day's reservations by start hour.
        """
        if not date:
            return await self.store.find_all()
        if date == "today":
            date = self.today()
        return await self.store.find_by_date_sorted(date)
