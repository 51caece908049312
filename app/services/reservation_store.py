from typing import Any, Awaitable, Callable, Dict, List, Optional

from supabase import AsyncClient, create_async_client

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.core.logger import logger
from app.models.reservation import Reservation

RESERVATION_FIELDS = ("fullname", "date", "time", "service", "message", "mobile")


class ReservationStore:
    """
    Reservations persisted in a Supabase (PostgREST) table.

    ``id`` and ``created_at`` are assigned by the database on insert.
    Every storage problem, including missing credentials, surfaces as
    ``PersistenceError``.
    """

    def __init__(self, client: Optional[AsyncClient] = None, table: Optional[str] = None):
        self._client = client
        self.table = table or settings.RESERVATIONS_TABLE

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
                logger.warning("⚠️ Supabase credentials missing")
                raise PersistenceError("Supabase credentials are not configured")
            try:
                self._client = await create_async_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                raise PersistenceError(f"Cannot connect to Supabase: {e}") from e
        return self._client

    async def _execute(self, action: str, build_query: Callable[[AsyncClient], Awaitable[Any]]):
        client = await self.get_client()
        try:
            return await build_query(client)
        except Exception as e:
            logger.error(f"❌ DB Error ({action}): {e}")
            raise PersistenceError(f"{action} failed: {e}") from e

    async def insert(self, record: Dict[str, Any]) -> Reservation:
        row = {name: record.get(name) for name in RESERVATION_FIELDS}
        response = await self._execute(
            "insert",
            lambda client: client.table(self.table).insert(row).execute(),
        )
        if not response.data:
            raise PersistenceError("insert returned no row")

        reservation = Reservation.model_validate(response.data[0])
        logger.info(f"✅ Reservation {reservation.id} stored for {reservation.date} at {reservation.time}:00")
        return reservation

    async def count_by_date_time(self, date: str, time: str) -> int:
        # Rows written by the first frontend hold "HH:MM"
        hour = int(time)
        spellings = sorted({str(hour), f"{hour:02d}:00", f"{hour}:00"})
        response = await self._execute(
            "count_by_date_time",
            lambda client: client.table(self.table)
            .select("id", count="exact")
            .eq("date", date)
            .in_("time", spellings)
            .execute(),
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def find_by_date(self, date: str) -> List[Reservation]:
        response = await self._execute(
            "find_by_date",
            lambda client: client.table(self.table).select("*").eq("date", date).execute(),
        )
        return [Reservation.model_validate(row) for row in response.data or []]

    async def find_all(self) -> List[Reservation]:
        """All reservations, newest first."""
        response = await self._execute(
            "find_all",
            lambda client: client.table(self.table).select("*").order("created_at", desc=True).execute(),
        )
        return [Reservation.model_validate(row) for row in response.data or []]

    async def find_by_date_sorted(self, date: str) -> List[Reservation]:
        """Reservations of one day by start hour. Sorted here because ``time`` is stored as text."""
        reservations = await self.find_by_date(date)
        return sorted(reservations, key=lambda r: r.hour)


reservation_store = ReservationStore()
