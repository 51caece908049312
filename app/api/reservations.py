from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.models.reservation import Reservation, ReservationCreate
from app.services.booking_service import BookingService
from app.services.notification_service import connection_manager
from app.services.reservation_store import reservation_store

router = APIRouter()


@lru_cache
def get_booking_service() -> BookingService:
    return BookingService(store=reservation_store, notifier=connection_manager)


@router.get("/reservations", response_model=List[Reservation])
async def list_reservations(
    date: Optional[str] = Query(default=None, description="YYYY-MM-DD or 'today'"),
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.list_reservations(date)


@router.get("/reservations/{date}", response_model=List[Reservation])
async def list_reservations_for_date(
    date: str,
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.list_reservations(date)


@router.post("/reservations", response_model=Reservation, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    req: ReservationCreate,
    booking_service: BookingService = Depends(get_booking_service),
):
    return await booking_service.create_reservation(req)
