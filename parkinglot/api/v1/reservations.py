from datetime import datetime

from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.schemas.reservation import (
    AvailabilityResponse,
    Reservation,
    ReservationCreate,
    ReservationExpireResponse,
    ReservationListResponse,
)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("", response_model=Reservation, status_code=201)
async def create_reservation(facility: Facility, data: ReservationCreate):
    return await facility.reservations.create(
        data.license_plate, data.spot_id, data.start_time, data.end_time
    )


@router.get("", response_model=ReservationListResponse)
async def list_reservations(facility: Facility, license_plate: str | None = Query(None)):
    if license_plate:
        reservations = facility.reservations.find_by_plate(license_plate)
    else:
        reservations = facility.reservations.all()
    return ReservationListResponse(reservations=reservations, total=len(reservations))


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    facility: Facility,
    spot_id: str,
    start_time: datetime,
    end_time: datetime,
):
    conflicts = facility.reservations.find_overlapping(spot_id, start_time, end_time)
    return AvailabilityResponse(
        spot_id=spot_id,
        start_time=start_time,
        end_time=end_time,
        available=not conflicts,
        conflicts=conflicts,
    )


@router.post("/expire", response_model=ReservationExpireResponse)
async def expire_reservations(facility: Facility):
    expired = await facility.reservations.expire_stale()
    return ReservationExpireResponse(expired=expired, total=len(expired))


@router.get("/{reservation_id}", response_model=Reservation)
async def get_reservation(facility: Facility, reservation_id: str):
    return facility.reservations.get(reservation_id)


@router.post("/{reservation_id}/confirm", response_model=Reservation)
async def confirm_reservation(facility: Facility, reservation_id: str):
    return await facility.reservations.confirm(reservation_id)


@router.post("/{reservation_id}/cancel", response_model=Reservation)
async def cancel_reservation(facility: Facility, reservation_id: str):
    return await facility.reservations.cancel(reservation_id)


@router.post("/{reservation_id}/complete", response_model=Reservation)
async def complete_reservation(facility: Facility, reservation_id: str):
    return await facility.reservations.complete(reservation_id)
