from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.schemas.parking import (
    ParkingSpot,
    ParkingSpotCreate,
    ParkingSpotListResponse,
    ParkingSpotResponse,
)
from parkinglot.utils.constants import SpotCategory, VehicleClass

router = APIRouter(prefix="/spots", tags=["Parking Spots"])


def _spot_list(spots: list[ParkingSpot]) -> ParkingSpotListResponse:
    return ParkingSpotListResponse(
        spots=[ParkingSpotResponse.model_validate(spot) for spot in spots],
        total=len(spots),
    )


@router.get("", response_model=ParkingSpotListResponse)
async def list_spots(facility: Facility):
    return _spot_list(facility.spots.all())


@router.post("", response_model=ParkingSpotResponse, status_code=201)
async def create_spot(facility: Facility, data: ParkingSpotCreate):
    spot = await facility.spots.add(
        ParkingSpot(id=data.id, category=data.category, hourly_rate=data.hourly_rate)
    )
    return ParkingSpotResponse.model_validate(spot)


@router.get("/available", response_model=ParkingSpotListResponse)
async def list_available_spots(
    facility: Facility,
    vehicle_class: VehicleClass | None = Query(None),
    category: SpotCategory | None = Query(None),
):
    if vehicle_class is not None:
        spots = facility.orchestrator.available_spots(vehicle_class)
        if category is not None:
            spots = [spot for spot in spots if spot.category == category]
    elif category is not None:
        spots = facility.spots.find_available(category)
    else:
        spots = [spot for spot in facility.spots.all() if spot.is_available]
    return _spot_list(spots)


@router.get("/{spot_id}", response_model=ParkingSpotResponse)
async def get_spot(facility: Facility, spot_id: str):
    return ParkingSpotResponse.model_validate(facility.spots.require(spot_id))
