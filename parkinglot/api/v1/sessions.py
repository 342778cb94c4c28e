from datetime import datetime

from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.core.exceptions import NotFoundError
from parkinglot.schemas.parking import ParkingSpotResponse
from parkinglot.schemas.payment import Receipt
from parkinglot.schemas.session import (
    FeeCalculation,
    SessionEntryRequest,
    SessionExitRequest,
    Ticket,
)
from parkinglot.schemas.vehicle import VehicleListResponse, VehicleResponse

router = APIRouter(prefix="/sessions", tags=["Parking Sessions"])


@router.post("/entry", response_model=Ticket, status_code=201)
async def vehicle_entry(facility: Facility, data: SessionEntryRequest):
    return await facility.orchestrator.process_entry(
        data.license_plate, data.vehicle_class, data.spot_id
    )


@router.post("/exit", response_model=Receipt)
async def vehicle_exit(facility: Facility, data: SessionExitRequest):
    return await facility.orchestrator.process_exit(data.license_plate, data.payment_method)


@router.get("/active", response_model=VehicleListResponse)
async def list_active_sessions(facility: Facility):
    vehicles = facility.orchestrator.parked_vehicles()
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles),
    )


@router.get("/vehicles/{license_plate}", response_model=VehicleResponse)
async def get_vehicle(facility: Facility, license_plate: str):
    vehicle = await facility.orchestrator.find_vehicle(license_plate)
    if vehicle is None:
        raise NotFoundError(f"Vehicle not found: {license_plate}")
    return VehicleResponse.model_validate(vehicle)


@router.get("/vehicles/{license_plate}/spot", response_model=ParkingSpotResponse)
async def get_vehicle_spot(facility: Facility, license_plate: str):
    spot = facility.orchestrator.find_spot_by_plate(license_plate)
    if spot is None:
        raise NotFoundError(f"Vehicle is not parked: {license_plate}")
    return ParkingSpotResponse.model_validate(spot)


@router.get("/vehicles/{license_plate}/fee", response_model=FeeCalculation)
async def calculate_session_fee(
    facility: Facility,
    license_plate: str,
    exit_time: datetime | None = Query(None),
):
    return facility.orchestrator.estimate_fee(license_plate, exit_time)
