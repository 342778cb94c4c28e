from datetime import date

from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.schemas.report import (
    DashboardSummary,
    FloorReport,
    ParkedVehiclesReport,
    RevenueReport,
)
from parkinglot.schemas.vehicle import VehicleResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(facility: Facility):
    return await facility.reports.dashboard()


@router.get("/floors", response_model=FloorReport)
async def get_floor_report(facility: Facility):
    return FloorReport(floors=facility.reports.floor_summary())


@router.get("/revenue", response_model=RevenueReport)
async def get_revenue_report(
    facility: Facility,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
):
    return await facility.reports.revenue_report(start_date, end_date)


@router.get("/parked", response_model=ParkedVehiclesReport)
async def get_parked_vehicles(facility: Facility):
    vehicles = facility.reports.currently_parked()
    return ParkedVehiclesReport(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=len(vehicles),
    )
