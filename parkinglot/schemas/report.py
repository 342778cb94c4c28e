from datetime import date

from parkinglot.schemas.common import BaseSchema
from parkinglot.schemas.vehicle import VehicleResponse


class FloorOccupancy(BaseSchema):
    floor: int | None
    total_spots: int
    occupied: int
    available: int
    occupancy_rate: float


class CategoryAvailability(BaseSchema):
    category: str
    total: int
    available: int


class DashboardSummary(BaseSchema):
    total_spots: int
    available_spots: int
    occupied_spots: int
    occupancy_rate: float
    parked_vehicles: int
    outstanding_fines: int
    outstanding_fine_amount: float
    active_reservations: int
    today_revenue: float
    by_category: list[CategoryAvailability]


class RevenueReport(BaseSchema):
    period_start: date
    period_end: date
    total_revenue: float


class FloorReport(BaseSchema):
    floors: list[FloorOccupancy]


class ParkedVehiclesReport(BaseSchema):
    vehicles: list[VehicleResponse]
    total: int
