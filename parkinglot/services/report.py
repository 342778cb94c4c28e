from collections import defaultdict
from collections.abc import Callable
from datetime import date, datetime

from parkinglot.schemas.fine import Fine
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.schemas.report import (
    CategoryAvailability,
    DashboardSummary,
    FloorOccupancy,
    RevenueReport,
)
from parkinglot.schemas.vehicle import Vehicle
from parkinglot.services.fine import FineService
from parkinglot.services.parking import SpotRegistry
from parkinglot.services.payment import PaymentService
from parkinglot.services.reservation import ReservationLedger
from parkinglot.services.session import ParkingOrchestrator
from parkinglot.utils.constants import SpotCategory
from parkinglot.utils.time import utcnow


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole > 0 else 0.0


class ReportCollector:
    """Read-only aggregation over the running facility."""

    def __init__(
        self,
        spots: SpotRegistry,
        orchestrator: ParkingOrchestrator,
        fines: FineService,
        payments: PaymentService,
        reservations: ReservationLedger,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._spots = spots
        self._orchestrator = orchestrator
        self._fines = fines
        self._payments = payments
        self._reservations = reservations
        self._clock = clock

    async def total_revenue(self, start_date: date, end_date: date) -> float:
        return await self._payments.total_revenue(start_date, end_date)

    async def revenue_report(
        self, start_date: date | None = None, end_date: date | None = None
    ) -> RevenueReport:
        today = self._clock().date()
        start_date = start_date or today
        end_date = end_date or today
        total = await self.total_revenue(start_date, end_date)
        return RevenueReport(period_start=start_date, period_end=end_date, total_revenue=total)

    def currently_parked(self) -> list[Vehicle]:
        return self._orchestrator.parked_vehicles()

    async def outstanding_fines(self) -> list[Fine]:
        return await self._fines.outstanding()

    def all_spots(self) -> list[ParkingSpot]:
        return self._spots.all()

    def total_spots(self) -> int:
        return len(self._spots.all())

    def available_spot_count(self) -> int:
        return sum(1 for spot in self._spots.all() if spot.is_available)

    def occupancy_rate(self) -> float:
        total = self.total_spots()
        return _rate(total - self.available_spot_count(), total)

    def floor_summary(self) -> list[FloorOccupancy]:
        floors: dict[int | None, list[ParkingSpot]] = defaultdict(list)
        for spot in self._spots.all():
            floors[spot.floor].append(spot)

        summary = []
        for floor in sorted(floors, key=lambda f: (f is None, f or 0)):
            spots = floors[floor]
            available = sum(1 for spot in spots if spot.is_available)
            summary.append(
                FloorOccupancy(
                    floor=floor,
                    total_spots=len(spots),
                    occupied=len(spots) - available,
                    available=available,
                    occupancy_rate=_rate(len(spots) - available, len(spots)),
                )
            )
        return summary

    def category_availability(self) -> list[CategoryAvailability]:
        spots = self._spots.all()
        return [
            CategoryAvailability(
                category=category.value,
                total=sum(1 for s in spots if s.category == category),
                available=sum(1 for s in spots if s.category == category and s.is_available),
            )
            for category in SpotCategory
        ]

    async def dashboard(self) -> DashboardSummary:
        total = self.total_spots()
        available = self.available_spot_count()
        fines = await self.outstanding_fines()
        today = self._clock().date()
        return DashboardSummary(
            total_spots=total,
            available_spots=available,
            occupied_spots=total - available,
            occupancy_rate=_rate(total - available, total),
            parked_vehicles=len(self.currently_parked()),
            outstanding_fines=len(fines),
            outstanding_fine_amount=round(sum(f.amount for f in fines), 2),
            active_reservations=len(self._reservations.active()),
            today_revenue=await self.total_revenue(today, today),
            by_category=self.category_availability(),
        )
