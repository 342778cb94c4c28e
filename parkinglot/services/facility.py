import logging
from collections.abc import Callable
from datetime import datetime

from parkinglot.config import Settings, get_settings
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.services.fine import FineService, build_fine_policy
from parkinglot.services.parking import SpotRegistry
from parkinglot.services.payment import PaymentService
from parkinglot.services.report import ReportCollector
from parkinglot.services.reservation import ReservationLedger
from parkinglot.services.session import ParkingOrchestrator
from parkinglot.stores.base import Stores
from parkinglot.utils.sample_data import sample_spots
from parkinglot.utils.time import utcnow

logger = logging.getLogger(__name__)


class ParkingFacility:
    """All engine services for one facility, wired to a single set of stores."""

    def __init__(
        self,
        stores: Stores,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or get_settings()
        self.stores = stores
        self.spots = SpotRegistry(stores.spots)
        self.reservations = ReservationLedger(
            stores.reservations,
            registry=self.spots,
            clock=clock,
            grace_minutes=self.settings.reservation_grace_minutes,
        )
        self.fines = FineService(stores.fines, build_fine_policy(self.settings), clock=clock)
        self.payments = PaymentService(stores.payments, clock=clock)
        self.orchestrator = ParkingOrchestrator(
            self.spots,
            self.reservations,
            self.fines,
            self.payments,
            stores.vehicles,
            stores.tickets,
            settings=self.settings,
            clock=clock,
        )
        self.reports = ReportCollector(
            self.spots,
            self.orchestrator,
            self.fines,
            self.payments,
            self.reservations,
            clock=clock,
        )

    @classmethod
    async def create(
        cls,
        stores: Stores,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "ParkingFacility":
        facility = cls(stores, settings, clock)
        await facility.load()
        return facility

    async def load(self) -> None:
        spots = await self.spots.load()
        reservations = await self.reservations.load()
        parked = await self.orchestrator.load()
        logger.info(
            "Loaded %d spots, %d reservations, %d parked vehicles", spots, reservations, parked
        )

    async def seed(self) -> int:
        """Install the default layout when the facility has no spots yet."""
        if self.spots.all():
            logger.info("Spots already present, skipping sample data")
            return 0
        for spot_id, category, rate in sample_spots():
            await self.spots.add(ParkingSpot(id=spot_id, category=category, hourly_rate=rate))
        created = len(self.spots.all())
        logger.info("Created %d sample spots", created)
        return created
