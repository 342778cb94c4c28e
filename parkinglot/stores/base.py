"""Record store contracts consumed by the parking engine.

Every method is a coroutine: a store may block on I/O, so callers treat each
call as a suspension point and never hold an engine lock across one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Generic, TypeVar

from parkinglot.schemas.fine import Fine
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.schemas.payment import Payment
from parkinglot.schemas.reservation import Reservation
from parkinglot.schemas.session import Ticket
from parkinglot.schemas.vehicle import Vehicle
from parkinglot.utils.constants import SpotCategory

T = TypeVar("T")


class RecordStore(ABC, Generic[T]):
    @abstractmethod
    async def find(self, record_id: str) -> T | None: ...

    @abstractmethod
    async def find_all(self) -> list[T]: ...

    @abstractmethod
    async def save(self, record: T) -> T: ...

    @abstractmethod
    async def update(self, record: T) -> T: ...

    @abstractmethod
    async def delete(self, record_id: str) -> bool: ...


class SpotStore(RecordStore[ParkingSpot], ABC):
    @abstractmethod
    async def find_available_by_category(self, category: SpotCategory) -> list[ParkingSpot]: ...

    @abstractmethod
    async def find_by_occupant(self, license_plate: str) -> ParkingSpot | None: ...


class VehicleStore(RecordStore[Vehicle], ABC):
    @abstractmethod
    async def find_active_by_plate(self, license_plate: str) -> Vehicle | None: ...

    @abstractmethod
    async def find_by_plate(self, license_plate: str) -> list[Vehicle]:
        """All sessions for a plate, oldest entry first."""

    @abstractmethod
    async def find_currently_parked(self) -> list[Vehicle]: ...


class TicketStore(RecordStore[Ticket], ABC):
    pass


class FineStore(RecordStore[Fine], ABC):
    @abstractmethod
    async def find_unpaid_by_plate(self, license_plate: str) -> list[Fine]: ...

    @abstractmethod
    async def sum_unpaid_by_plate(self, license_plate: str) -> float: ...

    @abstractmethod
    async def mark_paid(self, fine_id: str) -> Fine | None: ...

    @abstractmethod
    async def find_all_unpaid(self) -> list[Fine]: ...


class PaymentStore(RecordStore[Payment], ABC):
    @abstractmethod
    async def find_by_plate(self, license_plate: str) -> list[Payment]: ...

    @abstractmethod
    async def total_revenue(self, start_date: date, end_date: date) -> float:
        """Sum of payments made between the two dates, both inclusive (UTC)."""


class ReservationStore(RecordStore[Reservation], ABC):
    @abstractmethod
    async def find_by_spot_and_range(
        self, spot_id: str, start_time: datetime, end_time: datetime
    ) -> list[Reservation]:
        """Pending/confirmed reservations on the spot overlapping ``[start, end)``."""

    @abstractmethod
    async def find_active(self) -> list[Reservation]: ...

    @abstractmethod
    async def find_expired_pending(self, now: datetime) -> list[Reservation]:
        """Pending/confirmed reservations whose end time is before ``now``."""

    @abstractmethod
    async def find_by_plate(self, license_plate: str) -> list[Reservation]: ...


@dataclass(frozen=True)
class Stores:
    spots: SpotStore
    vehicles: VehicleStore
    tickets: TicketStore
    fines: FineStore
    payments: PaymentStore
    reservations: ReservationStore
