import logging
import threading
from datetime import UTC, date, datetime, time
from typing import Generic, TypeVar

from parkinglot.schemas.fine import Fine
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.schemas.payment import Payment
from parkinglot.schemas.reservation import Reservation
from parkinglot.schemas.session import Ticket
from parkinglot.schemas.vehicle import Vehicle
from parkinglot.stores.base import (
    FineStore,
    PaymentStore,
    RecordStore,
    ReservationStore,
    SpotStore,
    Stores,
    TicketStore,
    VehicleStore,
)
from parkinglot.utils.constants import SpotCategory, SpotStatus

logger = logging.getLogger(__name__)

T = TypeVar("T", ParkingSpot, Vehicle, Ticket, Fine, Payment, Reservation)


class InMemoryStore(RecordStore[T], Generic[T]):
    """Dict-backed store; records are frozen models, so no defensive copies."""

    def __init__(self) -> None:
        self._records: dict[str, T] = {}
        self._mutex = threading.Lock()

    def _values(self) -> list[T]:
        with self._mutex:
            return list(self._records.values())

    async def find(self, record_id: str) -> T | None:
        with self._mutex:
            return self._records.get(record_id)

    async def find_all(self) -> list[T]:
        return sorted(self._values(), key=lambda r: r.id)

    async def save(self, record: T) -> T:
        with self._mutex:
            if record.id in self._records:
                raise KeyError(f"Record {record.id} already exists")
            self._records[record.id] = record
        logger.debug("Saved %s %s", type(record).__name__, record.id)
        return record

    async def update(self, record: T) -> T:
        with self._mutex:
            if record.id not in self._records:
                raise KeyError(f"Record {record.id} not found")
            self._records[record.id] = record
        logger.debug("Updated %s %s", type(record).__name__, record.id)
        return record

    async def delete(self, record_id: str) -> bool:
        with self._mutex:
            return self._records.pop(record_id, None) is not None

    def clear(self) -> None:
        with self._mutex:
            self._records.clear()


class InMemorySpotStore(InMemoryStore[ParkingSpot], SpotStore):
    async def find_available_by_category(self, category: SpotCategory) -> list[ParkingSpot]:
        return [
            s
            for s in await self.find_all()
            if s.category == category and s.status == SpotStatus.AVAILABLE
        ]

    async def find_by_occupant(self, license_plate: str) -> ParkingSpot | None:
        for spot in await self.find_all():
            if spot.occupant_plate == license_plate:
                return spot
        return None


class InMemoryVehicleStore(InMemoryStore[Vehicle], VehicleStore):
    async def find_active_by_plate(self, license_plate: str) -> Vehicle | None:
        for vehicle in self._values():
            if vehicle.license_plate == license_plate and vehicle.is_parked:
                return vehicle
        return None

    async def find_by_plate(self, license_plate: str) -> list[Vehicle]:
        matches = [v for v in self._values() if v.license_plate == license_plate]
        return sorted(matches, key=lambda v: v.entry_time)

    async def find_currently_parked(self) -> list[Vehicle]:
        parked = [v for v in self._values() if v.is_parked]
        return sorted(parked, key=lambda v: v.entry_time)


class InMemoryTicketStore(InMemoryStore[Ticket], TicketStore):
    pass


class InMemoryFineStore(InMemoryStore[Fine], FineStore):
    async def find_unpaid_by_plate(self, license_plate: str) -> list[Fine]:
        unpaid = [f for f in self._values() if f.license_plate == license_plate and not f.paid]
        return sorted(unpaid, key=lambda f: f.issued_time)

    async def sum_unpaid_by_plate(self, license_plate: str) -> float:
        return round(sum(f.amount for f in await self.find_unpaid_by_plate(license_plate)), 2)

    async def mark_paid(self, fine_id: str) -> Fine | None:
        with self._mutex:
            fine = self._records.get(fine_id)
            if fine is None:
                return None
            if not fine.paid:
                fine = self._records[fine_id] = fine.mark_paid()
            return fine

    async def find_all_unpaid(self) -> list[Fine]:
        return sorted((f for f in self._values() if not f.paid), key=lambda f: f.issued_time)


class InMemoryPaymentStore(InMemoryStore[Payment], PaymentStore):
    async def find_by_plate(self, license_plate: str) -> list[Payment]:
        matches = [p for p in self._values() if p.license_plate == license_plate]
        return sorted(matches, key=lambda p: p.paid_at)

    async def total_revenue(self, start_date: date, end_date: date) -> float:
        start = datetime.combine(start_date, time.min, tzinfo=UTC)
        end = datetime.combine(end_date, time.max, tzinfo=UTC)
        return round(sum(p.amount for p in self._values() if start <= p.paid_at <= end), 2)


class InMemoryReservationStore(InMemoryStore[Reservation], ReservationStore):
    async def find_by_spot_and_range(
        self, spot_id: str, start_time: datetime, end_time: datetime
    ) -> list[Reservation]:
        return [
            r
            for r in await self.find_all()
            if r.spot_id == spot_id and r.is_open and r.overlaps(start_time, end_time)
        ]

    async def find_active(self) -> list[Reservation]:
        return [r for r in await self.find_all() if r.is_open]

    async def find_expired_pending(self, now: datetime) -> list[Reservation]:
        return [r for r in await self.find_active() if r.end_time < now]

    async def find_by_plate(self, license_plate: str) -> list[Reservation]:
        matches = [r for r in self._values() if r.license_plate == license_plate]
        return sorted(matches, key=lambda r: r.start_time)


def in_memory_stores() -> Stores:
    return Stores(
        spots=InMemorySpotStore(),
        vehicles=InMemoryVehicleStore(),
        tickets=InMemoryTicketStore(),
        fines=InMemoryFineStore(),
        payments=InMemoryPaymentStore(),
        reservations=InMemoryReservationStore(),
    )
