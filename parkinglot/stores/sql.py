from datetime import UTC, date, datetime, time
from typing import Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from parkinglot.models.base import BaseModel
from parkinglot.models.fine import FineRecord
from parkinglot.models.parking import ParkingSpotRecord
from parkinglot.models.payment import PaymentRecord
from parkinglot.models.reservation import ReservationRecord
from parkinglot.models.session import TicketRecord
from parkinglot.models.vehicle import VehicleRecord
from parkinglot.schemas.common import RecordSchema
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
from parkinglot.utils.constants import OPEN_RESERVATION_STATUSES, SpotCategory, SpotStatus

S = TypeVar("S", bound=RecordSchema)

OPEN_STATUSES = sorted(OPEN_RESERVATION_STATUSES)


class SqlStore(RecordStore[S], Generic[S]):
    """Store backed by one ORM table; each call runs in its own short session."""

    model: type[BaseModel]
    schema: type[S]

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    def _to_schema(self, row: BaseModel) -> S:
        return self.schema.model_validate(row)

    def _to_row(self, record: S) -> BaseModel:
        return self.model(**record.model_dump(include=set(self.schema.model_fields)))

    async def _select(self, *criteria, order_by=None) -> list[S]:
        query = select(self.model).where(*criteria)
        query = query.order_by(order_by if order_by is not None else self.model.id)
        async with self._session_maker() as db:
            result = await db.execute(query)
            return [self._to_schema(row) for row in result.scalars().all()]

    async def find(self, record_id: str) -> S | None:
        async with self._session_maker() as db:
            row = await db.get(self.model, record_id)
            return self._to_schema(row) if row else None

    async def find_all(self) -> list[S]:
        return await self._select()

    async def save(self, record: S) -> S:
        async with self._session_maker() as db:
            db.add(self._to_row(record))
            await db.commit()
        return record

    async def update(self, record: S) -> S:
        async with self._session_maker() as db:
            row = await db.get(self.model, record.id)
            if row is None:
                raise KeyError(f"Record {record.id} not found")
            for field, value in record.model_dump(include=set(self.schema.model_fields)).items():
                setattr(row, field, value)
            await db.commit()
        return record

    async def delete(self, record_id: str) -> bool:
        async with self._session_maker() as db:
            result = await db.execute(delete(self.model).where(self.model.id == record_id))
            await db.commit()
            return result.rowcount > 0


class SqlSpotStore(SqlStore[ParkingSpot], SpotStore):
    model = ParkingSpotRecord
    schema = ParkingSpot

    async def find_available_by_category(self, category: SpotCategory) -> list[ParkingSpot]:
        return await self._select(
            ParkingSpotRecord.category == category,
            ParkingSpotRecord.status == SpotStatus.AVAILABLE,
        )

    async def find_by_occupant(self, license_plate: str) -> ParkingSpot | None:
        spots = await self._select(ParkingSpotRecord.occupant_plate == license_plate)
        return spots[0] if spots else None


class SqlVehicleStore(SqlStore[Vehicle], VehicleStore):
    model = VehicleRecord
    schema = Vehicle

    async def find_active_by_plate(self, license_plate: str) -> Vehicle | None:
        vehicles = await self._select(
            VehicleRecord.license_plate == license_plate,
            VehicleRecord.exit_time.is_(None),
        )
        return vehicles[0] if vehicles else None

    async def find_by_plate(self, license_plate: str) -> list[Vehicle]:
        return await self._select(
            VehicleRecord.license_plate == license_plate,
            order_by=VehicleRecord.entry_time,
        )

    async def find_currently_parked(self) -> list[Vehicle]:
        return await self._select(
            VehicleRecord.exit_time.is_(None), order_by=VehicleRecord.entry_time
        )


class SqlTicketStore(SqlStore[Ticket], TicketStore):
    model = TicketRecord
    schema = Ticket


class SqlFineStore(SqlStore[Fine], FineStore):
    model = FineRecord
    schema = Fine

    async def find_unpaid_by_plate(self, license_plate: str) -> list[Fine]:
        return await self._select(
            FineRecord.license_plate == license_plate,
            FineRecord.paid == False,  # noqa: E712
            order_by=FineRecord.issued_time,
        )

    async def sum_unpaid_by_plate(self, license_plate: str) -> float:
        async with self._session_maker() as db:
            result = await db.execute(
                select(func.sum(FineRecord.amount)).where(
                    FineRecord.license_plate == license_plate,
                    FineRecord.paid == False,  # noqa: E712
                )
            )
            return round(float(result.scalar() or 0), 2)

    async def mark_paid(self, fine_id: str) -> Fine | None:
        async with self._session_maker() as db:
            row = await db.get(FineRecord, fine_id)
            if row is None:
                return None
            row.paid = True
            await db.commit()
            return self._to_schema(row)

    async def find_all_unpaid(self) -> list[Fine]:
        return await self._select(
            FineRecord.paid == False,  # noqa: E712
            order_by=FineRecord.issued_time,
        )


class SqlPaymentStore(SqlStore[Payment], PaymentStore):
    model = PaymentRecord
    schema = Payment

    async def find_by_plate(self, license_plate: str) -> list[Payment]:
        return await self._select(
            PaymentRecord.license_plate == license_plate, order_by=PaymentRecord.paid_at
        )

    async def total_revenue(self, start_date: date, end_date: date) -> float:
        start = datetime.combine(start_date, time.min, tzinfo=UTC)
        end = datetime.combine(end_date, time.max, tzinfo=UTC)
        async with self._session_maker() as db:
            result = await db.execute(
                select(func.sum(PaymentRecord.amount)).where(
                    PaymentRecord.paid_at >= start,
                    PaymentRecord.paid_at <= end,
                )
            )
            return round(float(result.scalar() or 0), 2)


class SqlReservationStore(SqlStore[Reservation], ReservationStore):
    model = ReservationRecord
    schema = Reservation

    async def find_by_spot_and_range(
        self, spot_id: str, start_time: datetime, end_time: datetime
    ) -> list[Reservation]:
        return await self._select(
            ReservationRecord.spot_id == spot_id,
            ReservationRecord.status.in_(OPEN_STATUSES),
            ReservationRecord.start_time < end_time,
            ReservationRecord.end_time > start_time,
            order_by=ReservationRecord.start_time,
        )

    async def find_active(self) -> list[Reservation]:
        return await self._select(
            ReservationRecord.status.in_(OPEN_STATUSES),
            order_by=ReservationRecord.start_time,
        )

    async def find_expired_pending(self, now: datetime) -> list[Reservation]:
        return await self._select(
            ReservationRecord.status.in_(OPEN_STATUSES),
            ReservationRecord.end_time < now,
        )

    async def find_by_plate(self, license_plate: str) -> list[Reservation]:
        return await self._select(
            ReservationRecord.license_plate == license_plate,
            order_by=ReservationRecord.start_time,
        )


def sql_stores(session_maker: async_sessionmaker[AsyncSession]) -> Stores:
    return Stores(
        spots=SqlSpotStore(session_maker),
        vehicles=SqlVehicleStore(session_maker),
        tickets=SqlTicketStore(session_maker),
        fines=SqlFineStore(session_maker),
        payments=SqlPaymentStore(session_maker),
        reservations=SqlReservationStore(session_maker),
    )
