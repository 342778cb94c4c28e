from datetime import datetime, timedelta

from parkinglot.core.exceptions import InvalidStateError
from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.constants import (
    OPEN_RESERVATION_STATUSES,
    TERMINAL_RESERVATION_STATUSES,
    ReservationStatus,
)
from parkinglot.utils.identifiers import generate_id


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Half-open intervals: touching endpoints do not overlap."""
    return start_a < end_b and end_a > start_b


class Reservation(RecordSchema):
    id: str
    license_plate: str
    spot_id: str
    reserved_at: datetime
    start_time: datetime
    end_time: datetime
    status: ReservationStatus = ReservationStatus.PENDING

    @classmethod
    def open(
        cls,
        license_plate: str,
        spot_id: str,
        start_time: datetime,
        end_time: datetime,
        reserved_at: datetime,
    ) -> "Reservation":
        return cls(
            id=generate_id("RSV", 8),
            license_plate=license_plate,
            spot_id=spot_id,
            reserved_at=reserved_at,
            start_time=start_time,
            end_time=end_time,
        )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_RESERVATION_STATUSES

    def overlaps(self, start_time: datetime, end_time: datetime) -> bool:
        return intervals_overlap(self.start_time, self.end_time, start_time, end_time)

    def is_valid_at(self, moment: datetime, early_arrival: timedelta) -> bool:
        return (
            self.status == ReservationStatus.CONFIRMED
            and self.start_time - early_arrival <= moment < self.end_time
        )

    def confirm(self) -> "Reservation":
        if self.status != ReservationStatus.PENDING:
            raise InvalidStateError(
                f"Can only confirm pending reservations ({self.id} is {self.status.value})"
            )
        return self.evolve(status=ReservationStatus.CONFIRMED)

    def cancel(self) -> "Reservation":
        if self.status in TERMINAL_RESERVATION_STATUSES:
            raise InvalidStateError(
                f"Cannot cancel a {self.status.value} reservation ({self.id})"
            )
        return self.evolve(status=ReservationStatus.CANCELLED)

    def complete(self) -> "Reservation":
        if self.status != ReservationStatus.CONFIRMED:
            raise InvalidStateError(
                f"Can only complete confirmed reservations ({self.id} is {self.status.value})"
            )
        return self.evolve(status=ReservationStatus.COMPLETED)

    def expire(self) -> "Reservation":
        if not self.is_open:
            raise InvalidStateError(
                f"Cannot expire a {self.status.value} reservation ({self.id})"
            )
        return self.evolve(status=ReservationStatus.EXPIRED)


class ReservationCreate(BaseSchema):
    license_plate: str
    spot_id: str
    start_time: datetime
    end_time: datetime


class ReservationListResponse(BaseSchema):
    reservations: list[Reservation]
    total: int


class ReservationExpireResponse(BaseSchema):
    expired: list[Reservation]
    total: int


class AvailabilityResponse(BaseSchema):
    spot_id: str
    start_time: datetime
    end_time: datetime
    available: bool
    conflicts: list[Reservation]
