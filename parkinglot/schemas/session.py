from datetime import datetime

from pydantic import field_validator

from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.constants import PaymentMethod, VehicleClass
from parkinglot.utils.identifiers import generate_id


class Ticket(RecordSchema):
    id: str
    license_plate: str
    spot_id: str
    entry_time: datetime

    @classmethod
    def issue(cls, license_plate: str, spot_id: str, entry_time: datetime) -> "Ticket":
        return cls(
            id=generate_id("TKT"),
            license_plate=license_plate,
            spot_id=spot_id,
            entry_time=entry_time,
        )


class SessionEntryRequest(BaseSchema):
    license_plate: str
    vehicle_class: VehicleClass
    spot_id: str

    @field_validator("license_plate")
    @classmethod
    def validate_license_plate(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("License plate cannot be empty")
        if len(v) > 20:
            raise ValueError("License plate cannot exceed 20 characters")
        return v.upper()


class SessionExitRequest(BaseSchema):
    license_plate: str
    payment_method: PaymentMethod = PaymentMethod.CASH


class FeeCalculation(BaseSchema):
    duration_minutes: int
    duration_hours: int
    hourly_rate: float
    fee: float
