from datetime import datetime

from pydantic import field_validator

from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.constants import VehicleClass
from parkinglot.utils.identifiers import generate_id


class Vehicle(RecordSchema):
    """One parking session of a plate: entry to exit."""

    id: str
    license_plate: str
    vehicle_class: VehicleClass
    spot_id: str
    ticket_id: str
    entry_time: datetime
    exit_time: datetime | None = None
    overstay_fined: bool = False
    reserved_violation_fined: bool = False

    @field_validator("license_plate")
    @classmethod
    def validate_license_plate(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("License plate cannot be empty")
        return v.upper()

    @classmethod
    def park(
        cls,
        license_plate: str,
        vehicle_class: VehicleClass,
        spot_id: str,
        ticket_id: str,
        entry_time: datetime,
    ) -> "Vehicle":
        return cls(
            id=generate_id("VEH"),
            license_plate=license_plate,
            vehicle_class=vehicle_class,
            spot_id=spot_id,
            ticket_id=ticket_id,
            entry_time=entry_time,
        )

    @property
    def is_parked(self) -> bool:
        return self.exit_time is None


class VehicleResponse(BaseSchema):
    id: str
    license_plate: str
    vehicle_class: VehicleClass
    spot_id: str
    ticket_id: str
    entry_time: datetime
    exit_time: datetime | None = None
    is_parked: bool


class VehicleListResponse(BaseSchema):
    vehicles: list[VehicleResponse]
    total: int
