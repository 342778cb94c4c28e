import re

from pydantic import Field, field_validator, model_validator

from parkinglot.core.exceptions import InvalidArgumentError, InvalidStateError
from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.compatibility import can_accommodate
from parkinglot.utils.constants import SpotCategory, SpotStatus, VehicleClass
from parkinglot.utils.identifiers import normalize_plate

SPOT_ID_PATTERN = re.compile(r"^F(?P<floor>\d+)-R(?P<row>\d+)-S(?P<spot>\d+)$")


class ParkingSpot(RecordSchema):
    id: str
    category: SpotCategory
    hourly_rate: float = Field(ge=0)
    status: SpotStatus = SpotStatus.AVAILABLE
    occupant_plate: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Spot ID cannot be empty")
        return v

    @model_validator(mode="after")
    def check_occupancy(self) -> "ParkingSpot":
        occupied = self.status == SpotStatus.OCCUPIED
        if occupied != (self.occupant_plate is not None):
            raise ValueError("Occupant must be set exactly when the spot is occupied")
        return self

    @property
    def is_available(self) -> bool:
        return self.status == SpotStatus.AVAILABLE

    @property
    def floor(self) -> int | None:
        match = SPOT_ID_PATTERN.match(self.id)
        return int(match["floor"]) if match else None

    @property
    def row(self) -> int | None:
        match = SPOT_ID_PATTERN.match(self.id)
        return int(match["row"]) if match else None

    def can_accommodate(self, vehicle_class: VehicleClass | None) -> bool:
        return can_accommodate(vehicle_class, self.category)

    def assign(self, license_plate: str) -> "ParkingSpot":
        if not self.is_available:
            raise InvalidStateError(f"Spot is already occupied: {self.id}")
        plate = normalize_plate(license_plate)
        if not plate:
            raise InvalidArgumentError("License plate cannot be empty")
        return self.evolve(status=SpotStatus.OCCUPIED, occupant_plate=plate)

    def release(self) -> "ParkingSpot":
        if self.is_available:
            raise InvalidStateError(f"Spot is not occupied: {self.id}")
        return self.evolve(status=SpotStatus.AVAILABLE, occupant_plate=None)


class ParkingSpotCreate(BaseSchema):
    id: str
    category: SpotCategory
    hourly_rate: float = Field(ge=0)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Spot ID cannot be empty")
        return v


class ParkingSpotResponse(BaseSchema):
    id: str
    category: SpotCategory
    hourly_rate: float
    status: SpotStatus
    occupant_plate: str | None = None
    floor: int | None = None
    row: int | None = None


class ParkingSpotListResponse(BaseSchema):
    spots: list[ParkingSpotResponse]
    total: int
