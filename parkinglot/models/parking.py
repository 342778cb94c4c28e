from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel
from parkinglot.utils.constants import SpotCategory, SpotStatus


class ParkingSpotRecord(BaseModel):
    __tablename__ = "parking_spots"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    category: Mapped[SpotCategory] = mapped_column(index=True)
    hourly_rate: Mapped[float] = mapped_column(Float)
    status: Mapped[SpotStatus] = mapped_column(default=SpotStatus.AVAILABLE, index=True)
    occupant_plate: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
