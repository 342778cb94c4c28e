from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel
from parkinglot.utils.constants import VehicleClass


class VehicleRecord(BaseModel):
    __tablename__ = "vehicles"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    license_plate: Mapped[str] = mapped_column(String(20), index=True)
    vehicle_class: Mapped[VehicleClass] = mapped_column()
    spot_id: Mapped[str] = mapped_column(String(20))
    ticket_id: Mapped[str] = mapped_column(String(20))
    entry_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    exit_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    overstay_fined: Mapped[bool] = mapped_column(Boolean, default=False)
    reserved_violation_fined: Mapped[bool] = mapped_column(Boolean, default=False)
