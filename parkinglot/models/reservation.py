from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel
from parkinglot.utils.constants import ReservationStatus


class ReservationRecord(BaseModel):
    __tablename__ = "reservations"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    license_plate: Mapped[str] = mapped_column(String(20), index=True)
    spot_id: Mapped[str] = mapped_column(String(20), index=True)
    reserved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    status: Mapped[ReservationStatus] = mapped_column(default=ReservationStatus.PENDING)
