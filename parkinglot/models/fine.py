from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel
from parkinglot.utils.constants import FineKind


class FineRecord(BaseModel):
    __tablename__ = "fines"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    license_plate: Mapped[str] = mapped_column(String(20), index=True)
    amount: Mapped[float] = mapped_column(Float)
    reason: Mapped[str] = mapped_column(Text)
    kind: Mapped[FineKind] = mapped_column(default=FineKind.MANUAL)
    issued_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    paid: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    vehicle_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
