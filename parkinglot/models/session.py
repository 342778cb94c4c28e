from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel


class TicketRecord(BaseModel):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    license_plate: Mapped[str] = mapped_column(String(20), index=True)
    spot_id: Mapped[str] = mapped_column(String(20))
    entry_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
