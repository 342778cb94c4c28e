from datetime import datetime

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from parkinglot.models.base import BaseModel
from parkinglot.utils.constants import PaymentMethod


class PaymentRecord(BaseModel):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    amount: Mapped[float] = mapped_column(Float)
    method: Mapped[PaymentMethod] = mapped_column(default=PaymentMethod.CASH)
    paid_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    license_plate: Mapped[str] = mapped_column(String(20), index=True)
    ticket_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
