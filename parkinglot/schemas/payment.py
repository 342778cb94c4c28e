from datetime import datetime

from pydantic import Field, computed_field

from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.constants import PaymentMethod
from parkinglot.utils.identifiers import generate_id


class Payment(RecordSchema):
    id: str
    amount: float = Field(ge=0)
    method: PaymentMethod
    paid_at: datetime
    license_plate: str
    ticket_id: str | None = None

    @classmethod
    def record(
        cls,
        amount: float,
        method: PaymentMethod,
        license_plate: str,
        ticket_id: str | None,
        paid_at: datetime,
    ) -> "Payment":
        return cls(
            id=generate_id("PAY", 8),
            amount=round(amount, 2),
            method=method,
            paid_at=paid_at,
            license_plate=license_plate,
            ticket_id=ticket_id,
        )


class Receipt(RecordSchema):
    id: str
    license_plate: str
    entry_time: datetime
    exit_time: datetime
    duration_hours: int
    hourly_rate: float
    parking_fee: float
    fine_amount: float
    payment_method: PaymentMethod

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> float:
        return round(self.parking_fee + self.fine_amount, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fee_breakdown(self) -> str:
        if self.duration_hours > 0 and self.hourly_rate > 0:
            return (
                f"{self.duration_hours} hours x {self.hourly_rate:.2f} = {self.parking_fee:.2f}"
            )
        return f"{self.parking_fee:.2f}"


class PaymentListResponse(BaseSchema):
    payments: list[Payment]
    total: int
    total_amount: float
