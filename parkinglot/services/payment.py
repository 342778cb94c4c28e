import logging
from collections.abc import Callable
from datetime import date, datetime

from parkinglot.core.exceptions import InvalidArgumentError
from parkinglot.schemas.payment import Payment
from parkinglot.stores.base import PaymentStore
from parkinglot.utils.constants import PaymentMethod
from parkinglot.utils.identifiers import normalize_plate
from parkinglot.utils.time import utcnow

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, store: PaymentStore, clock: Callable[[], datetime] = utcnow):
        self._store = store
        self._clock = clock

    async def record(
        self,
        amount: float,
        method: PaymentMethod,
        license_plate: str,
        ticket_id: str | None = None,
    ) -> Payment:
        if amount < 0:
            raise InvalidArgumentError("Payment amount cannot be negative")
        payment = Payment.record(
            amount=amount,
            method=method,
            license_plate=normalize_plate(license_plate),
            ticket_id=ticket_id,
            paid_at=self._clock(),
        )
        await self._store.save(payment)
        logger.info(
            "Payment %s of %.2f by %s from %s",
            payment.id,
            payment.amount,
            method.value,
            payment.license_plate,
        )
        return payment

    async def payments_for(self, license_plate: str) -> list[Payment]:
        return await self._store.find_by_plate(normalize_plate(license_plate))

    async def total_revenue(self, start_date: date, end_date: date) -> float:
        if start_date > end_date:
            raise InvalidArgumentError("Start date must not be after end date")
        return await self._store.total_revenue(start_date, end_date)

    async def void(self, payment_id: str) -> None:
        await self._store.delete(payment_id)
        logger.warning("Payment %s voided", payment_id)
