from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.schemas.payment import PaymentListResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("", response_model=PaymentListResponse)
async def list_payments(facility: Facility, license_plate: str = Query(..., min_length=1)):
    payments = await facility.payments.payments_for(license_plate)
    return PaymentListResponse(
        payments=payments,
        total=len(payments),
        total_amount=round(sum(p.amount for p in payments), 2),
    )
