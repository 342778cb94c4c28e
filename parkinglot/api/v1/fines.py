from fastapi import APIRouter, Query

from parkinglot.core.dependencies import Facility
from parkinglot.schemas.fine import (
    Fine,
    FineListResponse,
    FinePolicyConfig,
    FinePolicyResponse,
)
from parkinglot.services.fine import FinePolicy, policy_from_config

router = APIRouter(prefix="/fines", tags=["Fines"])

# Overstay hours shown as examples next to the active policy
SAMPLE_OVERSTAY_HOURS = (1, 6, 25, 49, 73)


def _policy_response(policy: FinePolicy | None) -> FinePolicyResponse:
    if policy is None:
        return FinePolicyResponse.from_description(None, {})
    sample = {hours: policy.calculate(hours) for hours in SAMPLE_OVERSTAY_HOURS}
    return FinePolicyResponse.from_description(policy.describe(), sample)


@router.get("/policy", response_model=FinePolicyResponse)
async def get_fine_policy(facility: Facility):
    return _policy_response(facility.fines.policy)


@router.put("/policy", response_model=FinePolicyResponse)
async def set_fine_policy(facility: Facility, data: FinePolicyConfig):
    facility.fines.set_policy(policy_from_config(data))
    return _policy_response(facility.fines.policy)


@router.get("/unpaid", response_model=FineListResponse)
async def list_unpaid_fines(facility: Facility, license_plate: str | None = Query(None)):
    fines = await facility.fines.outstanding(license_plate)
    return FineListResponse(
        fines=fines,
        total=len(fines),
        total_amount=round(sum(f.amount for f in fines), 2),
    )


@router.post("/{fine_id}/pay", response_model=Fine)
async def pay_fine(facility: Facility, fine_id: str):
    return await facility.fines.mark_paid(fine_id)
