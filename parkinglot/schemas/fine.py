from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from parkinglot.schemas.common import BaseSchema, RecordSchema
from parkinglot.utils.constants import FineKind, FinePolicyKind
from parkinglot.utils.identifiers import generate_id


class Fine(RecordSchema):
    id: str
    license_plate: str
    amount: float = Field(ge=0)
    reason: str
    kind: FineKind = FineKind.MANUAL
    issued_time: datetime
    paid: bool = False
    vehicle_id: str | None = None

    @classmethod
    def issue(
        cls,
        license_plate: str,
        amount: float,
        reason: str,
        kind: FineKind,
        issued_time: datetime,
        vehicle_id: str | None = None,
    ) -> "Fine":
        return cls(
            id=generate_id("FIN", 8),
            license_plate=license_plate,
            amount=round(amount, 2),
            reason=reason,
            kind=kind,
            issued_time=issued_time,
            vehicle_id=vehicle_id,
        )

    def mark_paid(self) -> "Fine":
        return self.evolve(paid=True)


class FineListResponse(BaseSchema):
    fines: list[Fine]
    total: int
    total_amount: float


class FinePolicyConfig(BaseSchema):
    """Serializable description of a fine policy, nested for the cap decorator."""

    kind: FinePolicyKind
    amount: float | None = Field(default=None, ge=0)
    rate: float | None = Field(default=None, ge=0)
    max_cap: float | None = Field(default=None, ge=0)
    inner: "FinePolicyConfig | None" = None

    @model_validator(mode="after")
    def check_shape(self) -> "FinePolicyConfig":
        if self.kind == FinePolicyKind.CAPPED:
            if self.inner is None:
                raise ValueError("A capped policy needs an inner policy")
            if self.max_cap is None:
                raise ValueError("A capped policy needs max_cap")
        elif self.inner is not None:
            raise ValueError("Only a capped policy wraps an inner policy")
        return self


class FinePolicyResponse(BaseSchema):
    policy: FinePolicyConfig | None
    sample: dict[int, float] = {}

    @classmethod
    def from_description(
        cls, description: dict[str, Any] | None, sample: dict[int, float]
    ) -> "FinePolicyResponse":
        policy = FinePolicyConfig.model_validate(description) if description else None
        return cls(policy=policy, sample=sample)
