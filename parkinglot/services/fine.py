import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any

from parkinglot.config import Settings
from parkinglot.core.exceptions import ConfigurationError, InvalidArgumentError, NotFoundError
from parkinglot.schemas.fine import Fine, FinePolicyConfig
from parkinglot.stores.base import FineStore
from parkinglot.utils.constants import FineKind, FinePolicyKind
from parkinglot.utils.identifiers import normalize_plate
from parkinglot.utils.time import utcnow

logger = logging.getLogger(__name__)


class FinePolicy(ABC):
    """Prices an overstay. Zero or negative overstay hours cost nothing."""

    kind: FinePolicyKind

    @abstractmethod
    def calculate(self, overstay_hours: int) -> float: ...

    @abstractmethod
    def describe(self) -> dict[str, Any]: ...


class FixedFinePolicy(FinePolicy):
    kind = FinePolicyKind.FIXED

    def __init__(self, amount: float = 50.0, max_cap: float | None = None):
        if amount < 0:
            raise InvalidArgumentError("Fine amount cannot be negative")
        self.amount = amount
        self.max_cap = amount if max_cap is None else max_cap

    def calculate(self, overstay_hours: int) -> float:
        if overstay_hours <= 0:
            return 0.0
        return min(self.amount, self.max_cap)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "amount": self.amount, "max_cap": self.max_cap}


class HourlyFinePolicy(FinePolicy):
    kind = FinePolicyKind.HOURLY

    def __init__(self, rate: float = 20.0, max_cap: float | None = None):
        if rate < 0:
            raise InvalidArgumentError("Hourly fine rate cannot be negative")
        self.rate = rate
        self.max_cap = max_cap

    def calculate(self, overstay_hours: int) -> float:
        if overstay_hours <= 0:
            return 0.0
        fine = self.rate * overstay_hours
        if self.max_cap is not None:
            fine = min(fine, self.max_cap)
        return round(fine, 2)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "rate": self.rate, "max_cap": self.max_cap}


# (threshold, increment): applied when overstay_hours is strictly above threshold
PROGRESSIVE_TIERS: tuple[tuple[int, float], ...] = (
    (0, 50.0),
    (24, 100.0),
    (48, 150.0),
    (72, 200.0),
)


class ProgressiveFinePolicy(FinePolicy):
    kind = FinePolicyKind.PROGRESSIVE

    def __init__(self, max_cap: float = 500.0):
        self.max_cap = max_cap

    def calculate(self, overstay_hours: int) -> float:
        fine = 0.0
        for threshold, step in PROGRESSIVE_TIERS:
            if overstay_hours > threshold:
                fine += step
        return min(fine, self.max_cap)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "max_cap": self.max_cap}


class CappedFinePolicy(FinePolicy):
    """Clamps whatever the wrapped policy charges to ``max_cap``."""

    kind = FinePolicyKind.CAPPED

    def __init__(self, inner: FinePolicy | None, max_cap: float):
        if inner is None:
            raise InvalidArgumentError("A capped fine policy needs an inner policy")
        if max_cap is None or max_cap < 0:
            raise InvalidArgumentError("Fine cap must be a non-negative amount")
        self.inner = inner
        self.max_cap = max_cap

    def calculate(self, overstay_hours: int) -> float:
        return min(self.inner.calculate(overstay_hours), self.max_cap)

    def describe(self) -> dict[str, Any]:
        return {"kind": self.kind, "max_cap": self.max_cap, "inner": self.inner.describe()}


def policy_from_config(config: FinePolicyConfig) -> FinePolicy:
    if config.kind == FinePolicyKind.FIXED:
        amount = 50.0 if config.amount is None else config.amount
        return FixedFinePolicy(amount, config.max_cap)
    if config.kind == FinePolicyKind.HOURLY:
        rate = 20.0 if config.rate is None else config.rate
        return HourlyFinePolicy(rate, config.max_cap)
    if config.kind == FinePolicyKind.PROGRESSIVE:
        return ProgressiveFinePolicy(500.0 if config.max_cap is None else config.max_cap)
    inner = policy_from_config(config.inner) if config.inner else None
    return CappedFinePolicy(inner, config.max_cap)


def build_fine_policy(settings: Settings) -> FinePolicy:
    policy: FinePolicy
    if settings.fine_policy == FinePolicyKind.HOURLY:
        policy = HourlyFinePolicy(settings.hourly_fine_rate, settings.hourly_fine_cap)
    elif settings.fine_policy == FinePolicyKind.PROGRESSIVE:
        policy = ProgressiveFinePolicy(settings.progressive_fine_cap)
    elif settings.fine_policy == FinePolicyKind.FIXED:
        policy = FixedFinePolicy(settings.fixed_fine_amount)
    else:
        raise ConfigurationError(f"Unsupported default fine policy: {settings.fine_policy}")
    if settings.fine_cap is not None:
        policy = CappedFinePolicy(policy, settings.fine_cap)
    return policy


class FineService:
    """Issues, sums and settles fines; owns the active overstay policy."""

    def __init__(
        self,
        store: FineStore,
        policy: FinePolicy | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._policy = policy
        self._clock = clock

    @property
    def policy(self) -> FinePolicy | None:
        return self._policy

    def set_policy(self, policy: FinePolicy | None) -> None:
        if policy is None:
            raise InvalidArgumentError("Fine policy cannot be empty")
        self._policy = policy
        logger.info("Fine policy set to %s", policy.describe())

    def calculate(self, overstay_hours: int) -> float:
        if self._policy is None:
            raise ConfigurationError("No fine policy configured")
        return round(self._policy.calculate(overstay_hours), 2)

    async def issue(
        self,
        license_plate: str,
        amount: float,
        reason: str,
        kind: FineKind = FineKind.MANUAL,
        vehicle_id: str | None = None,
    ) -> Fine:
        fine = Fine.issue(
            license_plate=normalize_plate(license_plate),
            amount=amount,
            reason=reason,
            kind=kind,
            issued_time=self._clock(),
            vehicle_id=vehicle_id,
        )
        await self._store.save(fine)
        logger.info(
            "Issued %s fine %s to %s: %.2f", kind.value, fine.id, fine.license_plate, amount
        )
        return fine

    async def unpaid(self, license_plate: str) -> list[Fine]:
        return await self._store.find_unpaid_by_plate(normalize_plate(license_plate))

    async def total_unpaid(self, license_plate: str) -> float:
        return await self._store.sum_unpaid_by_plate(normalize_plate(license_plate))

    async def mark_paid(self, fine_id: str) -> Fine:
        fine = await self._store.mark_paid(fine_id)
        if fine is None:
            raise NotFoundError(f"Fine not found: {fine_id}")
        logger.info("Fine %s marked paid", fine_id)
        return fine

    async def outstanding(self, license_plate: str | None = None) -> list[Fine]:
        if license_plate:
            return await self.unpaid(license_plate)
        return await self._store.find_all_unpaid()

    async def reopen(self, fines: list[Fine]) -> None:
        """Put settled fines back to the unpaid records they were."""
        for fine in fines:
            await self._store.update(fine.evolve(paid=False))
            logger.warning("Fine %s reopened", fine.id)
