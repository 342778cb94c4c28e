import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from parkinglot.config import Settings, get_settings
from parkinglot.core.exceptions import (
    ConfigurationError,
    IncompatibleError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from parkinglot.core.locks import ClaimSet
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.schemas.payment import Receipt
from parkinglot.schemas.session import FeeCalculation, Ticket
from parkinglot.schemas.vehicle import Vehicle
from parkinglot.services.fine import FineService
from parkinglot.services.parking import SpotRegistry
from parkinglot.services.payment import PaymentService
from parkinglot.services.reservation import ReservationLedger
from parkinglot.stores.base import TicketStore, VehicleStore
from parkinglot.utils.constants import (
    OVERSTAY_REASON,
    RESERVED_SPOT_REASON,
    FineKind,
    PaymentMethod,
    SpotCategory,
    VehicleClass,
)
from parkinglot.utils.identifiers import generate_id, normalize_plate
from parkinglot.utils.time import billable_hours, utcnow, whole_hours_between, whole_minutes_between

logger = logging.getLogger(__name__)


def _coerce_vehicle_class(value: VehicleClass | str | None) -> VehicleClass:
    if value is None:
        raise InvalidArgumentError("Vehicle class is required")
    try:
        return VehicleClass(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown vehicle class: {value}") from exc


def _coerce_payment_method(value: PaymentMethod | str | None) -> PaymentMethod:
    if value is None:
        raise InvalidArgumentError("Payment method is required")
    try:
        return PaymentMethod(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown payment method: {value}") from exc


class ParkingOrchestrator:
    """Runs vehicle entry and exit against the spot, reservation and fine services.

    Every entry/exit claims the plate first; a second concurrent operation on
    the same plate is rejected rather than queued, so a session can never be
    fined or billed twice.
    """

    def __init__(
        self,
        spots: SpotRegistry,
        reservations: ReservationLedger,
        fines: FineService,
        payments: PaymentService,
        vehicles: VehicleStore,
        tickets: TicketStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._spots = spots
        self._reservations = reservations
        self._fines = fines
        self._payments = payments
        self._vehicles = vehicles
        self._tickets = tickets
        self._settings = settings or get_settings()
        self._clock = clock
        self._active: dict[str, Vehicle] = {}
        self._claims = ClaimSet()

    async def load(self) -> int:
        parked = await self._vehicles.find_currently_parked()
        self._active = {v.license_plate: v for v in parked}
        return len(self._active)

    @contextmanager
    def _claim(self, plate: str) -> Iterator[None]:
        if not self._claims.try_claim(plate):
            raise InvalidStateError(f"Another entry or exit is in progress for {plate}")
        try:
            yield
        finally:
            self._claims.release(plate)

    def _overstay_hours(self, vehicle: Vehicle, at: datetime) -> int:
        hours = whole_hours_between(vehicle.entry_time, at)
        return max(0, hours - self._settings.overstay_threshold_hours)

    def _hourly_rate(self, vehicle_class: VehicleClass, spot: ParkingSpot) -> float:
        if vehicle_class == VehicleClass.HANDICAPPED:
            if spot.category == SpotCategory.HANDICAPPED:
                return 0.0
            return self._settings.handicapped_hourly_rate
        return spot.hourly_rate

    def calculate_fee(
        self, vehicle: Vehicle, spot: ParkingSpot, exit_time: datetime | None = None
    ) -> FeeCalculation:
        end = exit_time or vehicle.exit_time or self._clock()
        minutes = whole_minutes_between(vehicle.entry_time, end)
        hours = billable_hours(minutes)
        rate = self._hourly_rate(vehicle.vehicle_class, spot)
        return FeeCalculation(
            duration_minutes=minutes,
            duration_hours=hours,
            hourly_rate=rate,
            fee=round(hours * rate, 2),
        )

    async def _issue_overstay_fine(self, vehicle: Vehicle, overstay_hours: int) -> Vehicle:
        """Fine the session once; the marker is stored before the fine exists."""
        amount = self._fines.calculate(overstay_hours)
        reason = OVERSTAY_REASON.format(
            threshold=self._settings.overstay_threshold_hours, hours=overstay_hours
        )
        flagged = vehicle.evolve(overstay_fined=True)
        await self._vehicles.update(flagged)
        try:
            await self._fines.issue(
                vehicle.license_plate, amount, reason, FineKind.OVERSTAY, vehicle_id=vehicle.id
            )
        except Exception:
            await self._vehicles.update(vehicle)
            raise
        if vehicle.license_plate in self._active:
            self._active[vehicle.license_plate] = flagged
        return flagged

    async def _recover_escaped(
        self, stale: Vehicle, now: datetime, release_spot: bool = True
    ) -> tuple[Vehicle, bool]:
        """Close a session whose vehicle left without checking out.

        Returns the session as it was just before closing and whether its
        spot was released, so a failed entry can reopen it.
        """
        overstay = self._overstay_hours(stale, now)
        if overstay > 0 and not stale.overstay_fined:
            stale = await self._issue_overstay_fine(stale, overstay)
        await self._vehicles.update(stale.evolve(exit_time=now))
        released = False
        spot = self._spots.get(stale.spot_id)
        if release_spot and spot is not None and spot.occupant_plate == stale.license_plate:
            try:
                await self._spots.release(spot.id)
            except Exception:
                await self._vehicles.update(stale)
                raise
            released = True
        self._active.pop(stale.license_plate, None)
        logger.warning(
            "Recovered stale session %s for %s (spot %s)",
            stale.id,
            stale.license_plate,
            stale.spot_id,
        )
        return stale, released

    async def _reopen_escaped(self, stale: Vehicle, released: bool) -> None:
        if released:
            try:
                await self._spots.assign(stale.spot_id, stale.license_plate)
            except InvalidStateError:
                logger.warning(
                    "Spot %s was taken meanwhile; session %s stays closed",
                    stale.spot_id,
                    stale.id,
                )
                return
        await self._vehicles.update(stale)
        self._active[stale.license_plate] = stale

    async def process_entry(
        self,
        license_plate: str,
        vehicle_class: VehicleClass | str | None,
        spot_id: str,
    ) -> Ticket:
        plate = normalize_plate(license_plate)
        if not plate:
            raise InvalidArgumentError("License plate cannot be empty")
        vehicle_class = _coerce_vehicle_class(vehicle_class)
        spot_id = (spot_id or "").strip()
        if not spot_id:
            raise InvalidArgumentError("Spot ID cannot be empty")

        with self._claim(plate):
            now = self._clock()
            stale = self._active.get(plate)
            spot = self._spots.require(spot_id)
            held_by_stale = (
                stale is not None
                and stale.spot_id == spot.id
                and spot.occupant_plate == plate
            )
            if not spot.is_available and not held_by_stale:
                raise InvalidStateError(f"Spot is not available: {spot.id}")
            # reserved spots admit any class; the reservation check below fines instead
            open_access = spot.category == SpotCategory.RESERVED
            if not open_access and not spot.can_accommodate(vehicle_class):
                raise IncompatibleError(
                    f"A {vehicle_class.value} cannot park in a {spot.category.value} spot"
                )
            if (
                stale is not None
                and not stale.overstay_fined
                and self._overstay_hours(stale, now) > 0
                and self._fines.policy is None
            ):
                raise ConfigurationError("No fine policy configured")
            violation = (
                spot.category == SpotCategory.RESERVED
                and vehicle_class != VehicleClass.HANDICAPPED
                and not self._reservations.has_valid_reservation(plate, spot.id, at=now)
            )

            # a spot held by the stale session passes straight to the new one
            if not held_by_stale:
                await self._spots.assign(spot.id, plate)
            ticket = Ticket.issue(plate, spot.id, now)
            vehicle = Vehicle.park(plate, vehicle_class, spot.id, ticket.id, now)
            if violation:
                vehicle = vehicle.evolve(reserved_violation_fined=True)
            recovered: tuple[Vehicle, bool] | None = None
            try:
                if stale is not None:
                    recovered = await self._recover_escaped(
                        stale, now, release_spot=not held_by_stale
                    )
                await self._tickets.save(ticket)
                await self._vehicles.save(vehicle)
                if violation:
                    await self._fines.issue(
                        plate,
                        self._settings.reserved_violation_fine,
                        RESERVED_SPOT_REASON,
                        FineKind.RESERVED_SPOT,
                        vehicle_id=vehicle.id,
                    )
            except Exception:
                await self._vehicles.delete(vehicle.id)
                await self._tickets.delete(ticket.id)
                if recovered is not None:
                    await self._reopen_escaped(*recovered)
                if not held_by_stale:
                    await self._spots.release(spot.id)
                raise

            self._active[plate] = vehicle
        logger.info(
            "Vehicle %s (%s) entered at spot %s, ticket %s",
            plate,
            vehicle_class.value,
            spot.id,
            ticket.id,
        )
        return ticket

    async def process_exit(
        self,
        license_plate: str,
        payment_method: PaymentMethod | str | None = PaymentMethod.CASH,
    ) -> Receipt:
        plate = normalize_plate(license_plate)
        if not plate:
            raise InvalidArgumentError("License plate cannot be empty")
        payment_method = _coerce_payment_method(payment_method)

        with self._claim(plate):
            vehicle = self._active.get(plate)
            if vehicle is None:
                raise NotFoundError(f"No active parking session for {plate}")
            spot = self._spots.require(vehicle.spot_id)
            exit_time = self._clock()
            overstay = self._overstay_hours(vehicle, exit_time)
            needs_overstay_fine = overstay > 0 and not vehicle.overstay_fined
            if needs_overstay_fine and self._fines.policy is None:
                raise ConfigurationError("No fine policy configured")
            fee = self.calculate_fee(vehicle, spot, exit_time)

            # the fine and its marker survive a failed settlement, so a retry charges it once
            if needs_overstay_fine:
                vehicle = await self._issue_overstay_fine(vehicle, overstay)

            unpaid = await self._fines.unpaid(plate)
            fine_total = round(sum(f.amount for f in unpaid), 2)
            payment = await self._payments.record(
                fee.fee + fine_total, payment_method, plate, ticket_id=vehicle.ticket_id
            )
            settled = []
            closed = vehicle.evolve(exit_time=exit_time)
            closed_saved = False
            try:
                for fine in unpaid:
                    await self._fines.mark_paid(fine.id)
                    settled.append(fine)
                await self._vehicles.update(closed)
                closed_saved = True
                if spot.occupant_plate == plate:
                    await self._spots.release(spot.id)
            except Exception:
                if closed_saved:
                    await self._vehicles.update(vehicle)
                await self._fines.reopen(settled)
                await self._payments.void(payment.id)
                raise
            self._active.pop(plate, None)

            if spot.category == SpotCategory.RESERVED:
                await self._complete_reservation(closed)

        receipt = Receipt(
            id=generate_id("RCP"),
            license_plate=plate,
            entry_time=vehicle.entry_time,
            exit_time=exit_time,
            duration_hours=fee.duration_hours,
            hourly_rate=fee.hourly_rate,
            parking_fee=fee.fee,
            fine_amount=fine_total,
            payment_method=payment_method,
        )
        logger.info(
            "Vehicle %s exited spot %s: fee %.2f, fines %.2f, total %.2f",
            plate,
            spot.id,
            receipt.parking_fee,
            receipt.fine_amount,
            receipt.total_amount,
        )
        return receipt

    async def _complete_reservation(self, vehicle: Vehicle) -> None:
        reservation = self._reservations.find_completable(
            vehicle.license_plate, vehicle.spot_id, vehicle.entry_time
        )
        if reservation is None:
            return
        try:
            await self._reservations.complete(reservation.id)
        except Exception:
            logger.warning(
                "Could not complete reservation %s for %s",
                reservation.id,
                vehicle.license_plate,
                exc_info=True,
            )

    def available_spots(self, vehicle_class: VehicleClass | str | None) -> list[ParkingSpot]:
        return self._spots.find_available_for(_coerce_vehicle_class(vehicle_class))

    def is_parked(self, license_plate: str) -> bool:
        return normalize_plate(license_plate) in self._active

    async def find_vehicle(self, license_plate: str) -> Vehicle | None:
        """The active session for a plate, else its most recent one."""
        plate = normalize_plate(license_plate)
        active = self._active.get(plate)
        if active is not None:
            return active
        history = await self._vehicles.find_by_plate(plate)
        return history[-1] if history else None

    def estimate_fee(
        self, license_plate: str, exit_time: datetime | None = None
    ) -> FeeCalculation:
        plate = normalize_plate(license_plate)
        vehicle = self._active.get(plate)
        if vehicle is None:
            raise NotFoundError(f"No active parking session for {plate}")
        return self.calculate_fee(vehicle, self._spots.require(vehicle.spot_id), exit_time)

    def find_spot_by_plate(self, license_plate: str) -> ParkingSpot | None:
        return self._spots.find_by_occupant(license_plate)

    def parked_vehicles(self) -> list[Vehicle]:
        return sorted(self._active.values(), key=lambda v: v.entry_time)
