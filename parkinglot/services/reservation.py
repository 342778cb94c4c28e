import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from parkinglot.core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from parkinglot.core.locks import KeyedLock
from parkinglot.schemas.reservation import Reservation
from parkinglot.services.parking import SpotRegistry
from parkinglot.stores.base import ReservationStore
from parkinglot.utils.identifiers import normalize_plate
from parkinglot.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class ReservationLedger:
    """Reservations per spot with half-open ``[start, end)`` windows.

    All mutations of a spot's reservations (create, transitions, expiry)
    serialize on that spot's lock, so the overlap check and the insert are
    one atomic step.
    """

    def __init__(
        self,
        store: ReservationStore,
        registry: SpotRegistry | None = None,
        clock: Callable[[], datetime] = utcnow,
        grace_minutes: int = 30,
    ):
        self._store = store
        self._registry = registry
        self._clock = clock
        self._grace = timedelta(minutes=grace_minutes)
        self._reservations: dict[str, Reservation] = {}
        self._locks = KeyedLock()

    async def load(self) -> int:
        reservations = await self._store.find_all()
        self._reservations = {r.id: r for r in reservations}
        return len(self._reservations)

    def _overlapping(self, spot_id: str, start: datetime, end: datetime) -> list[Reservation]:
        return sorted(
            (
                r
                for r in self._reservations.values()
                if r.spot_id == spot_id and r.is_open and r.overlaps(start, end)
            ),
            key=lambda r: r.start_time,
        )

    async def create(
        self,
        license_plate: str,
        spot_id: str,
        start_time: datetime | None,
        end_time: datetime | None,
    ) -> Reservation:
        plate = normalize_plate(license_plate)
        spot_id = (spot_id or "").strip()
        if not plate:
            raise InvalidArgumentError("License plate cannot be empty")
        if not spot_id:
            raise InvalidArgumentError("Spot ID cannot be empty")
        if start_time is None or end_time is None:
            raise InvalidArgumentError("Start and end time are required")
        start, end = ensure_utc(start_time), ensure_utc(end_time)
        if end <= start:
            raise InvalidArgumentError("End time must be after start time")
        now = self._clock()
        if start < now:
            raise InvalidArgumentError("Cannot create reservation in the past")
        if self._registry is not None and self._registry.get(spot_id) is None:
            raise NotFoundError(f"Spot not found: {spot_id}")

        with self._locks.hold(spot_id):
            conflicts = self._overlapping(spot_id, start, end)
            if conflicts:
                raise ConflictError(
                    f"Spot {spot_id} is already reserved for the requested time "
                    f"(reservation {conflicts[0].id})"
                )
            reservation = Reservation.open(plate, spot_id, start, end, reserved_at=now)
            self._reservations[reservation.id] = reservation

        try:
            await self._store.save(reservation)
        except Exception:
            with self._locks.hold(spot_id):
                self._reservations.pop(reservation.id, None)
            raise
        logger.info(
            "Reservation %s created for %s on %s (%s - %s)",
            reservation.id,
            plate,
            spot_id,
            start.isoformat(),
            end.isoformat(),
        )
        return reservation

    def get(self, reservation_id: str) -> Reservation:
        reservation = self._reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError(f"Reservation not found: {reservation_id}")
        return reservation

    async def _transition(
        self, reservation_id: str, change: Callable[[Reservation], Reservation]
    ) -> Reservation:
        spot_id = self.get(reservation_id).spot_id
        with self._locks.hold(spot_id):
            previous = self.get(reservation_id)
            updated = change(previous)
            self._reservations[reservation_id] = updated
        try:
            await self._store.update(updated)
        except Exception:
            with self._locks.hold(spot_id):
                if self._reservations.get(reservation_id) is updated:
                    self._reservations[reservation_id] = previous
            raise
        logger.info(
            "Reservation %s: %s -> %s",
            reservation_id,
            previous.status.value,
            updated.status.value,
        )
        return updated

    async def confirm(self, reservation_id: str) -> Reservation:
        return await self._transition(reservation_id, Reservation.confirm)

    async def cancel(self, reservation_id: str) -> Reservation:
        return await self._transition(reservation_id, Reservation.cancel)

    async def complete(self, reservation_id: str) -> Reservation:
        return await self._transition(reservation_id, Reservation.complete)

    def has_valid_reservation(
        self, license_plate: str, spot_id: str, at: datetime | None = None
    ) -> bool:
        plate = normalize_plate(license_plate)
        moment = ensure_utc(at) if at else self._clock()
        return any(
            r.license_plate == plate and r.spot_id == spot_id and r.is_valid_at(moment, self._grace)
            for r in self._reservations.values()
        )

    def find_completable(
        self, license_plate: str, spot_id: str, entry_time: datetime
    ) -> Reservation | None:
        """The confirmed reservation for this plate and spot that covered the entry."""
        plate = normalize_plate(license_plate)
        moment = ensure_utc(entry_time)
        for reservation in self.find_by_plate(plate):
            if reservation.spot_id == spot_id and reservation.is_valid_at(moment, self._grace):
                return reservation
        return None

    def find_overlapping(
        self, spot_id: str, start_time: datetime, end_time: datetime
    ) -> list[Reservation]:
        start, end = ensure_utc(start_time), ensure_utc(end_time)
        if end <= start:
            raise InvalidArgumentError("End time must be after start time")
        return self._overlapping(spot_id, start, end)

    def is_spot_available(self, spot_id: str, start_time: datetime, end_time: datetime) -> bool:
        return not self.find_overlapping(spot_id, start_time, end_time)

    def find_by_plate(self, license_plate: str) -> list[Reservation]:
        plate = normalize_plate(license_plate)
        return sorted(
            (r for r in self._reservations.values() if r.license_plate == plate),
            key=lambda r: r.start_time,
        )

    def active(self) -> list[Reservation]:
        return sorted(
            (r for r in self._reservations.values() if r.is_open), key=lambda r: r.start_time
        )

    def all(self) -> list[Reservation]:
        return sorted(self._reservations.values(), key=lambda r: r.start_time)

    async def expire_stale(self) -> list[Reservation]:
        """Expire open reservations whose window has ended. Safe to call repeatedly."""
        now = self._clock()
        expired: list[tuple[Reservation, Reservation]] = []
        for candidate in self.active():
            if candidate.end_time >= now:
                continue
            with self._locks.hold(candidate.spot_id):
                current = self._reservations.get(candidate.id)
                if current is None or not current.is_open or current.end_time >= now:
                    continue
                updated = current.expire()
                self._reservations[current.id] = updated
            expired.append((current, updated))

        for index, (_, updated) in enumerate(expired):
            try:
                await self._store.update(updated)
            except Exception:
                for previous, unsaved in expired[index:]:
                    with self._locks.hold(unsaved.spot_id):
                        if self._reservations.get(unsaved.id) is unsaved:
                            self._reservations[unsaved.id] = previous
                raise
        if expired:
            logger.info("Expired %d stale reservation(s)", len(expired))
        return [updated for _, updated in expired]

