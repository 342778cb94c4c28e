import logging

from parkinglot.core.exceptions import ConflictError, NotFoundError
from parkinglot.core.locks import KeyedLock
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.stores.base import SpotStore
from parkinglot.utils.compatibility import allowed_categories
from parkinglot.utils.constants import SpotCategory, VehicleClass
from parkinglot.utils.identifiers import normalize_plate

logger = logging.getLogger(__name__)


class SpotRegistry:
    """Catalog of spots held in memory and written through to the spot store.

    ``assign``/``release`` are serialized per spot id. The state change is
    made under the spot's lock; the store write happens after the lock is
    released and is rolled back in memory if the store rejects it.
    """

    def __init__(self, store: SpotStore):
        self._store = store
        self._spots: dict[str, ParkingSpot] = {}
        self._locks = KeyedLock()

    async def load(self) -> int:
        spots = await self._store.find_all()
        self._spots = {spot.id: spot for spot in spots}
        return len(self._spots)

    async def add(self, spot: ParkingSpot) -> ParkingSpot:
        with self._locks.hold(spot.id):
            if spot.id in self._spots:
                raise ConflictError(f"Spot already exists: {spot.id}")
            self._spots[spot.id] = spot
        try:
            await self._store.save(spot)
        except Exception:
            with self._locks.hold(spot.id):
                self._spots.pop(spot.id, None)
            raise
        logger.info("Added spot %s (%s, %.2f/h)", spot.id, spot.category.value, spot.hourly_rate)
        return spot

    def get(self, spot_id: str) -> ParkingSpot | None:
        return self._spots.get(spot_id)

    def require(self, spot_id: str) -> ParkingSpot:
        spot = self.get(spot_id)
        if spot is None:
            raise NotFoundError(f"Spot not found: {spot_id}")
        return spot

    def all(self) -> list[ParkingSpot]:
        return sorted(self._spots.values(), key=lambda s: s.id)

    def find_available(self, category: SpotCategory) -> list[ParkingSpot]:
        return [s for s in self.all() if s.is_available and s.category == category]

    def find_available_for(self, vehicle_class: VehicleClass) -> list[ParkingSpot]:
        allowed = allowed_categories(vehicle_class)
        return [s for s in self.all() if s.is_available and s.category in allowed]

    def find_by_occupant(self, license_plate: str) -> ParkingSpot | None:
        plate = normalize_plate(license_plate)
        for spot in self.all():
            if spot.occupant_plate == plate:
                return spot
        return None

    async def assign(self, spot_id: str, license_plate: str) -> ParkingSpot:
        with self._locks.hold(spot_id):
            previous = self.require(spot_id)
            updated = previous.assign(license_plate)
            self._spots[spot_id] = updated
        await self._write(previous, updated)
        logger.info("Spot %s assigned to %s", spot_id, updated.occupant_plate)
        return updated

    async def release(self, spot_id: str) -> ParkingSpot:
        with self._locks.hold(spot_id):
            previous = self.require(spot_id)
            updated = previous.release()
            self._spots[spot_id] = updated
        await self._write(previous, updated)
        logger.info("Spot %s released by %s", spot_id, previous.occupant_plate)
        return updated

    async def _write(self, previous: ParkingSpot, updated: ParkingSpot) -> None:
        try:
            await self._store.update(updated)
        except Exception:
            with self._locks.hold(updated.id):
                # Only undo our own change; a later transition wins
                if self._spots.get(updated.id) is updated:
                    self._spots[updated.id] = previous
            logger.error("Could not persist spot %s; change reverted", updated.id)
            raise
