from itertools import product

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from parkinglot.config import Settings
from parkinglot.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.services.facility import ParkingFacility
from parkinglot.services.parking import SpotRegistry
from parkinglot.stores.memory import InMemorySpotStore, in_memory_stores
from parkinglot.utils.compatibility import can_accommodate
from parkinglot.utils.constants import SpotCategory, SpotStatus, VehicleClass
from parkinglot.utils.sample_data import sample_spots

C, R, H, RS, E = (
    SpotCategory.COMPACT,
    SpotCategory.REGULAR,
    SpotCategory.HANDICAPPED,
    SpotCategory.RESERVED,
    SpotCategory.ELECTRIC,
)

EXPECTED = {
    VehicleClass.MOTORCYCLE: {C},
    VehicleClass.CAR: {C, R, E},
    VehicleClass.SUV_TRUCK: {R},
    VehicleClass.HANDICAPPED: {C, R, H, RS, E},
    VehicleClass.BUS: {RS},
}


@pytest.mark.parametrize("vehicle_class,category", list(product(VehicleClass, SpotCategory)))
def test_compatibility_matrix(vehicle_class: VehicleClass, category: SpotCategory):
    expected = category in EXPECTED[vehicle_class]
    assert can_accommodate(vehicle_class, category) is expected
    spot = ParkingSpot(id="F1-R1-S1", category=category, hourly_rate=1.0)
    assert spot.can_accommodate(vehicle_class) is expected


def test_no_vehicle_class_fits_nowhere():
    assert can_accommodate(None, SpotCategory.REGULAR) is False


def test_spot_occupant_must_match_status():
    with pytest.raises(ValidationError):
        ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=5.0, status=SpotStatus.OCCUPIED)
    with pytest.raises(ValidationError):
        ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=5.0, occupant_plate="ABC123")


def test_spot_rejects_negative_rate():
    with pytest.raises(ValidationError):
        ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=-1.0)


def test_spot_floor_and_row_from_id():
    spot = ParkingSpot(id="F3-R2-S7", category=R, hourly_rate=5.0)
    assert (spot.floor, spot.row) == (3, 2)
    assert ParkingSpot(id="LOBBY", category=R, hourly_rate=5.0).floor is None


def test_spot_transitions_return_new_records():
    spot = ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=5.0)
    occupied = spot.assign(" abc123 ")
    assert occupied.status == SpotStatus.OCCUPIED
    assert occupied.occupant_plate == "ABC123"
    assert spot.is_available

    released = occupied.release()
    assert released.is_available
    assert released.occupant_plate is None


@pytest.fixture
async def registry() -> SpotRegistry:
    registry = SpotRegistry(InMemorySpotStore())
    for spot_id, category, rate in [
        ("F1-R1-S2", R, 5.0),
        ("F1-R1-S1", R, 5.0),
        ("F1-R2-S1", C, 2.0),
        ("F1-R3-S1", E, 8.0),
    ]:
        await registry.add(ParkingSpot(id=spot_id, category=category, hourly_rate=rate))
    return registry


@pytest.mark.asyncio
async def test_double_assign_fails(registry: SpotRegistry):
    await registry.assign("F1-R1-S1", "ABC123")
    with pytest.raises(InvalidStateError):
        await registry.assign("F1-R1-S1", "XYZ789")
    assert registry.get("F1-R1-S1").occupant_plate == "ABC123"


@pytest.mark.asyncio
async def test_release_available_spot_fails(registry: SpotRegistry):
    with pytest.raises(InvalidStateError):
        await registry.release("F1-R1-S1")


@pytest.mark.asyncio
async def test_assign_unknown_spot(registry: SpotRegistry):
    with pytest.raises(NotFoundError):
        await registry.assign("F9-R9-S9", "ABC123")


@pytest.mark.asyncio
async def test_add_duplicate_spot(registry: SpotRegistry):
    with pytest.raises(ConflictError):
        await registry.add(ParkingSpot(id="F1-R1-S1", category=C, hourly_rate=2.0))


@pytest.mark.asyncio
async def test_find_available_in_id_order(registry: SpotRegistry):
    await registry.assign("F1-R1-S1", "ABC123")
    assert [s.id for s in registry.find_available(R)] == ["F1-R1-S2"]
    assert [s.id for s in registry.find_available_for(VehicleClass.CAR)] == [
        "F1-R1-S2",
        "F1-R2-S1",
        "F1-R3-S1",
    ]
    assert registry.find_available_for(VehicleClass.BUS) == []


@pytest.mark.asyncio
async def test_find_by_occupant(registry: SpotRegistry):
    await registry.assign("F1-R2-S1", "moto1")
    assert registry.find_by_occupant("MOTO1").id == "F1-R2-S1"
    assert registry.find_by_occupant("NOBODY") is None


@pytest.mark.asyncio
async def test_registry_writes_through_and_reloads():
    store = InMemorySpotStore()
    registry = SpotRegistry(store)
    await registry.add(ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=5.0))
    await registry.assign("F1-R1-S1", "ABC123")

    reloaded = SpotRegistry(store)
    assert await reloaded.load() == 1
    assert reloaded.get("F1-R1-S1").occupant_plate == "ABC123"


class FailingUpdateStore(InMemorySpotStore):
    async def update(self, record):
        raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_assign_is_reverted_when_store_fails():
    registry = SpotRegistry(FailingUpdateStore())
    await registry.add(ParkingSpot(id="F1-R1-S1", category=R, hourly_rate=5.0))
    with pytest.raises(RuntimeError):
        await registry.assign("F1-R1-S1", "ABC123")
    assert registry.get("F1-R1-S1").is_available


@pytest.mark.asyncio
async def test_seed_sample_layout(facility: ParkingFacility, settings, clock):
    empty = await ParkingFacility.create(in_memory_stores(), settings, clock)
    created = await empty.seed()
    assert created == len(sample_spots()) == 40
    assert empty.spots.get("F1-R1-S1").category == C
    assert empty.spots.get("F5-R4-S2").category == E
    assert empty.spots.get("F5-R3-S3").hourly_rate == 10.0
    assert await empty.seed() == 0

    # the shared fixture already has spots, so seeding leaves it alone
    assert await facility.seed() == 0


@pytest.mark.asyncio
async def test_list_spots(client: AsyncClient):
    response = await client.get("/api/v1/spots")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 7
    assert data["spots"][0]["id"] == "F1-R1-S1"
    assert data["spots"][0]["floor"] == 1


@pytest.mark.asyncio
async def test_create_spot(client: AsyncClient):
    response = await client.post(
        "/api/v1/spots",
        json={"id": "F3-R1-S1", "category": "compact", "hourly_rate": 2.0},
    )
    assert response.status_code == 201
    assert response.json()["status"] == "available"

    response = await client.post(
        "/api/v1/spots",
        json={"id": "F3-R1-S1", "category": "compact", "hourly_rate": 2.0},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_spot_validation(client: AsyncClient):
    response = await client.post(
        "/api/v1/spots",
        json={"id": "  ", "category": "compact", "hourly_rate": 2.0},
    )
    assert response.status_code == 422
    response = await client.post(
        "/api/v1/spots",
        json={"id": "F3-R1-S2", "category": "compact", "hourly_rate": -2.0},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_available_spots_by_class_and_category(client: AsyncClient):
    response = await client.get("/api/v1/spots/available", params={"vehicle_class": "suv_truck"})
    assert [s["id"] for s in response.json()["spots"]] == ["F1-R1-S1", "F1-R1-S2"]

    response = await client.get("/api/v1/spots/available", params={"category": "reserved"})
    assert response.json()["total"] == 2

    response = await client.get("/api/v1/spots/available")
    assert response.json()["total"] == 7


@pytest.mark.asyncio
async def test_get_spot_not_found(client: AsyncClient):
    response = await client.get("/api/v1/spots/F9-R9-S9")
    assert response.status_code == 404
    assert "F9-R9-S9" in response.json()["detail"]


def test_environment_setting(monkeypatch):
    assert Settings(_env_file=None).environment == "production"
    monkeypatch.setenv("ENVIRONMENT", "staging")
    assert Settings(_env_file=None).environment == "staging"


@pytest.mark.asyncio
async def test_root_and_health(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert "environment" in response.json()

    response = await client.get("/health")
    assert response.json() == {"status": "healthy"}
