from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from parkinglot.config import Settings
from parkinglot.core.dependencies import get_facility
from parkinglot.database import build_engine, build_session_maker, init_db
from parkinglot.main import app
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.services.facility import ParkingFacility
from parkinglot.stores.base import Stores
from parkinglot.stores.memory import in_memory_stores
from parkinglot.stores.sql import sql_stores
from parkinglot.utils.constants import SpotCategory

T0 = datetime(2025, 3, 3, 8, 0, tzinfo=UTC)

TEST_SPOTS = [
    ("F1-R1-S1", SpotCategory.REGULAR, 5.0),
    ("F1-R1-S2", SpotCategory.REGULAR, 5.0),
    ("F1-R2-S1", SpotCategory.COMPACT, 2.0),
    ("F1-R3-S1", SpotCategory.HANDICAPPED, 2.0),
    ("F2-R1-S1", SpotCategory.RESERVED, 10.0),
    ("F2-R1-S2", SpotCategory.RESERVED, 10.0),
    ("F2-R2-S1", SpotCategory.ELECTRIC, 8.0),
]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, seed_sample_data=False)


@pytest.fixture
def stores() -> Stores:
    return in_memory_stores()


async def add_test_spots(facility: ParkingFacility) -> None:
    for spot_id, category, rate in TEST_SPOTS:
        await facility.spots.add(ParkingSpot(id=spot_id, category=category, hourly_rate=rate))


@pytest_asyncio.fixture
async def facility(stores: Stores, settings: Settings, clock: FakeClock) -> ParkingFacility:
    facility = await ParkingFacility.create(stores, settings, clock)
    await add_test_spots(facility)
    return facility


@pytest_asyncio.fixture
async def client(facility: ParkingFacility) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_facility] = lambda: facility

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def sql_backed_stores(tmp_path: Path) -> AsyncGenerator[Stores, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_parking.db'}")
    await init_db(engine)
    yield sql_stores(build_session_maker(engine))
    await engine.dispose()


@pytest.fixture
def build_facility(settings: Settings, clock: FakeClock):
    """Factory for a facility over custom stores, preloaded with the test spots."""

    async def build(stores: Stores) -> ParkingFacility:
        facility = await ParkingFacility.create(stores, settings, clock)
        await add_test_spots(facility)
        return facility

    return build
