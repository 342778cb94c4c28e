from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from parkinglot.core.exceptions import InvalidArgumentError
from parkinglot.schemas.parking import ParkingSpot
from parkinglot.services.facility import ParkingFacility
from parkinglot.utils.constants import FineKind, SpotCategory, VehicleClass


@pytest.mark.asyncio
async def test_empty_facility_report(facility: ParkingFacility):
    reports = facility.reports
    assert reports.total_spots() == 7
    assert reports.available_spot_count() == 7
    assert reports.occupancy_rate() == 0.0
    assert reports.currently_parked() == []

    dashboard = await reports.dashboard()
    assert dashboard.occupied_spots == 0
    assert dashboard.today_revenue == 0
    assert dashboard.outstanding_fines == 0


@pytest.mark.asyncio
async def test_occupancy_follows_sessions(facility: ParkingFacility):
    await facility.orchestrator.process_entry("CAR1", VehicleClass.CAR, "F1-R1-S1")
    await facility.orchestrator.process_entry("MOTO1", VehicleClass.MOTORCYCLE, "F1-R2-S1")

    reports = facility.reports
    assert reports.available_spot_count() == 5
    assert reports.occupancy_rate() == 28.57
    assert [v.license_plate for v in reports.currently_parked()] == ["CAR1", "MOTO1"]

    floors = {f.floor: f for f in reports.floor_summary()}
    assert floors[1].total_spots == 4
    assert floors[1].occupied == 2
    assert floors[1].occupancy_rate == 50.0
    assert floors[2].occupied == 0

    by_category = {c.category: c for c in reports.category_availability()}
    assert by_category["regular"].total == 2
    assert by_category["regular"].available == 1
    assert by_category["compact"].available == 0


def test_spot_without_floor_pattern():
    spot = ParkingSpot(id="LOT-A", category=SpotCategory.REGULAR, hourly_rate=5.0)
    assert spot.floor is None
    assert spot.row is None


@pytest.mark.asyncio
async def test_dashboard_after_activity(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    await facility.orchestrator.process_entry("SQUAT1", VehicleClass.CAR, "F2-R1-S1")
    await facility.reservations.create(
        "RSV111", "F2-R1-S2", clock.now + timedelta(hours=1), clock.now + timedelta(hours=2)
    )
    clock.advance(hours=2)
    await facility.orchestrator.process_exit("ABC123")

    dashboard = await facility.reports.dashboard()
    assert dashboard.total_spots == 7
    assert dashboard.occupied_spots == 1
    assert dashboard.parked_vehicles == 1
    assert dashboard.outstanding_fines == 1
    assert dashboard.outstanding_fine_amount == 100.0
    assert dashboard.active_reservations == 1
    assert dashboard.today_revenue == 10.0

    outstanding = await facility.reports.outstanding_fines()
    assert [f.kind for f in outstanding] == [FineKind.RESERVED_SPOT]


@pytest.mark.asyncio
async def test_revenue_report(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    clock.advance(hours=1)
    await facility.orchestrator.process_exit("ABC123")

    today = clock.now.date()
    report = await facility.reports.revenue_report()
    assert report.period_start == report.period_end == today
    assert report.total_revenue == 5.0

    tomorrow = today + timedelta(days=1)
    assert await facility.reports.total_revenue(tomorrow, tomorrow) == 0
    with pytest.raises(InvalidArgumentError):
        await facility.reports.total_revenue(tomorrow, today)


@pytest.mark.asyncio
async def test_report_api(client: AsyncClient, facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")

    response = await client.get("/api/v1/reports/dashboard")
    assert response.status_code == 200
    data = response.json()
    assert data["occupied_spots"] == 1
    assert len(data["by_category"]) == 5

    response = await client.get("/api/v1/reports/floors")
    assert [f["floor"] for f in response.json()["floors"]] == [1, 2]

    response = await client.get("/api/v1/reports/parked")
    data = response.json()
    assert data["total"] == 1
    assert data["vehicles"][0]["license_plate"] == "ABC123"

    clock.advance(hours=3)
    await facility.orchestrator.process_exit("ABC123")
    day = clock.now.date().isoformat()
    response = await client.get(
        "/api/v1/reports/revenue", params={"start_date": day, "end_date": day}
    )
    assert response.json()["total_revenue"] == 15.0


@pytest.mark.asyncio
async def test_revenue_api_rejects_reversed_range(client: AsyncClient):
    response = await client.get(
        "/api/v1/reports/revenue",
        params={"start_date": date(2025, 3, 4).isoformat(), "end_date": "2025-03-03"},
    )
    assert response.status_code == 422
