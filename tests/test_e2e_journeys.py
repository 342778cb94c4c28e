import asyncio
from datetime import timedelta

import pytest

from parkinglot.core.exceptions import ConfigurationError, ConflictError
from parkinglot.schemas.reservation import Reservation
from parkinglot.services.facility import ParkingFacility
from parkinglot.services.fine import (
    FixedFinePolicy,
    HourlyFinePolicy,
    ProgressiveFinePolicy,
)
from parkinglot.services.reservation import ReservationLedger
from parkinglot.stores.memory import InMemoryReservationStore
from parkinglot.utils.constants import FineKind, ReservationStatus, VehicleClass


@pytest.mark.asyncio
async def test_scenario_a_short_stay(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    clock.advance(minutes=90)
    receipt = await facility.orchestrator.process_exit("ABC123")

    assert receipt.duration_hours == 2
    assert receipt.parking_fee == 10.0
    assert receipt.fine_amount == 0
    assert receipt.total_amount == 10.0
    assert await facility.stores.fines.find_all() == []


@pytest.mark.asyncio
async def test_scenario_b_reserved_spot_without_reservation(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F2-R1-S1")

    fines = await facility.fines.unpaid("ABC123")
    assert len(fines) == 1
    assert fines[0].amount == 100.0
    assert fines[0].kind == FineKind.RESERVED_SPOT
    vehicle = await facility.orchestrator.find_vehicle("ABC123")
    assert vehicle.reserved_violation_fined
    assert fines[0].vehicle_id == vehicle.id

    clock.advance(hours=2)
    receipt = await facility.orchestrator.process_exit("ABC123")
    assert receipt.parking_fee == 20.0
    assert receipt.fine_amount == 100.0
    assert receipt.total_amount == 120.0
    # issued once, at entry
    assert len(await facility.stores.fines.find_all()) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "policy,expected_fine",
    [
        (FixedFinePolicy(), 50.0),
        (HourlyFinePolicy(20.0, max_cap=500.0), 120.0),
        (ProgressiveFinePolicy(), 50.0),
    ],
    ids=["fixed", "hourly", "progressive"],
)
async def test_scenario_c_overstay(facility: ParkingFacility, clock, policy, expected_fine):
    facility.fines.set_policy(policy)
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    clock.advance(hours=30)
    receipt = await facility.orchestrator.process_exit("ABC123")

    assert receipt.duration_hours == 30
    assert receipt.parking_fee == 150.0
    assert receipt.fine_amount == expected_fine
    assert receipt.total_amount == 150.0 + expected_fine


class SlowReservationStore(InMemoryReservationStore):
    async def save(self, record):
        await asyncio.sleep(0.01)
        return await super().save(record)


@pytest.mark.asyncio
async def test_scenario_d_concurrent_reservations(clock):
    ledger = ReservationLedger(SlowReservationStore(), clock=clock)
    start = clock.now + timedelta(hours=1)

    results = await asyncio.gather(
        ledger.create("AAA111", "F2-R1-S1", start, start + timedelta(hours=2)),
        ledger.create("BBB222", "F2-R1-S1", start + timedelta(hours=1), start + timedelta(hours=3)),
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, Reservation)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(created) == 1
    assert len(conflicts) == 1
    assert ledger.all() == created


@pytest.mark.asyncio
async def test_reserved_spot_with_reservation(facility: ParkingFacility, clock):
    reservation = await facility.reservations.create(
        "ABC123", "F2-R1-S1", clock.now + timedelta(minutes=20), clock.now + timedelta(hours=3)
    )
    await facility.reservations.confirm(reservation.id)

    # within the early-arrival grace period
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F2-R1-S1")
    assert await facility.fines.unpaid("ABC123") == []

    clock.advance(hours=2)
    receipt = await facility.orchestrator.process_exit("ABC123")
    assert receipt.total_amount == 20.0
    assert facility.reservations.get(reservation.id).status == ReservationStatus.COMPLETED


@pytest.mark.asyncio
async def test_reservation_for_other_plate_does_not_cover(facility: ParkingFacility, clock):
    reservation = await facility.reservations.create(
        "OWNER1", "F2-R1-S1", clock.now, clock.now + timedelta(hours=3)
    )
    await facility.reservations.confirm(reservation.id)
    await facility.orchestrator.process_entry("SQUAT1", VehicleClass.CAR, "F2-R1-S1")
    assert await facility.fines.total_unpaid("SQUAT1") == 100.0


@pytest.mark.asyncio
async def test_bus_needs_a_reservation_too(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("BUS1", VehicleClass.BUS, "F2-R1-S2")
    assert await facility.fines.total_unpaid("BUS1") == 100.0


@pytest.mark.asyncio
async def test_expired_reservation_completion_is_best_effort(facility: ParkingFacility, clock):
    reservation = await facility.reservations.create(
        "ABC123", "F2-R1-S1", clock.now, clock.now + timedelta(hours=1)
    )
    await facility.reservations.confirm(reservation.id)
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F2-R1-S1")

    clock.advance(hours=2)
    await facility.reservations.expire_stale()
    receipt = await facility.orchestrator.process_exit("ABC123")

    assert receipt.parking_fee == 20.0
    assert facility.reservations.get(reservation.id).status == ReservationStatus.EXPIRED
    assert not facility.orchestrator.is_parked("ABC123")


@pytest.mark.asyncio
async def test_escape_recovery_on_reentry(facility: ParkingFacility, clock):
    orchestrator = facility.orchestrator
    await orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    stale = await orchestrator.find_vehicle("ABC123")

    clock.advance(hours=30)
    ticket = await orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S2")

    assert facility.spots.get("F1-R1-S1").is_available
    assert facility.spots.get("F1-R1-S2").occupant_plate == "ABC123"
    closed = await facility.stores.vehicles.find(stale.id)
    assert closed.exit_time == clock.now
    assert closed.overstay_fined
    assert [v.ticket_id for v in orchestrator.parked_vehicles()] == [ticket.id]

    fines = await facility.fines.unpaid("ABC123")
    assert [(f.kind, f.amount) for f in fines] == [(FineKind.OVERSTAY, 50.0)]

    clock.advance(hours=1)
    receipt = await orchestrator.process_exit("ABC123")
    assert receipt.parking_fee == 5.0
    assert receipt.fine_amount == 50.0
    assert len(await facility.stores.fines.find_all()) == 1


@pytest.mark.asyncio
async def test_escape_recovery_into_same_spot(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    clock.advance(hours=2)
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")

    assert facility.spots.get("F1-R1-S1").occupant_plate == "ABC123"
    history = await facility.stores.vehicles.find_by_plate("ABC123")
    assert len(history) == 2
    assert history[0].exit_time == clock.now
    assert history[1].is_parked
    # a short stale session carries no overstay fine
    assert await facility.fines.unpaid("ABC123") == []


@pytest.mark.asyncio
async def test_escape_recovery_without_policy_changes_nothing(facility: ParkingFacility, clock):
    await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S1")
    facility.fines._policy = None
    clock.advance(hours=30)

    with pytest.raises(ConfigurationError):
        await facility.orchestrator.process_entry("ABC123", VehicleClass.CAR, "F1-R1-S2")

    assert facility.spots.get("F1-R1-S1").occupant_plate == "ABC123"
    assert facility.spots.get("F1-R1-S2").is_available
    assert len(await facility.stores.vehicles.find_all()) == 1
    assert await facility.stores.fines.find_all() == []
