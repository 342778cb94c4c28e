from parkinglot.models.fine import FineRecord
from parkinglot.models.parking import ParkingSpotRecord
from parkinglot.models.payment import PaymentRecord
from parkinglot.models.reservation import ReservationRecord
from parkinglot.models.session import TicketRecord
from parkinglot.models.vehicle import VehicleRecord

__all__ = [
    "ParkingSpotRecord",
    "VehicleRecord",
    "TicketRecord",
    "FineRecord",
    "PaymentRecord",
    "ReservationRecord",
]
