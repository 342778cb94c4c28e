from parkinglot.stores.base import (
    FineStore,
    PaymentStore,
    RecordStore,
    ReservationStore,
    SpotStore,
    Stores,
    TicketStore,
    VehicleStore,
)
from parkinglot.stores.memory import in_memory_stores
from parkinglot.stores.sql import sql_stores

__all__ = [
    "RecordStore",
    "SpotStore",
    "VehicleStore",
    "TicketStore",
    "FineStore",
    "PaymentStore",
    "ReservationStore",
    "Stores",
    "in_memory_stores",
    "sql_stores",
]
