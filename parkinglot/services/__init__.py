from parkinglot.services import (
    facility,
    fine,
    parking,
    payment,
    report,
    reservation,
    session,
)

__all__ = [
    "facility",
    "fine",
    "parking",
    "payment",
    "report",
    "reservation",
    "session",
]
