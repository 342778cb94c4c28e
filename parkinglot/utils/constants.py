from enum import Enum


class SpotCategory(str, Enum):
    COMPACT = "compact"
    REGULAR = "regular"
    HANDICAPPED = "handicapped"
    RESERVED = "reserved"
    ELECTRIC = "electric"


class SpotStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


class VehicleClass(str, Enum):
    MOTORCYCLE = "motorcycle"
    CAR = "car"
    SUV_TRUCK = "suv_truck"
    HANDICAPPED = "handicapped"
    BUS = "bus"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


class FineKind(str, Enum):
    OVERSTAY = "overstay"
    RESERVED_SPOT = "reserved_spot"
    MANUAL = "manual"


class FinePolicyKind(str, Enum):
    FIXED = "fixed"
    HOURLY = "hourly"
    PROGRESSIVE = "progressive"
    CAPPED = "capped"


OPEN_RESERVATION_STATUSES = frozenset({ReservationStatus.PENDING, ReservationStatus.CONFIRMED})
TERMINAL_RESERVATION_STATUSES = frozenset(
    {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
)

OVERSTAY_REASON = "Overstay violation - exceeded {threshold} hours by {hours} hours"
RESERVED_SPOT_REASON = "Reserved spot violation - no reservation"
