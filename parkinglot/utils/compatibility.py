from parkinglot.utils.constants import SpotCategory, VehicleClass

SPOT_COMPATIBILITY: dict[VehicleClass, frozenset[SpotCategory]] = {
    VehicleClass.MOTORCYCLE: frozenset({SpotCategory.COMPACT}),
    VehicleClass.CAR: frozenset(
        {SpotCategory.COMPACT, SpotCategory.REGULAR, SpotCategory.ELECTRIC}
    ),
    VehicleClass.SUV_TRUCK: frozenset({SpotCategory.REGULAR}),
    VehicleClass.HANDICAPPED: frozenset(SpotCategory),
    VehicleClass.BUS: frozenset({SpotCategory.RESERVED}),
}


def allowed_categories(vehicle_class: VehicleClass) -> frozenset[SpotCategory]:
    return SPOT_COMPATIBILITY.get(vehicle_class, frozenset())


def can_accommodate(vehicle_class: VehicleClass | None, category: SpotCategory) -> bool:
    if vehicle_class is None:
        return False
    return category in allowed_categories(vehicle_class)
