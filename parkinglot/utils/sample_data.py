from parkinglot.utils.constants import SpotCategory

CATEGORY_RATES: dict[SpotCategory, float] = {
    SpotCategory.COMPACT: 2.0,
    SpotCategory.REGULAR: 5.0,
    SpotCategory.HANDICAPPED: 2.0,
    SpotCategory.RESERVED: 10.0,
    SpotCategory.ELECTRIC: 8.0,
}

# floor -> [(row, category, spots in row)]; a row may mix categories
FLOOR_LAYOUT: dict[int, list[tuple[int, SpotCategory, int]]] = {
    1: [
        (1, SpotCategory.COMPACT, 3),
        (2, SpotCategory.REGULAR, 3),
        (3, SpotCategory.HANDICAPPED, 2),
    ],
    2: [
        (1, SpotCategory.COMPACT, 2),
        (2, SpotCategory.REGULAR, 4),
        (3, SpotCategory.RESERVED, 2),
    ],
    3: [
        (1, SpotCategory.COMPACT, 3),
        (2, SpotCategory.REGULAR, 3),
        (3, SpotCategory.HANDICAPPED, 1),
    ],
    4: [
        (1, SpotCategory.REGULAR, 4),
        (2, SpotCategory.REGULAR, 2),
        (3, SpotCategory.RESERVED, 2),
    ],
    5: [
        (1, SpotCategory.COMPACT, 2),
        (2, SpotCategory.REGULAR, 2),
        (3, SpotCategory.HANDICAPPED, 1),
        (3, SpotCategory.RESERVED, 2),
        (4, SpotCategory.ELECTRIC, 2),
    ],
}


def sample_spots() -> list[tuple[str, SpotCategory, float]]:
    """Spot id, category and hourly rate for the default five-floor facility."""
    spots = []
    for floor, rows in FLOOR_LAYOUT.items():
        next_spot: dict[int, int] = {}
        for row, category, count in rows:
            for _ in range(count):
                number = next_spot.get(row, 0) + 1
                next_spot[row] = number
                spots.append((f"F{floor}-R{row}-S{number}", category, CATEGORY_RATES[category]))
    return spots
