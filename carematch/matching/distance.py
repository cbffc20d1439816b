"""Great-circle distance helpers (Haversine).

Distances are kilometres rounded to 2 decimals. Coordinates outside the
valid ranges are a caller bug and are not checked here.
"""

import math
from collections.abc import Callable, Iterable
from typing import TypeVar

from carematch.core.schemas import Address, Coordinate, TravelRadius

T = TypeVar("T")

EARTH_RADIUS_KM = 6371.0
DEFAULT_TRAVEL_RADIUS_KM = 10.0

TRAVEL_RADIUS_KM: dict[str, float] = {
    TravelRadius.UP_TO_5KM.value: 5.0,
    TravelRadius.UP_TO_10KM.value: 10.0,
    TravelRadius.UP_TO_15KM.value: 15.0,
    TravelRadius.UP_TO_20KM.value: 20.0,
    TravelRadius.UP_TO_30KM.value: 30.0,
    # Whole metro area, approximated
    TravelRadius.ENTIRE_CITY.value: 50.0,
}


def calculate_distance(point1: Coordinate, point2: Coordinate) -> float:
    """Great-circle distance between two points in kilometres.

    Args:
        point1: First coordinate.
        point2: Second coordinate.

    Returns:
        Distance in km, rounded to 2 decimal places.
    """
    lat1 = math.radians(point1.latitude)
    lat2 = math.radians(point2.latitude)
    delta_lat = math.radians(point2.latitude - point1.latitude)
    delta_lon = math.radians(point2.longitude - point1.longitude)

    h = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return round(EARTH_RADIUS_KM * c, 2)


def distance_between_addresses(
    address1: Address | None,
    address2: Address | None,
) -> float | None:
    """Distance between two addresses, or None if either lacks coordinates."""
    if address1 is None or address2 is None:
        return None
    a, b = address1.coordinate, address2.coordinate
    if a is None or b is None:
        return None
    return calculate_distance(a, b)


def is_within_radius(center: Coordinate, target: Coordinate, radius_km: float) -> bool:
    return calculate_distance(center, target) <= radius_km


def max_travel_distance_to_km(radius: TravelRadius | str | None) -> float:
    """Map a travel radius tier to kilometres, defaulting to 10 km."""
    if radius is None:
        return DEFAULT_TRAVEL_RADIUS_KM
    key = radius.value if isinstance(radius, TravelRadius) else radius
    return TRAVEL_RADIUS_KM.get(key, DEFAULT_TRAVEL_RADIUS_KM)


def is_within_travel_range(
    provider_location: Coordinate,
    household_location: Coordinate,
    radius: TravelRadius | str | None,
) -> bool:
    """True if the household lies inside the provider's travel radius."""
    return is_within_radius(
        provider_location, household_location, max_travel_distance_to_km(radius)
    )


def filter_by_radius(
    center: Coordinate,
    items: Iterable[T],
    radius_km: float,
    get_coordinate: Callable[[T], Coordinate | None],
) -> list[T]:
    """Keep items within ``radius_km`` of ``center``; items without coordinates are dropped."""
    result: list[T] = []
    for item in items:
        coord = get_coordinate(item)
        if coord is not None and is_within_radius(center, coord, radius_km):
            result.append(item)
    return result


def sort_by_distance(
    center: Coordinate,
    items: Iterable[T],
    get_coordinate: Callable[[T], Coordinate | None],
) -> list[T]:
    """Sort items nearest first. Items without coordinates go last, in input order."""
    with_distance = add_distance(center, items, get_coordinate)
    with_distance.sort(key=lambda pair: (pair[1] is None, pair[1] or 0.0))
    return [item for item, _ in with_distance]


def add_distance(
    center: Coordinate,
    items: Iterable[T],
    get_coordinate: Callable[[T], Coordinate | None],
) -> list[tuple[T, float | None]]:
    """Pair each item with its distance from ``center`` (None without coordinates)."""
    result: list[tuple[T, float | None]] = []
    for item in items:
        coord = get_coordinate(item)
        distance = calculate_distance(center, coord) if coord is not None else None
        result.append((item, distance))
    return result
