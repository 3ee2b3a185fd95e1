from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


def haversine_m(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance in metres."""
    phi1 = math.radians(origin.latitude)
    phi2 = math.radians(target.latitude)
    delta_phi = math.radians(target.latitude - origin.latitude)
    delta_lambda = math.radians(target.longitude - origin.longitude)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def is_within_radius(origin: Coordinates, target: Coordinates, *, radius_m: float) -> bool:
    return haversine_m(origin, target) <= radius_m


def route_distance_m(points: Sequence[Coordinates]) -> int:
    total = 0.0
    for previous, current in zip(points, points[1:]):
        total += haversine_m(previous, current)
    return int(round(total))
