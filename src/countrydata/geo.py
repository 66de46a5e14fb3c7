"""Great-circle distance and bounding-box geometry helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers on a sphere of mean Earth radius."""
    phi1, lam1, phi2, lam2 = map(math.radians, (lat1, lon1, lat2, lon2))
    dphi = phi2 - phi1
    dlam = lam2 - lam1
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def coerce_float(value: Any) -> float | None:
    """Parse numeric or numeric-string dataset values; ``None`` if not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


@dataclass(frozen=True, slots=True)
class Bounds:
    """Latitude/longitude envelope in degrees; geometry is built in lon/lat order."""

    min_latitude: float = -90.0
    min_longitude: float = -180.0
    max_latitude: float = 90.0
    max_longitude: float = 180.0

    def __post_init__(self) -> None:
        if self.min_latitude > self.max_latitude:
            raise ValueError(
                f"min_latitude {self.min_latitude} exceeds max_latitude {self.max_latitude}"
            )

    @classmethod
    def from_values(
        cls,
        *,
        min_latitude: Any = None,
        min_longitude: Any = None,
        max_latitude: Any = None,
        max_longitude: Any = None,
    ) -> Bounds:
        """Build bounds from raw dataset values, widening missing sides to the globe."""
        min_lat = coerce_float(min_latitude)
        min_lon = coerce_float(min_longitude)
        max_lat = coerce_float(max_latitude)
        max_lon = coerce_float(max_longitude)
        return cls(
            min_latitude=-90.0 if min_lat is None else min_lat,
            min_longitude=-180.0 if min_lon is None else min_lon,
            max_latitude=90.0 if max_lat is None else max_lat,
            max_longitude=180.0 if max_lon is None else max_lon,
        )

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_longitude > self.max_longitude

    def as_box(self) -> BaseGeometry:
        if self.crosses_antimeridian:
            east = box(self.min_longitude, self.min_latitude, 180.0, self.max_latitude)
            west = box(-180.0, self.min_latitude, self.max_longitude, self.max_latitude)
            return east.union(west)
        return box(self.min_longitude, self.min_latitude, self.max_longitude, self.max_latitude)

    def contains(self, latitude: float, longitude: float) -> bool:
        """Inclusive containment test; points on the edge count as inside."""
        return bool(self.as_box().covers(Point(longitude, latitude)))

    @property
    def width_deg(self) -> float:
        width = self.max_longitude - self.min_longitude
        return width + 360.0 if self.crosses_antimeridian else width

    @property
    def height_deg(self) -> float:
        return self.max_latitude - self.min_latitude
