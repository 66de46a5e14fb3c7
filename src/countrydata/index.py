"""Per-country city tables with nearest-neighbour and radius search."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Sequence

from .geo import haversine_km
from .models import City, slugify


@dataclass(frozen=True, slots=True)
class CityDistance:
    city: City
    distance_km: float


@dataclass(frozen=True, slots=True)
class _Row:
    attributes: Mapping[str, Any]
    latitude: float
    longitude: float
    name_folded: str
    slug: str
    population: int


class CityIndex:
    """In-memory table of one country's cities.

    The index keeps validated raw rows and hands out a fresh ``City`` for
    every result, so callers may mutate what they get back without affecting
    the cached table. Scans are linear; country tables are small enough that
    a spatial index would not pay off.
    """

    def __init__(self, country_code: str, cities: Sequence[City]) -> None:
        self.country_code = country_code.upper()
        rows: list[_Row] = []
        for city in cities:
            population = city.population
            rows.append(
                _Row(
                    attributes=city.attributes,
                    latitude=float(city.latitude),
                    longitude=float(city.longitude),
                    name_folded=city.name.casefold(),
                    slug=city.slug,
                    population=int(population) if isinstance(population, (int, float)) else 0,
                )
            )
        self._rows = tuple(rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[City]:
        return (City(row.attributes) for row in self._rows)

    def __repr__(self) -> str:
        return f"CityIndex({self.country_code!r}, {len(self._rows)} cities)"

    def nearest(
        self,
        latitude: float,
        longitude: float,
        max_distance_km: float | None = None,
    ) -> City | None:
        """Closest city to the point, or ``None`` if it lies beyond ``max_distance_km``."""
        best: _Row | None = None
        best_distance = float("inf")
        for row in self._rows:
            distance = haversine_km(latitude, longitude, row.latitude, row.longitude)
            if distance < best_distance:
                best = row
                best_distance = distance
        if best is None:
            return None
        if max_distance_km is not None and best_distance > max_distance_km:
            return None
        return City(best.attributes)

    def within_radius(self, latitude: float, longitude: float, radius_km: float) -> list[CityDistance]:
        """Cities no farther than ``radius_km``, closest first."""
        matches: list[tuple[float, _Row]] = []
        for row in self._rows:
            distance = haversine_km(latitude, longitude, row.latitude, row.longitude)
            if distance <= radius_km:
                matches.append((distance, row))
        matches.sort(key=lambda item: item[0])
        return [CityDistance(city=City(row.attributes), distance_km=distance) for distance, row in matches]

    def get(self, slug_or_name: str) -> City | None:
        slug = slugify(slug_or_name)
        folded = slug_or_name.casefold()
        for row in self._rows:
            if row.slug == slug or row.name_folded == folded:
                return City(row.attributes)
        return None

    def search(self, query: str) -> list[City]:
        """Cities whose name contains ``query``, most populous first."""
        folded = query.casefold()
        return self._by_population(row for row in self._rows if folded in row.name_folded)

    def in_state(self, state_code: str) -> list[City]:
        return self._by_population(
            row for row in self._rows if row.attributes.get("stateCode") == state_code
        )

    def in_metro(self, metro: str) -> list[City]:
        folded = metro.casefold()
        return self._by_population(
            row
            for row in self._rows
            if isinstance(row.attributes.get("metro"), str)
            and folded in row.attributes["metro"].casefold()
        )

    def top(self, limit: int = 10) -> list[City]:
        if limit < 0:
            raise ValueError("limit must be >= 0")
        return self._by_population(self._rows)[:limit]

    def timezones(self) -> list[str]:
        zones = {city.timezone for city in self}
        return sorted(zone for zone in zones if zone)

    def _by_population(self, rows: Iterable[_Row]) -> list[City]:
        ordered = sorted(rows, key=lambda row: -row.population)
        return [City(row.attributes) for row in ordered]
