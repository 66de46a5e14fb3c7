"""Coordinate to country/region/city resolution.

Candidate countries are probed in a fixed order and the first whose recorded
bounding box covers the point wins. Boxes of neighbouring countries overlap,
so the candidate order is the tie-break; this is a best-effort heuristic, not
authoritative reverse geocoding.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

from .errors import MalformedDataError, NotFoundError, ValidationError
from .geo import coerce_float, haversine_km
from .loader import CountryLoader
from .models import City, Country

_LOGGER = logging.getLogger("countrydata.resolver")

DEFAULT_CANDIDATES: tuple[str, ...] = ("US", "CA", "GB", "DE", "FR", "AU", "JP", "BR", "IN", "MX")
DEFAULT_MAX_CITY_DISTANCE_KM = 50.0


@dataclass(frozen=True, slots=True)
class GeoLocation:
    country_code: str
    country_name: str
    latitude: float
    longitude: float
    region: str | None = None
    region_code: str | None = None
    city: str | None = None
    metro: str | None = None
    timezone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True, slots=True)
class _Division:
    code: str
    name: str | None
    distance_km: float


class GeoResolver:
    def __init__(
        self,
        loader: CountryLoader,
        candidates: Iterable[str] = DEFAULT_CANDIDATES,
        max_city_distance_km: float = DEFAULT_MAX_CITY_DISTANCE_KM,
    ) -> None:
        self.loader = loader
        self.candidates = tuple(code.strip().upper() for code in candidates)
        if not self.candidates:
            raise ValueError("At least one candidate country is required")
        if max_city_distance_km < 0:
            raise ValueError("max_city_distance_km must be >= 0")
        self.max_city_distance_km = float(max_city_distance_km)

    def resolve_coordinates(
        self,
        latitude: float,
        longitude: float,
        *,
        max_city_distance_km: float | None = None,
        country_code_hint: str | None = None,
    ) -> GeoLocation | None:
        """Locate the point within the first candidate country whose box covers it.

        A hinted country is tried before the candidate list. Returns ``None``
        when no candidate's box covers the point, including points off the globe.
        """
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            _LOGGER.debug("Coordinates out of range: (%s, %s)", latitude, longitude)
            return None
        cutoff = self.max_city_distance_km if max_city_distance_km is None else max_city_distance_km

        order: list[str] = []
        if country_code_hint:
            order.append(country_code_hint.strip().upper())
        order.extend(code for code in self.candidates if code not in order)

        for code in order:
            country = self._country(code)
            if country is None:
                continue
            try:
                bounds = country.bounds
            except MalformedDataError as exc:
                _LOGGER.debug("Skipping candidate %s: %s", code, exc)
                continue
            if not bounds.contains(latitude, longitude):
                continue
            return self._resolve_in_country(country, latitude, longitude, cutoff)
        _LOGGER.debug("No candidate country covers (%s, %s)", latitude, longitude)
        return None

    def _country(self, code: str) -> Country | None:
        try:
            return self.loader.country(code)
        except (NotFoundError, MalformedDataError, ValidationError) as exc:
            _LOGGER.debug("Skipping candidate %s: %s", code, exc)
            return None

    def _resolve_in_country(
        self,
        country: Country,
        latitude: float,
        longitude: float,
        max_city_distance_km: float,
    ) -> GeoLocation:
        base = {
            "country_code": str(country.iso_alpha2).upper(),
            "country_name": country.name or str(country.iso_alpha2),
            "latitude": latitude,
            "longitude": longitude,
        }
        city = self.loader.nearest(country.code, latitude, longitude, max_city_distance_km)
        if city is not None:
            return GeoLocation(
                **base,
                region=city.state,
                region_code=city.state_code,
                city=city.name,
                metro=city.metro,
                timezone=city.timezone,
            )
        division = self._nearest_division(country, latitude, longitude)
        if division is not None:
            return GeoLocation(**base, region=division.name, region_code=division.code)
        return GeoLocation(**base)

    def _nearest_division(self, country: Country, latitude: float, longitude: float) -> _Division | None:
        divisions = country.divisions()
        if not divisions:
            return None
        best: _Division | None = None
        for code, division in divisions.items():
            if not isinstance(division, Mapping):
                continue
            geo = division.get("geo")
            if not isinstance(geo, Mapping):
                continue
            lat = coerce_float(geo.get("latitude"))
            lon = coerce_float(geo.get("longitude"))
            if lat is None or lon is None:
                continue
            distance = haversine_km(latitude, longitude, lat, lon)
            if best is None or distance < best.distance_km:
                name = division.get("name")
                best = _Division(
                    code=str(code),
                    name=name if isinstance(name, str) else None,
                    distance_km=distance,
                )
        return best

    def find_city(self, name: str, country_code: str, state_code: str | None = None) -> City | None:
        """City whose name contains ``name``.

        A match inside ``state_code`` is preferred; without one the most
        populous match anywhere in the country is returned.
        """
        matches = self.loader.cities(country_code).search(name)
        if not matches:
            return None
        if state_code:
            for city in matches:
                if city.state_code == state_code:
                    return city
        return matches[0]


def format_location(location: GeoLocation) -> str:
    """``City, Region, Country`` with absent parts left out."""
    parts = [part for part in (location.city, location.region, location.country_name) if part]
    return ", ".join(parts)


def format_location_short(location: GeoLocation) -> str:
    if location.city and location.region_code:
        return f"{location.city}, {location.region_code}"
    if location.region:
        return f"{location.region}, {location.country_code}"
    return location.country_name or location.country_code
