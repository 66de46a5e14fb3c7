"""Country, city and side-resource loading through a shared dataset cache."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from .cache import DatasetCache
from .collection import MISSING, Operator, where_mapping
from .errors import MalformedDataError, NotFoundError, ValidationError
from .index import CityDistance, CityIndex
from .models import City, Country
from .sources import ResourceSource

_LOGGER = logging.getLogger("countrydata.loader")

SHORTLIST = "shortlist"
LONGLIST = "longlist"


def _normalize_code(code: str) -> str:
    if not isinstance(code, str) or not code.strip():
        raise NotFoundError.invalid_country(code)
    normalized = code.strip().lower()
    if not normalized.isalpha():
        raise NotFoundError.invalid_country(code)
    return normalized


def _parse_json(raw: str, resource: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedDataError(f"Failed parsing {resource}: {exc}") from exc


class CountryLoader:
    """Entry point for country, city and division lookups.

    Country and list datasets are mandatory: a missing resource raises
    ``NotFoundError`` and an unparseable or empty one ``MalformedDataError``.
    Cities, divisions, flags, GeoJSON and translations are optional and
    resolve to ``None``/empty when absent; unreadable optional files are
    logged and treated as absent.
    """

    def __init__(self, source: ResourceSource, cache: DatasetCache | None = None) -> None:
        self.source = source
        self.cache = cache if cache is not None else DatasetCache()

    def __repr__(self) -> str:
        return f"CountryLoader({self.source.describe()})"

    # Countries

    def country(self, code: str, hydrate: bool = True) -> Country | Mapping[str, Any]:
        """Country by ISO 3166-1 alpha-2 code, hydrated or as the raw cached tree."""
        normalized = _normalize_code(code)
        raw = self.cache.load(
            f"country:{normalized}",
            lambda: self._load_mapping(f"data/{normalized}.json", normalized),
        )
        return Country(raw, resources=self) if hydrate else raw

    def countries(
        self,
        longlist: bool = False,
        hydrate: bool = False,
    ) -> list[Country] | Mapping[str, Mapping[str, Any]]:
        """All countries from the short or long list, keyed by alpha-2 when raw."""
        raw = self._country_list(LONGLIST if longlist else SHORTLIST)
        if hydrate:
            return [Country(item, resources=self) for item in raw.values()]
        return raw

    def where(
        self,
        path: str,
        operator: str | Operator | Any,
        value: Any = MISSING,
    ) -> dict[str, Mapping[str, Any]]:
        """Raw long-list entries matching the predicate, keyed by alpha-2."""
        return where_mapping(self._country_list(LONGLIST), path, operator, value)

    def currencies(self, longlist: bool = False) -> dict[str, Any]:
        """Currency codes across all countries, sorted by code.

        The short form maps each country's first currency code to itself; the
        long form maps every listed currency code to its details.
        """
        variant = LONGLIST if longlist else SHORTLIST
        collected = self.cache.load(
            f"currencies:{variant}",
            lambda: self._collect_currencies(variant),
        )
        return dict(collected)

    def _country_list(self, variant: str) -> Mapping[str, Mapping[str, Any]]:
        return self.cache.load(
            f"list:{variant}",
            lambda: self._load_mapping(f"data/{variant}.json", variant),
        )

    def _collect_currencies(self, variant: str) -> dict[str, Any]:
        currencies: dict[str, Any] = {}
        for item in self._country_list(variant).values():
            currency = item.get("currency") if isinstance(item, Mapping) else None
            if not isinstance(currency, Mapping) or not currency:
                continue
            if variant == LONGLIST:
                for code, details in currency.items():
                    if code:
                        currencies[code] = details
            else:
                first = next(iter(currency))
                if first:
                    currencies[first] = first
        return dict(sorted(currencies.items()))

    def _load_mapping(self, resource: str, identifier: str) -> Mapping[str, Any]:
        raw = self.source.read_text(resource)
        if raw is None:
            _LOGGER.debug("Resource %s not found in %s", resource, self.source.describe())
            raise NotFoundError.invalid_country(identifier)
        parsed = _parse_json(raw, resource)
        if not isinstance(parsed, Mapping) or not parsed:
            raise MalformedDataError(f"Expected non-empty mapping in {resource}")
        return parsed

    # Cities

    def cities(self, country_code: str) -> CityIndex:
        """City index for a country; empty when the country has no city data."""
        normalized = _normalize_code(country_code)
        return self.cache.load(f"cities:{normalized}", lambda: self._load_cities(normalized))

    def nearest(
        self,
        country_code: str,
        latitude: float,
        longitude: float,
        max_distance_km: float | None = None,
    ) -> City | None:
        return self.cities(country_code).nearest(latitude, longitude, max_distance_km)

    def within_radius(
        self,
        country_code: str,
        latitude: float,
        longitude: float,
        radius_km: float,
    ) -> list[CityDistance]:
        return self.cities(country_code).within_radius(latitude, longitude, radius_km)

    def timezones(self, country_code: str) -> list[str]:
        return self.cities(country_code).timezones()

    def _load_cities(self, code: str) -> CityIndex:
        rows: list[Any] = []
        directory = f"cities/{code}"
        for name in self.source.list_dir(directory):
            if not name.endswith(".json"):
                continue
            rows.extend(self._read_city_file(f"{directory}/{name}"))
        if not rows:
            rows = self._read_city_file(f"cities/{code}.json")

        cities: list[City] = []
        skipped = 0
        for row in rows:
            try:
                cities.append(City(row))
            except ValidationError as exc:
                skipped += 1
                _LOGGER.debug("Skipping city row for %s: %s", code, exc)
        if skipped:
            _LOGGER.warning("Skipped %d invalid city rows for %s", skipped, code.upper())
        return CityIndex(code, cities)

    def _read_city_file(self, resource: str) -> list[Any]:
        parsed = self._read_optional_json(resource)
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, Mapping):
            return list(parsed.values())
        if parsed is not None:
            _LOGGER.warning("Ignoring city file %s: expected list or mapping", resource)
        return []

    # Side resources

    def divisions(self, country_code: str) -> Mapping[str, Any] | None:
        return self._optional_mapping("divisions", country_code)

    def translations(self, country_code: str) -> Mapping[str, Any] | None:
        return self._optional_mapping("translations", country_code)

    def flag(self, country_code: str) -> str | None:
        return self._read_optional_text(f"flags/{_normalize_code(country_code)}.svg")

    def geojson(self, country_code: str) -> str | None:
        return self._read_optional_text(f"geodata/{_normalize_code(country_code)}.json")

    def _optional_mapping(self, kind: str, country_code: str) -> Mapping[str, Any] | None:
        normalized = _normalize_code(country_code)
        resource = f"{kind}/{normalized}.json"

        def load() -> Mapping[str, Any] | None:
            parsed = self._read_optional_json(resource)
            if parsed is None:
                return None
            if not isinstance(parsed, Mapping):
                _LOGGER.warning("Ignoring %s: expected a mapping", resource)
                return None
            return parsed

        return self.cache.load(f"{kind}:{normalized}", load)

    def _read_optional_text(self, resource: str) -> str | None:
        try:
            return self.source.read_text(resource)
        except MalformedDataError as exc:
            _LOGGER.warning("Ignoring unreadable optional resource %s: %s", resource, exc)
            return None

    def _read_optional_json(self, resource: str) -> Any:
        raw = self._read_optional_text(resource)
        if raw is None:
            return None
        try:
            return _parse_json(raw, resource)
        except MalformedDataError as exc:
            _LOGGER.warning("Ignoring optional resource: %s", exc)
            return None

    # Cache lifecycle

    def invalidate(self, identifier: str) -> bool:
        return self.cache.invalidate(identifier)

    def clear_cache(self) -> None:
        self.cache.invalidate_all()
