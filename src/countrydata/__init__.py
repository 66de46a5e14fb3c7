"""Country, division and city reference data.

The module-level functions use a shared default loader. Call ``configure``
to point it at a resource tree (or a config file); otherwise it reads
``./resources`` relative to the working directory. Applications that need
isolation should build their own ``CountryLoader`` instead.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Iterable, Mapping

from .cache import DatasetCache
from .collection import MISSING, CountryCollection, Operator, where
from .config import AppConfig, build_loader, build_resolver, load_config
from .errors import (
    CountryDataError,
    MalformedDataError,
    NotFoundError,
    SourceUnavailableError,
    ValidationError,
)
from .geo import Bounds, haversine_km
from .index import CityDistance, CityIndex
from .loader import CountryLoader
from .models import City, Country, Translation
from .resolver import GeoLocation, GeoResolver, format_location, format_location_short
from .sources import DirectorySource, HttpSource, ResourceSource

__version__ = "0.1.0"

_lock = threading.Lock()
_loader: CountryLoader | None = None
_resolver: GeoResolver | None = None


def configure(
    loader: CountryLoader | None = None,
    *,
    config: AppConfig | str | Path | None = None,
) -> CountryLoader:
    """Replace the default loader with ``loader`` or one built from ``config``."""
    global _loader, _resolver
    cfg = load_config(config) if isinstance(config, (str, Path)) else config
    if loader is None:
        loader = build_loader(cfg if cfg is not None else AppConfig.default())
    with _lock:
        _loader = loader
        _resolver = build_resolver(loader, cfg) if cfg is not None else GeoResolver(loader)
    return loader


def reset_default_loader() -> None:
    """Drop the default loader and its cache; the next call rebuilds it."""
    global _loader, _resolver
    with _lock:
        _loader = None
        _resolver = None


def default_loader() -> CountryLoader:
    global _loader, _resolver
    with _lock:
        if _loader is None:
            _loader = build_loader(AppConfig.default())
            _resolver = GeoResolver(_loader)
        return _loader


def _default_resolver() -> GeoResolver:
    global _resolver
    loader = default_loader()
    with _lock:
        if _resolver is None:
            _resolver = GeoResolver(loader)
        return _resolver


def country(code: str, hydrate: bool = True) -> Country | Mapping[str, Any]:
    return default_loader().country(code, hydrate=hydrate)


def countries(longlist: bool = False, hydrate: bool = False) -> Any:
    return default_loader().countries(longlist=longlist, hydrate=hydrate)


def currencies(longlist: bool = False) -> dict[str, Any]:
    return default_loader().currencies(longlist=longlist)


def cities(country_code: str) -> CityIndex:
    return default_loader().cities(country_code)


def filter_countries(
    records: Iterable[Any],
    path: str,
    operator: str | Operator | Any,
    value: Any = MISSING,
) -> list[Any]:
    return where(records, path, operator, value)


def resolve_coordinates(
    latitude: float,
    longitude: float,
    *,
    max_city_distance_km: float | None = None,
    country_code_hint: str | None = None,
) -> GeoLocation | None:
    return _default_resolver().resolve_coordinates(
        latitude,
        longitude,
        max_city_distance_km=max_city_distance_km,
        country_code_hint=country_code_hint,
    )


def find_city(name: str, country_code: str, state_code: str | None = None) -> City | None:
    return _default_resolver().find_city(name, country_code, state_code)


__all__ = [
    "AppConfig",
    "Bounds",
    "City",
    "CityDistance",
    "CityIndex",
    "Country",
    "CountryCollection",
    "CountryDataError",
    "CountryLoader",
    "DatasetCache",
    "DirectorySource",
    "GeoLocation",
    "GeoResolver",
    "HttpSource",
    "MalformedDataError",
    "NotFoundError",
    "Operator",
    "ResourceSource",
    "SourceUnavailableError",
    "Translation",
    "ValidationError",
    "cities",
    "configure",
    "countries",
    "country",
    "currencies",
    "default_loader",
    "filter_countries",
    "find_city",
    "format_location",
    "format_location_short",
    "haversine_km",
    "load_config",
    "reset_default_loader",
    "resolve_coordinates",
]
