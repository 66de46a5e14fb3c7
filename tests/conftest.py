"""Shared fixtures: a small on-disk resource tree with US, GB and IE."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import pytest

from countrydata import reset_default_loader
from countrydata.cache import DatasetCache
from countrydata.loader import CountryLoader
from countrydata.resolver import GeoResolver
from countrydata.sources import DirectorySource

US: dict[str, Any] = {
    "name": {
        "common": "United States",
        "official": "United States of America",
        "native": {
            "eng": {"common": "United States", "official": "United States of America"},
        },
    },
    "demonym": "American",
    "capital": "Washington D.C.",
    "iso_3166_1_alpha2": "US",
    "iso_3166_1_alpha3": "USA",
    "iso_3166_1_numeric": "840",
    "currency": {
        "USD": {"iso_4217_code": "USD", "iso_4217_name": "US Dollar", "iso_4217_minor_unit": 2},
    },
    "tld": [".us"],
    "alt_spellings": ["US", "USA", "United States of America"],
    "languages": {"eng": "English"},
    "geo": {
        "continent": ["NA"],
        "postal_code": True,
        "latitude": "38 00 N",
        "longitude": "97 00 W",
        "min_latitude": "18.91619",
        "max_latitude": "71.3577635769",
        "min_longitude": "-171.791110603",
        "max_longitude": "-66.96466",
        "area": 9629091,
        "region": "Americas",
        "subregion": "Northern America",
        "world_region": "AMER",
        "region_code": "019",
        "subregion_code": "021",
        "landlocked": False,
        "borders": ["CAN", "MEX"],
        "independent": "Yes",
    },
    "dialling": {
        "calling_code": ["1"],
        "national_prefix": "1",
        "national_number_lengths": [10],
        "national_destination_code_lengths": [3],
        "international_prefix": "011",
    },
    "extra": {"geonameid": 6252001, "fifa": "USA", "ioc": "USA", "eu_member": False, "emoji": "🇺🇸"},
}

GB: dict[str, Any] = {
    "name": {
        "common": "United Kingdom",
        "official": "United Kingdom of Great Britain and Northern Ireland",
        "native": {
            "eng": {
                "common": "United Kingdom",
                "official": "United Kingdom of Great Britain and Northern Ireland",
            },
        },
    },
    "demonym": "British",
    "capital": "London",
    "iso_3166_1_alpha2": "GB",
    "iso_3166_1_alpha3": "GBR",
    "iso_3166_1_numeric": "826",
    "currency": {
        "GBP": {"iso_4217_code": "GBP", "iso_4217_name": "Pound Sterling", "iso_4217_minor_unit": 2},
    },
    "tld": [".uk"],
    "languages": {"eng": "English"},
    "geo": {
        "min_latitude": "49.9",
        "max_latitude": "60.85",
        "min_longitude": "-8.62",
        "max_longitude": "1.77",
        "region": "Europe",
        "subregion": "Northern Europe",
        "landlocked": False,
    },
    "dialling": {"calling_code": ["44"], "national_prefix": "0", "international_prefix": "00"},
    "extra": {"fifa": "ENG,NIR,SCO,WAL", "ioc": "GBR", "eu_member": False},
}

IE: dict[str, Any] = {
    "name": {
        "common": "Ireland",
        "official": "Republic of Ireland",
        "native": {
            "gle": {"common": "Éire", "official": "Poblacht na hÉireann"},
            "eng": {"common": "Ireland", "official": "Republic of Ireland"},
        },
    },
    "iso_3166_1_alpha2": "IE",
    "iso_3166_1_alpha3": "IRL",
    "iso_3166_1_numeric": "372",
    "currency": {
        "EUR": {"iso_4217_code": "EUR", "iso_4217_name": "Euro", "iso_4217_minor_unit": 2},
    },
    "languages": {"gle": "Irish", "eng": "English"},
    "geo": {
        "min_latitude": "51.42",
        "max_latitude": "55.39",
        "min_longitude": "-10.48",
        "max_longitude": "-5.99",
        "region": "Europe",
        "subregion": "Northern Europe",
    },
    "extra": {"eu_member": True},
}


def city(
    name: str,
    state_code: str,
    state: str,
    latitude: float,
    longitude: float,
    *,
    population: int | None = None,
    metro: str | None = None,
    timezone: str | None = None,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "name": name,
        "stateCode": state_code,
        "state": state,
        "geo": {"latitude": latitude, "longitude": longitude},
    }
    if population is not None:
        row["population"] = population
    if metro is not None:
        row["metro"] = metro
    if timezone is not None:
        row["geo"]["timezone"] = timezone
    return row


WASHINGTON = city(
    "Washington",
    "DC",
    "District of Columbia",
    38.9072,
    -77.0369,
    population=689545,
    metro="Washington-Arlington-Alexandria",
    timezone="America/New_York",
)
NEW_YORK = city(
    "New York",
    "NY",
    "New York",
    40.7128,
    -74.0060,
    population=8336817,
    metro="New York-Newark-Jersey City",
    timezone="America/New_York",
)
LOS_ANGELES = city(
    "Los Angeles",
    "CA",
    "California",
    34.0522,
    -118.2437,
    population=3898747,
    metro="Los Angeles-Long Beach-Anaheim",
    timezone="America/Los_Angeles",
)
ARLINGTON_TX = city(
    "Arlington",
    "TX",
    "Texas",
    32.7357,
    -97.1081,
    population=394266,
    metro="Dallas-Fort Worth-Arlington",
    timezone="America/Chicago",
)
# Short coordinate spelling on purpose.
ARLINGTON_VA = {
    "name": "Arlington",
    "stateCode": "VA",
    "state": "Virginia",
    "county": "Arlington",
    "metro": "Washington-Arlington-Alexandria",
    "population": 238643,
    "geo": {"lat": 38.8816, "lon": -77.0910, "tz": "America/New_York"},
}
LONDON = city(
    "London",
    "ENG",
    "England",
    51.5074,
    -0.1278,
    population=8982000,
    timezone="Europe/London",
)
EDINBURGH = city(
    "Edinburgh",
    "SCT",
    "Scotland",
    55.9533,
    -3.1883,
    population=506520,
    timezone="Europe/London",
)

GB_DIVISIONS = {
    "ENG": {"name": "England", "geo": {"latitude": 52.3555, "longitude": -1.1743}},
    "SCT": {"name": "Scotland", "geo": {"latitude": "56.49", "longitude": "-4.20"}},
    "WLS": {"name": "Wales"},
}

US_TRANSLATIONS = {
    "fra": {"common": "États-Unis", "official": "Les états-unis d'Amérique"},
    "deu": {"common": "Vereinigte Staaten", "official": "Vereinigte Staaten von Amerika"},
}

GB_GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "properties": {"name": "Great Britain"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-5.0, 50.0], [1.5, 50.0], [1.5, 58.5], [-5.0, 58.5], [-5.0, 50.0]]],
            },
        },
        {
            "type": "Feature",
            "properties": {"name": "Northern Ireland"},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-8.0, 54.0], [-5.5, 54.0], [-5.5, 55.3], [-8.0, 55.3], [-8.0, 54.0]]],
            },
        },
    ],
}

US_FLAG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 19 10"></svg>'


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def us_attributes() -> dict[str, Any]:
    return copy.deepcopy(US)


@pytest.fixture
def gb_attributes() -> dict[str, Any]:
    return copy.deepcopy(GB)


@pytest.fixture
def ie_attributes() -> dict[str, Any]:
    return copy.deepcopy(IE)


@pytest.fixture
def resource_root(tmp_path: Path) -> Path:
    root = tmp_path / "resources"
    _write_json(root / "data" / "us.json", US)
    _write_json(root / "data" / "gb.json", GB)
    _write_json(root / "data" / "ie.json", IE)
    _write_json(root / "data" / "shortlist.json", {"us": US, "gb": GB})
    _write_json(root / "data" / "longlist.json", {"us": US, "gb": GB, "ie": IE})

    _write_json(root / "cities" / "us" / "dc.json", [WASHINGTON])
    _write_json(root / "cities" / "us" / "va.json", {"arlington": ARLINGTON_VA})
    _write_json(root / "cities" / "us" / "ny.json", [NEW_YORK])
    _write_json(root / "cities" / "us" / "ca.json", [LOS_ANGELES])
    _write_json(root / "cities" / "us" / "tx.json", [ARLINGTON_TX])
    _write_json(root / "cities" / "gb.json", [LONDON, EDINBURGH, {"name": "Nowhere"}])

    _write_json(root / "divisions" / "gb.json", GB_DIVISIONS)
    _write_json(root / "translations" / "us.json", US_TRANSLATIONS)
    _write_json(root / "geodata" / "gb.json", GB_GEOJSON)
    (root / "flags").mkdir(parents=True, exist_ok=True)
    (root / "flags" / "us.svg").write_text(US_FLAG, encoding="utf-8")
    return root


@pytest.fixture
def cache() -> DatasetCache:
    return DatasetCache()


@pytest.fixture
def loader(resource_root: Path, cache: DatasetCache) -> CountryLoader:
    return CountryLoader(DirectorySource(resource_root), cache=cache)


@pytest.fixture
def resolver(loader: CountryLoader) -> GeoResolver:
    return GeoResolver(loader)


@pytest.fixture(autouse=True)
def _isolated_default_loader():
    reset_default_loader()
    yield
    reset_default_loader()
