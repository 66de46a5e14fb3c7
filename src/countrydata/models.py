"""Country and city records backed by dot-path attribute trees."""

from __future__ import annotations

import copy
import json
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

from shapely.geometry import shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from .errors import MalformedDataError, ValidationError
from .geo import Bounds, coerce_float, haversine_km
from .paths import PathLike, get_path, set_path

_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


class ResourceProvider(Protocol):
    """Side resources joined to a country by its lowercased alpha-2 code."""

    def divisions(self, country_code: str) -> Mapping[str, Any] | None: ...

    def flag(self, country_code: str) -> str | None: ...

    def geojson(self, country_code: str) -> str | None: ...

    def translations(self, country_code: str) -> Mapping[str, Any] | None: ...

    def timezones(self, country_code: str) -> list[str]: ...


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _in_range(value: float, limit: float) -> bool:
    return math.isfinite(value) and -limit <= value <= limit


def _first_key(mapping: Any) -> Any:
    if isinstance(mapping, Mapping):
        for key in mapping:
            return key
    return None


def _first_item(value: Any) -> Any:
    if isinstance(value, list) and value:
        return value[0]
    return None


def _list_or_none(value: Any) -> list[Any] | None:
    return value if isinstance(value, list) else None


def _require_mapping(value: Any, owner: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"Expected mapping of attributes for {owner}")
    return value


def slugify(value: str) -> str:
    folded = unicodedata.normalize("NFKD", value)
    without_marks = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return _SLUG_SEPARATOR_RE.sub("-", without_marks.casefold()).strip("-")


@dataclass(frozen=True, slots=True)
class Translation:
    common: str
    official: str

    @classmethod
    def from_mapping(cls, raw: Any) -> Translation | None:
        if not isinstance(raw, Mapping):
            return None
        common = raw.get("common")
        official = raw.get("official")
        if not isinstance(common, str) or not isinstance(official, str):
            return None
        return cls(common=common, official=official)

    def to_dict(self) -> dict[str, str]:
        return {"common": self.common, "official": self.official}


class Record:
    """Typed wrapper around an exclusively owned attribute tree.

    Writes go through copy-on-write ``set_path`` and swap the record's own
    tree reference, so a tree handed in at construction (often a cached
    dataset entry) is never modified.
    """

    def __init__(self, attributes: Mapping[str, Any]) -> None:
        self._attributes = _require_mapping(attributes, type(self).__name__)
        self._validate()

    @property
    def attributes(self) -> Mapping[str, Any]:
        return self._attributes

    def set_attributes(self, attributes: Mapping[str, Any]) -> Record:
        """Replace the whole tree; the previous tree is kept if validation fails."""
        previous = self._attributes
        self._attributes = _require_mapping(attributes, type(self).__name__)
        try:
            self._validate()
        except ValidationError:
            self._attributes = previous
            raise
        return self

    def get(self, path: PathLike, default: Any = None) -> Any:
        return get_path(self._attributes, path, default)

    def set(self, path: PathLike, value: Any) -> Record:
        return self.set_attributes(set_path(self._attributes, path, value))

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self._attributes))

    def _validate(self) -> None:
        raise NotImplementedError


class Country(Record):
    """Hydrated country record.

    Mandatory fields are checked once at construction: common and official
    name, one native common/official pair and the ISO alpha-2/alpha-3 codes.
    Everything else is an optional projection that returns ``None`` (or an
    empty mapping for currencies and languages) when absent.
    """

    def __init__(
        self,
        attributes: Mapping[str, Any],
        resources: ResourceProvider | None = None,
    ) -> None:
        self._resources = resources
        super().__init__(attributes)

    def _validate(self) -> None:
        missing: list[str] = []
        if self.name is None:
            missing.append("name.common")
        if self.official_name is None:
            missing.append("name.official")
        if self.native_name() is None:
            missing.append("name.native.*.common")
        if self.native_official_name() is None:
            missing.append("name.native.*.official")
        alpha2 = self.iso_alpha2
        if alpha2 is None or len(alpha2.strip()) != 2:
            missing.append("iso_3166_1_alpha2")
        alpha3 = self.iso_alpha3
        if alpha3 is None or len(alpha3.strip()) != 3:
            missing.append("iso_3166_1_alpha3")
        if missing:
            raise ValidationError(
                "Missing mandatory country attributes: " + ", ".join(missing),
                missing=missing,
            )

    def __repr__(self) -> str:
        return f"Country({self.iso_alpha2!r})"

    @property
    def code(self) -> str:
        """Lowercased alpha-2 code used to address side resources."""
        return str(self.iso_alpha2).strip().lower()

    # Names

    @property
    def name(self) -> str | None:
        name = self.get("name")
        if isinstance(name, Mapping):
            return _text(name.get("common"))
        return _text(name)

    @property
    def official_name(self) -> str | None:
        name = self.get("name")
        if isinstance(name, Mapping):
            official = _text(name.get("official"))
            if official is not None:
                return official
        return _text(self.get("official_name"))

    @property
    def native_names(self) -> Mapping[str, Any] | None:
        name = self.get("name")
        if not isinstance(name, Mapping):
            return None
        natives = name.get("native")
        return natives if isinstance(natives, Mapping) and natives else None

    def native_name(self, language_code: str | None = None) -> str | None:
        """Native common name in the given language, else the first one listed."""
        return self._native_field("common", "native_name", language_code)

    def native_official_name(self, language_code: str | None = None) -> str | None:
        return self._native_field("official", "native_official_name", language_code)

    def _native_field(self, field: str, alias: str, language_code: str | None) -> str | None:
        natives = self.native_names or {}
        if language_code:
            value = _text(get_path(natives, [language_code.lower(), field]))
            if value is not None:
                return value
        first = _first_key(natives)
        if first is not None:
            value = _text(get_path(natives, [first, field]))
            if value is not None:
                return value
        return _text(self.get(alias))

    def translations(self) -> dict[str, Translation]:
        """All known names keyed by language code, sorted by code.

        Native names override the translation resource and the English entry
        built from the common/official names overrides both.
        """
        merged: dict[str, Translation] = {}
        extra = self._resources.translations(self.code) if self._resources is not None else None
        for source in (extra or {}, self.native_names or {}):
            for language, raw in source.items():
                translation = Translation.from_mapping(raw)
                if translation is not None:
                    merged[language] = translation
        merged["eng"] = Translation(common=self.name or "", official=self.official_name or "")
        return dict(sorted(merged.items()))

    def translation(self, language_code: str | None = None) -> Translation:
        translations = self.translations()
        if language_code and language_code in translations:
            return translations[language_code]
        return next(iter(translations.values()))

    @property
    def demonym(self) -> str | None:
        return self.get("demonym")

    @property
    def capital(self) -> str | None:
        return self.get("capital")

    @property
    def alt_spellings(self) -> list[str] | None:
        return _list_or_none(self.get("alt_spellings"))

    # Codes

    @property
    def iso_alpha2(self) -> str | None:
        return _text(self.get("iso_3166_1_alpha2"))

    @property
    def iso_alpha3(self) -> str | None:
        return _text(self.get("iso_3166_1_alpha3"))

    @property
    def iso_numeric(self) -> str | None:
        return self.get("iso_3166_1_numeric")

    @property
    def tlds(self) -> list[str] | None:
        return _list_or_none(self.get("tld"))

    @property
    def tld(self) -> str | None:
        return _first_item(self.get("tld"))

    # Currencies and languages

    @property
    def currencies(self) -> Mapping[str, Any]:
        currencies = self.get("currency")
        return currencies if isinstance(currencies, Mapping) else {}

    def currency(self, code: str | None = None) -> Mapping[str, Any] | None:
        """Currency details for ``code``, else for the first listed currency."""
        currencies = self.currencies
        if code:
            details = currencies.get(code.upper())
            if details:
                return details
        first = _first_key(currencies)
        return currencies[first] if first is not None else None

    @property
    def languages(self) -> Mapping[str, str]:
        languages = self.get("languages")
        return languages if isinstance(languages, Mapping) else {}

    def language(self, code: str | None = None) -> str | None:
        languages = self.languages
        if code:
            language = languages.get(code.lower())
            if language:
                return language
        first = _first_key(languages)
        return languages[first] if first is not None else None

    # Geography

    @property
    def geodata(self) -> Mapping[str, Any] | None:
        geo = self.get("geo")
        return geo if isinstance(geo, Mapping) else None

    @property
    def continent(self) -> list[str] | None:
        return _list_or_none(self.get("geo.continent"))

    @property
    def uses_postal_code(self) -> bool | None:
        return self.get("geo.postal_code")

    @property
    def latitude(self) -> str | None:
        return self.get("geo.latitude")

    @property
    def longitude(self) -> str | None:
        return self.get("geo.longitude")

    @property
    def latitude_desc(self) -> str | None:
        return self.get("geo.latitude_desc")

    @property
    def longitude_desc(self) -> str | None:
        return self.get("geo.longitude_desc")

    @property
    def min_latitude(self) -> str | None:
        return self.get("geo.min_latitude")

    @property
    def max_latitude(self) -> str | None:
        return self.get("geo.max_latitude")

    @property
    def min_longitude(self) -> str | None:
        return self.get("geo.min_longitude")

    @property
    def max_longitude(self) -> str | None:
        return self.get("geo.max_longitude")

    @property
    def has_bounds(self) -> bool:
        return all(
            coerce_float(value) is not None
            for value in (
                self.min_latitude,
                self.max_latitude,
                self.min_longitude,
                self.max_longitude,
            )
        )

    @property
    def bounds(self) -> Bounds:
        """Recorded bounding box; missing sides widen to the whole globe."""
        try:
            return Bounds.from_values(
                min_latitude=self.min_latitude,
                min_longitude=self.min_longitude,
                max_latitude=self.max_latitude,
                max_longitude=self.max_longitude,
            )
        except ValueError as exc:
            raise MalformedDataError(f"Country {self.iso_alpha2}: {exc}") from exc

    def bounding_box(self) -> BaseGeometry:
        return self.bounds.as_box()

    @property
    def area(self) -> float | None:
        return self.get("geo.area")

    @property
    def region(self) -> str | None:
        return self.get("geo.region")

    @property
    def subregion(self) -> str | None:
        return self.get("geo.subregion")

    @property
    def world_region(self) -> str | None:
        return self.get("geo.world_region")

    @property
    def region_code(self) -> str | None:
        return self.get("geo.region_code")

    @property
    def subregion_code(self) -> str | None:
        return self.get("geo.subregion_code")

    @property
    def is_landlocked(self) -> bool | None:
        return self.get("geo.landlocked")

    @property
    def borders(self) -> list[str] | None:
        return _list_or_none(self.get("geo.borders"))

    @property
    def independent(self) -> str | None:
        return self.get("geo.independent")

    # Dialling

    @property
    def calling_codes(self) -> list[str] | None:
        return _list_or_none(self.get("dialling.calling_code")) or _list_or_none(
            self.get("calling_code")
        )

    @property
    def calling_code(self) -> str | None:
        return _first_item(self.get("dialling.calling_code")) or _first_item(
            self.get("calling_code")
        )

    @property
    def national_prefix(self) -> str | None:
        return self.get("dialling.national_prefix")

    @property
    def national_number_lengths(self) -> list[int] | None:
        return _list_or_none(self.get("dialling.national_number_lengths"))

    @property
    def national_number_length(self) -> int | None:
        return _first_item(self.get("dialling.national_number_lengths"))

    @property
    def national_destination_code_lengths(self) -> list[int] | None:
        return _list_or_none(self.get("dialling.national_destination_code_lengths"))

    @property
    def national_destination_code_length(self) -> int | None:
        return _first_item(self.get("dialling.national_destination_code_lengths"))

    @property
    def international_prefix(self) -> str | None:
        return self.get("dialling.international_prefix")

    # Extra codes

    @property
    def extra(self) -> Mapping[str, Any] | None:
        extra = self.get("extra")
        return extra if isinstance(extra, Mapping) else None

    def extra_code(self, key: str) -> Any:
        """Any code from the ``extra`` block, e.g. ``fifa``, ``ioc`` or ``gaul``."""
        return self.get(["extra", key])

    @property
    def geonameid(self) -> int | None:
        return self.extra_code("geonameid")

    @property
    def fifa(self) -> str | None:
        return self.extra_code("fifa")

    @property
    def ioc(self) -> str | None:
        return self.extra_code("ioc")

    @property
    def fips(self) -> str | None:
        return self.extra_code("fips")

    @property
    def itu(self) -> str | None:
        return self.extra_code("itu")

    @property
    def address_format(self) -> str | None:
        return self.extra_code("address_format")

    @property
    def is_eu_member(self) -> bool | None:
        return self.extra_code("eu_member")

    @property
    def data_protection(self) -> str | None:
        return self.extra_code("data_protection")

    @property
    def vat_rates(self) -> Mapping[str, Any] | None:
        return self.extra_code("vat_rates")

    @property
    def emoji(self) -> str | None:
        return self.extra_code("emoji") or self.get("emoji")

    # Side resources

    def divisions(self) -> Mapping[str, Any] | None:
        if self._resources is None:
            return None
        return self._resources.divisions(self.code)

    def division(self, code: str) -> Mapping[str, Any] | None:
        divisions = self.divisions()
        if not divisions:
            return None
        return divisions.get(code)

    def flag(self) -> str | None:
        """SVG markup of the flag, if the resource tree has one."""
        if self._resources is None:
            return None
        return self._resources.flag(self.code)

    def geojson(self) -> str | None:
        if self._resources is None:
            return None
        return self._resources.geojson(self.code)

    def geometry(self) -> BaseGeometry | None:
        """Country outline parsed from the GeoJSON resource."""
        raw = self.geojson()
        if raw is None:
            return None
        try:
            return _geometry_from_geojson(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise MalformedDataError(
                f"Could not parse GeoJSON for country '{self.iso_alpha2}': {exc}"
            ) from exc

    def timezones(self) -> list[str]:
        if self._resources is None:
            return []
        return self._resources.timezones(self.code)


def _geometry_from_geojson(data: Any) -> BaseGeometry:
    kind = data.get("type")
    if kind == "FeatureCollection":
        shapes = [
            shape(feature["geometry"])
            for feature in data.get("features", [])
            if feature.get("geometry")
        ]
        if not shapes:
            raise ValueError("FeatureCollection holds no geometries")
        return unary_union(shapes)
    if kind == "Feature":
        return shape(data["geometry"])
    return shape(data)


class City(Record):
    """Hydrated city record.

    Coordinates accept both the long (``latitude``/``longitude``) and the
    short (``lat``/``lon``) spelling inside the ``geo`` block.
    """

    def _validate(self) -> None:
        missing: list[str] = []
        if _text(self.get("name")) is None:
            missing.append("name")
        if not isinstance(self.get("stateCode"), str):
            missing.append("stateCode")
        if not isinstance(self.get("state"), str):
            missing.append("state")
        latitude, longitude = self.latitude, self.longitude
        if latitude is None:
            missing.append("geo.latitude")
        if longitude is None:
            missing.append("geo.longitude")
        if missing:
            raise ValidationError(
                "Missing mandatory city attributes: " + ", ".join(missing),
                missing=missing,
            )
        if not _in_range(latitude, 90.0) or not _in_range(longitude, 180.0):
            raise ValidationError(f"City coordinates out of range: ({latitude}, {longitude})")

    def __repr__(self) -> str:
        return f"City({self.name!r}, {self.state_code!r})"

    @property
    def name(self) -> str:
        return self.get("name")

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def state_code(self) -> str:
        return self.get("stateCode")

    @property
    def state(self) -> str:
        return self.get("state")

    @property
    def county(self) -> str | None:
        return self.get("county")

    @property
    def metro(self) -> str | None:
        return self.get("metro")

    @property
    def population(self) -> int | None:
        return self.get("population")

    @property
    def latitude(self) -> float | None:
        value = coerce_float(self.get("geo.latitude"))
        return value if value is not None else coerce_float(self.get("geo.lat"))

    @property
    def longitude(self) -> float | None:
        value = coerce_float(self.get("geo.longitude"))
        return value if value is not None else coerce_float(self.get("geo.lon"))

    @property
    def timezone(self) -> str | None:
        return self.get("geo.timezone") or self.get("geo.tz")

    @property
    def coordinates(self) -> tuple[float, float]:
        return (float(self.latitude), float(self.longitude))

    @property
    def full_name(self) -> str:
        return f"{self.name}, {self.state}"

    @property
    def short_name(self) -> str:
        return f"{self.name}, {self.state_code}"

    def distance_to(self, other: City) -> float:
        return self.distance_to_coordinates(*other.coordinates)

    def distance_to_coordinates(self, latitude: float, longitude: float) -> float:
        return haversine_km(*self.coordinates, latitude, longitude)
