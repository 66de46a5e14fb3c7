"""Predicate filtering over sequences of country records.

Ordering operators compare the *textual* form of both sides, so ``"840" >
"800"`` holds but so does ``"9" > "840"``. Fixed-width ISO numeric codes
compare correctly under that rule; variable-width numbers do not.
"""

from __future__ import annotations

from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence, overload

from .models import Country, Record
from .paths import get_path


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Operator(Enum):
    EQ = "=="
    NE = "!="
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="

    @classmethod
    def parse(cls, value: str | Operator) -> Operator:
        if isinstance(value, Operator):
            return value
        if isinstance(value, str):
            symbol = value.strip()
            symbol = _OPERATOR_ALIASES.get(symbol, symbol)
            for member in cls:
                if member.value == symbol:
                    return member
        raise ValueError(f"Unsupported filter operator: {value!r}")

    def evaluate(self, resolved: Any, expected: Any) -> bool:
        if self is Operator.EQ:
            return resolved == expected
        if self is Operator.NE:
            return resolved != expected
        left, right = str(resolved), str(expected)
        if self is Operator.LT:
            return left < right
        if self is Operator.GT:
            return left > right
        if self is Operator.LE:
            return left <= right
        return left >= right


_OPERATOR_ALIASES = {"=": "==", "<>": "!="}

# Paths answered by a typed accessor rather than a raw-tree lookup.
DERIVED_PATHS: dict[str, Callable[[Country], Any]] = {
    "name": attrgetter("name"),
    "official_name": attrgetter("official_name"),
    "native_name": lambda country: country.native_name(),
    "native_official_name": lambda country: country.native_official_name(),
    "name.native.eng.common": lambda country: get_path(country.native_names, "eng.common"),
    "iso_alpha2": attrgetter("iso_alpha2"),
    "iso_alpha3": attrgetter("iso_alpha3"),
    "iso_numeric": attrgetter("iso_numeric"),
    "iso_3166_1_numeric": attrgetter("iso_numeric"),
    "region": attrgetter("region"),
    "geo.region": attrgetter("region"),
    "subregion": attrgetter("subregion"),
    "world_region": attrgetter("world_region"),
    "capital": attrgetter("capital"),
    "demonym": attrgetter("demonym"),
    "calling_code": attrgetter("calling_code"),
    "currency_code": lambda country: next(iter(country.currencies), None),
    "language": lambda country: country.language(),
}


def resolve(record: Any, path: str) -> Any:
    """Value of ``path`` on a hydrated record or a raw attribute mapping."""
    if isinstance(record, Country):
        accessor = DERIVED_PATHS.get(path)
        if accessor is not None:
            return accessor(record)
        return record.get(path)
    if isinstance(record, Record):
        return record.get(path)
    return get_path(record, path)


def where(
    records: Iterable[Any],
    path: str,
    operator: str | Operator | Any,
    value: Any = MISSING,
) -> list[Any]:
    """Records whose value at ``path`` satisfies ``operator value``.

    Called with three arguments, the third is the expected value and the
    operator is equality. Records that do not resolve ``path`` never match.
    """
    op, expected = _predicate(operator, value)
    return [record for record in records if _matches(record, path, op, expected)]


def where_mapping(
    records: Mapping[str, Any],
    path: str,
    operator: str | Operator | Any,
    value: Any = MISSING,
) -> dict[str, Any]:
    """Like ``where`` over a keyed mapping; keys and insertion order are kept."""
    op, expected = _predicate(operator, value)
    return {key: item for key, item in records.items() if _matches(item, path, op, expected)}


def _predicate(operator: Any, value: Any) -> tuple[Operator, Any]:
    if value is MISSING:
        if isinstance(operator, Operator):
            raise ValueError(f"Operator {operator.value!r} needs a value to compare against")
        return Operator.EQ, operator
    return Operator.parse(operator), value


def _matches(record: Any, path: str, op: Operator, expected: Any) -> bool:
    resolved = resolve(record, path)
    if resolved is None:
        return False
    return op.evaluate(resolved, expected)


class CountryCollection(Sequence[Country]):
    """Immutable, chainable sequence of countries."""

    def __init__(self, countries: Iterable[Country]) -> None:
        self._countries = tuple(countries)

    @overload
    def __getitem__(self, index: int) -> Country: ...

    @overload
    def __getitem__(self, index: slice) -> CountryCollection: ...

    def __getitem__(self, index: int | slice) -> Country | CountryCollection:
        if isinstance(index, slice):
            return CountryCollection(self._countries[index])
        return self._countries[index]

    def __len__(self) -> int:
        return len(self._countries)

    def __iter__(self) -> Iterator[Country]:
        return iter(self._countries)

    def __repr__(self) -> str:
        return f"CountryCollection({self.codes()!r})"

    def where(self, path: str, operator: str | Operator | Any, value: Any = MISSING) -> CountryCollection:
        return CountryCollection(where(self._countries, path, operator, value))

    def codes(self) -> list[str]:
        return [str(country.iso_alpha2) for country in self._countries]

    def first(self) -> Country | None:
        return self._countries[0] if self._countries else None
