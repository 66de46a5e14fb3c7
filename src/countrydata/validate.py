"""Consistency checks over a resource tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .errors import CountryDataError, ValidationError
from .loader import LONGLIST, SHORTLIST, CountryLoader
from .models import Country


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "infos": list(self.infos),
        }


class DatasetValidator:
    """Checks that every listed country hydrates and its side tables parse."""

    def __init__(self, loader: CountryLoader) -> None:
        self.loader = loader

    def run(self) -> ValidationReport:
        report = ValidationReport()
        self._validate_list(report, SHORTLIST)
        longlist = self._validate_list(report, LONGLIST)
        countries = self._validate_records(report, longlist)
        self._validate_unique_codes(report, countries)
        self._validate_bounds(report, countries)
        self._validate_cities(report, countries)
        return report

    def _validate_list(self, report: ValidationReport, variant: str) -> Mapping[str, Any]:
        try:
            records = self.loader.countries(longlist=variant == LONGLIST)
        except CountryDataError as exc:
            report.add_error(f"Failed loading {variant}: {exc}")
            return {}
        report.add_info(f"Loaded {len(records)} {variant} records")
        return records

    def _validate_records(
        self,
        report: ValidationReport,
        records: Mapping[str, Any],
    ) -> list[Country]:
        countries: list[Country] = []
        for key, raw in records.items():
            try:
                country = Country(raw, resources=self.loader)
            except ValidationError as exc:
                report.add_error(f"{LONGLIST} entry '{key}' is invalid: {exc}")
                continue
            if str(key).lower() != country.code:
                report.add_warning(
                    f"{LONGLIST} key '{key}' does not match alpha-2 code '{country.iso_alpha2}'"
                )
            countries.append(country)
        return countries

    def _validate_unique_codes(self, report: ValidationReport, countries: Iterable[Country]) -> None:
        seen_alpha2: dict[str, int] = {}
        seen_alpha3: dict[str, int] = {}
        for country in countries:
            alpha2 = str(country.iso_alpha2).upper()
            alpha3 = str(country.iso_alpha3).upper()
            seen_alpha2[alpha2] = seen_alpha2.get(alpha2, 0) + 1
            seen_alpha3[alpha3] = seen_alpha3.get(alpha3, 0) + 1
        for code, count in sorted(seen_alpha2.items()):
            if count > 1:
                report.add_error(f"Duplicate alpha-2 code {code} ({count} records)")
        for code, count in sorted(seen_alpha3.items()):
            if count > 1:
                report.add_error(f"Duplicate alpha-3 code {code} ({count} records)")

    def _validate_bounds(self, report: ValidationReport, countries: Iterable[Country]) -> None:
        missing = sorted(str(country.iso_alpha2) for country in countries if not country.has_bounds)
        if missing:
            report.add_warning(
                "Countries without a full bounding box (coordinate lookups treat them as "
                "world-wide): " + ", ".join(missing)
            )

    def _validate_cities(self, report: ValidationReport, countries: Iterable[Country]) -> None:
        with_cities = 0
        total = 0
        for country in countries:
            try:
                index = self.loader.cities(country.code)
            except CountryDataError as exc:
                report.add_error(f"Failed loading cities for {country.iso_alpha2}: {exc}")
                continue
            if len(index):
                with_cities += 1
                total += len(index)
        report.add_info(f"Loaded {total} cities across {with_cities} countries")


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."
