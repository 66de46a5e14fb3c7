"""CLI entrypoint for countrydata lookups."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import AppConfig, build_loader, build_resolver, load_config
from .errors import CountryDataError, NotFoundError
from .loader import CountryLoader
from .resolver import format_location
from .util import setup_logging, to_json, write_json
from .validate import DatasetValidator, format_report_lines

LOGGER = logging.getLogger("countrydata.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="countrydata",
        description="Country, division and city reference data lookups.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--config",
            default=None,
            help="Path to YAML config. Defaults to ./resources as a directory source.",
        )
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    country_p = subparsers.add_parser("country", help="Show one country.")
    add_common(country_p)
    country_p.add_argument("code", help="ISO 3166-1 alpha-2 code.")
    country_p.add_argument("--raw", action="store_true", help="Print the raw record.")

    countries_p = subparsers.add_parser("countries", help="List all countries.")
    add_common(countries_p)
    countries_p.add_argument("--longlist", action="store_true", help="Use the detailed list.")
    countries_p.add_argument(
        "--hydrate",
        action="store_true",
        help="Validate every record before printing it.",
    )

    where_p = subparsers.add_parser(
        "where",
        help="Filter the detailed list, e.g. `where geo.region == Europe`.",
    )
    add_common(where_p)
    where_p.add_argument("path", help="Dot path into the record.")
    where_p.add_argument("operator", help="One of ==, !=, <, >, <=, >= (string comparison).")
    where_p.add_argument("value")

    currencies_p = subparsers.add_parser("currencies", help="List currency codes.")
    add_common(currencies_p)
    currencies_p.add_argument("--longlist", action="store_true", help="Include currency details.")

    resolve_p = subparsers.add_parser("resolve", help="Resolve coordinates to a location.")
    add_common(resolve_p)
    resolve_p.add_argument("latitude", type=float)
    resolve_p.add_argument("longitude", type=float)
    resolve_p.add_argument("--hint", default=None, help="Country code to try first.")
    resolve_p.add_argument(
        "--max-distance",
        type=float,
        default=None,
        help="Max distance in km for a city match.",
    )

    find_p = subparsers.add_parser("find-city", help="Find a city by name.")
    add_common(find_p)
    find_p.add_argument("name")
    find_p.add_argument("country", help="ISO 3166-1 alpha-2 code.")
    find_p.add_argument("--state", default=None, help="Preferred state code.")

    nearby_p = subparsers.add_parser("nearby", help="Cities within a radius of a point.")
    add_common(nearby_p)
    nearby_p.add_argument("country", help="ISO 3166-1 alpha-2 code.")
    nearby_p.add_argument("latitude", type=float)
    nearby_p.add_argument("longitude", type=float)
    nearby_p.add_argument("--radius", type=float, required=True, help="Radius in km.")

    validate_p = subparsers.add_parser("validate", help="Check the resource tree.")
    add_common(validate_p)
    validate_p.add_argument("--report", default=None, help="Also write the report as JSON here.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config) if args.config else AppConfig.default(Path.cwd())
    setup_logging(cfg.logging.file, verbose=args.verbose, level=cfg.logging.level)
    return cfg


def _emit(payload: Any) -> None:
    sys.stdout.write(to_json(payload))
    sys.stdout.write("\n")


def _run_country(loader: CountryLoader, *, code: str, raw: bool) -> int:
    record = loader.country(code, hydrate=not raw)
    _emit(record if raw else record.to_dict())
    return 0


def _run_countries(loader: CountryLoader, *, longlist: bool, hydrate: bool) -> int:
    records = loader.countries(longlist=longlist, hydrate=hydrate)
    if hydrate:
        _emit({country.iso_alpha2: country.to_dict() for country in records})
    else:
        _emit(records)
    return 0


def _run_where(loader: CountryLoader, *, path: str, operator: str, value: str) -> int:
    matches = loader.where(path, operator, value)
    LOGGER.info("%d countries match %s %s %r", len(matches), path, operator, value)
    _emit(matches)
    return 0


def _run_resolve(
    loader: CountryLoader,
    cfg: AppConfig,
    *,
    latitude: float,
    longitude: float,
    hint: str | None,
    max_distance: float | None,
) -> int:
    location = build_resolver(loader, cfg).resolve_coordinates(
        latitude,
        longitude,
        max_city_distance_km=max_distance,
        country_code_hint=hint,
    )
    if location is None:
        LOGGER.error("No candidate country covers (%s, %s)", latitude, longitude)
        return 1
    payload = location.to_dict()
    payload["label"] = format_location(location)
    _emit(payload)
    return 0


def _run_find_city(
    loader: CountryLoader,
    cfg: AppConfig,
    *,
    name: str,
    country: str,
    state: str | None,
) -> int:
    city = build_resolver(loader, cfg).find_city(name, country, state)
    if city is None:
        LOGGER.error("No city matching %r in %s", name, country.upper())
        return 1
    _emit(city.to_dict())
    return 0


def _run_nearby(
    loader: CountryLoader,
    *,
    country: str,
    latitude: float,
    longitude: float,
    radius: float,
) -> int:
    matches = loader.within_radius(country, latitude, longitude, radius)
    _emit(
        [
            {"city": match.city.to_dict(), "distance_km": round(match.distance_km, 3)}
            for match in matches
        ]
    )
    return 0


def _run_validate(loader: CountryLoader, *, report_path: str | None) -> int:
    report = DatasetValidator(loader).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    if report_path:
        write_json(Path(report_path), report.to_dict())
        LOGGER.info("Wrote validation report to %s", report_path)
    return 0 if report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    loader = build_loader(cfg)
    command = str(args.command)
    if command == "country":
        return _run_country(loader, code=args.code, raw=bool(args.raw))
    if command == "countries":
        return _run_countries(loader, longlist=bool(args.longlist), hydrate=bool(args.hydrate))
    if command == "where":
        return _run_where(loader, path=args.path, operator=args.operator, value=args.value)
    if command == "currencies":
        _emit(loader.currencies(longlist=bool(args.longlist)))
        return 0
    if command == "resolve":
        return _run_resolve(
            loader,
            cfg,
            latitude=args.latitude,
            longitude=args.longitude,
            hint=args.hint,
            max_distance=args.max_distance,
        )
    if command == "find-city":
        return _run_find_city(loader, cfg, name=args.name, country=args.country, state=args.state)
    if command == "nearby":
        return _run_nearby(
            loader,
            country=args.country,
            latitude=args.latitude,
            longitude=args.longitude,
            radius=args.radius,
        )
    if command == "validate":
        return _run_validate(loader, report_path=args.report)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except NotFoundError as exc:
        LOGGER.error("%s", exc)
        return 1
    except (CountryDataError, ValueError) as exc:
        LOGGER.error("Command failed: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
