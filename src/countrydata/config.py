"""Typed configuration loader for `countrydata.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .cache import DatasetCache
from .loader import CountryLoader
from .resolver import DEFAULT_CANDIDATES, DEFAULT_MAX_CITY_DISTANCE_KM, GeoResolver
from .sources import DirectorySource, HttpSource, ResourceSource

SOURCE_KINDS = ("directory", "http")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    return _str(value, field_name)


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class SourceConfig:
    kind: str
    root: Path | None
    base_url: str | None
    request_timeout_s: float
    user_agent: str
    max_retries: int
    retry_backoff_s: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> SourceConfig:
        kind = _str(raw.get("kind", "directory"), "source.kind").casefold()
        if kind not in SOURCE_KINDS:
            raise ValueError("source.kind must be one of: " + ", ".join(SOURCE_KINDS))

        root_raw = raw.get("root", "resources" if kind == "directory" else None)
        root = None if root_raw is None else _path_from_cfg(root_raw, "source.root", root_dir)
        base_url = _optional_str(raw.get("base_url"), "source.base_url")
        if kind == "http" and base_url is None:
            raise ValueError("source.base_url is required when source.kind is 'http'")

        request_timeout_s = _float(raw.get("request_timeout_s", 10.0), "source.request_timeout_s")
        max_retries = _int(raw.get("max_retries", 3), "source.max_retries")
        retry_backoff_s = _float(raw.get("retry_backoff_s", 1.0), "source.retry_backoff_s")
        if request_timeout_s <= 0:
            raise ValueError("source.request_timeout_s must be > 0")
        if max_retries < 0:
            raise ValueError("source.max_retries must be >= 0")
        if retry_backoff_s <= 0:
            raise ValueError("source.retry_backoff_s must be > 0")

        return cls(
            kind=kind,
            root=root,
            base_url=base_url,
            request_timeout_s=request_timeout_s,
            user_agent=_str(raw.get("user_agent", "countrydata"), "source.user_agent"),
            max_retries=max_retries,
            retry_backoff_s=retry_backoff_s,
        )


@dataclass(frozen=True, slots=True)
class GeoConfig:
    candidate_countries: tuple[str, ...]
    max_city_distance_km: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> GeoConfig:
        candidates_raw = raw.get("candidate_countries")
        candidates = (
            DEFAULT_CANDIDATES
            if candidates_raw is None
            else tuple(
                code.upper() for code in _str_list(candidates_raw, "geo.candidate_countries")
            )
        )
        if not candidates:
            raise ValueError("geo.candidate_countries must not be empty")
        for idx, code in enumerate(candidates):
            if len(code) != 2 or not code.isalpha():
                raise ValueError(f"geo.candidate_countries[{idx}] must be an ISO alpha-2 code")

        max_city_distance_km = _float(
            raw.get("max_city_distance_km", DEFAULT_MAX_CITY_DISTANCE_KM),
            "geo.max_city_distance_km",
        )
        if max_city_distance_km < 0:
            raise ValueError("geo.max_city_distance_km must be >= 0")
        return cls(candidate_countries=candidates, max_city_distance_km=max_city_distance_km)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str
    file: Path | None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> LoggingConfig:
        level = _str(raw.get("level", "INFO"), "logging.level").upper()
        if level not in LOG_LEVELS:
            raise ValueError("logging.level must be one of: " + ", ".join(LOG_LEVELS))
        file_raw = raw.get("file")
        return cls(
            level=level,
            file=None if file_raw is None else _path_from_cfg(file_raw, "logging.file", root_dir),
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path | None
    source: SourceConfig
    geo: GeoConfig
    logging: LoggingConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path | None, root_dir: Path) -> AppConfig:
        return cls(
            source_path=source_path,
            source=SourceConfig.from_mapping(_mapping(raw.get("source"), "source"), root_dir),
            geo=GeoConfig.from_mapping(_mapping(raw.get("geo"), "geo")),
            logging=LoggingConfig.from_mapping(_mapping(raw.get("logging"), "logging"), root_dir),
        )

    @classmethod
    def default(cls, root_dir: str | Path = ".") -> AppConfig:
        """Settings used when no config file is given; resources live under ``root_dir``."""
        return cls.from_mapping({}, None, Path(root_dir).resolve())


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path, cfg_path.parent)


def build_source(cfg: AppConfig) -> ResourceSource:
    source = cfg.source
    if source.kind == "http":
        return HttpSource(
            str(source.base_url),
            request_timeout_s=source.request_timeout_s,
            user_agent=source.user_agent,
            max_retries=source.max_retries,
            retry_backoff_s=source.retry_backoff_s,
        )
    if source.root is None:
        raise ValueError("source.root is required when source.kind is 'directory'")
    return DirectorySource(source.root)


def build_loader(cfg: AppConfig, cache: DatasetCache | None = None) -> CountryLoader:
    return CountryLoader(build_source(cfg), cache=cache)


def build_resolver(loader: CountryLoader, cfg: AppConfig) -> GeoResolver:
    return GeoResolver(
        loader,
        candidates=cfg.geo.candidate_countries,
        max_city_distance_km=cfg.geo.max_city_distance_km,
    )
