"""Byte sources the loader reads resources from.

A source addresses resources by a relative, ``/``-separated path such as
``data/us.json`` or ``cities/us/ca.json``. ``read_text`` returns ``None`` when
the resource does not exist; everything else that goes wrong is an error.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

import requests

from .errors import MalformedDataError, SourceUnavailableError

_RETRYABLE_HTTP_STATUS = {429, 500, 502, 503, 504}

_LOGGER = logging.getLogger("countrydata.sources")


class ResourceSource(ABC):
    """Read-only access to a resource tree."""

    @abstractmethod
    def read_text(self, relative_path: str) -> str | None:
        """Return the resource decoded as UTF-8, or ``None`` if it is absent."""

    @abstractmethod
    def list_dir(self, relative_path: str) -> list[str]:
        """Return sorted file names inside a directory resource, or ``[]``."""

    def describe(self) -> str:
        return type(self).__name__


class DirectorySource(ResourceSource):
    """Resource tree on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def read_text(self, relative_path: str) -> str | None:
        path = self._resolve(relative_path)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedDataError(f"Resource is not valid UTF-8: {path}") from exc

    def list_dir(self, relative_path: str) -> list[str]:
        path = self._resolve(relative_path)
        if not path.is_dir():
            return []
        return sorted(child.name for child in path.iterdir() if child.is_file())

    def describe(self) -> str:
        return f"directory {self.root}"

    def _resolve(self, relative_path: str) -> Path:
        parts = [part for part in relative_path.split("/") if part]
        if any(part in {".", ".."} for part in parts):
            raise ValueError(f"Relative resource path may not traverse upwards: {relative_path}")
        return self.root.joinpath(*parts)


class HttpSource(ResourceSource):
    """Resource tree served over HTTP(S) below ``base_url``.

    Directory listings are not available over plain HTTP, so partitioned
    city tables are only read from their single-file form.
    """

    def __init__(
        self,
        base_url: str,
        *,
        request_timeout_s: float = 10.0,
        user_agent: str = "countrydata",
        max_retries: int = 3,
        retry_backoff_s: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must be a non-empty URL")
        self.base_url = base_url.rstrip("/") + "/"
        self.request_timeout_s = request_timeout_s
        self._max_retries = max(int(max_retries), 0)
        self._retry_backoff_s = max(float(retry_backoff_s), 0.01)
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def read_text(self, relative_path: str) -> str | None:
        url = self.base_url + relative_path.lstrip("/")
        response = self._request_get(url)
        if response.status_code == 404:
            response.close()
            return None
        response.encoding = "utf-8"
        return response.text

    def list_dir(self, relative_path: str) -> list[str]:
        return []

    def describe(self) -> str:
        return f"http {self.base_url}"

    def _request_get(self, url: str) -> requests.Response:
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            try:
                response = self._session.get(url, timeout=self.request_timeout_s)
            except requests.RequestException as exc:
                raise SourceUnavailableError(f"Request for {url} failed: {exc}") from exc

            if response.status_code == 404:
                return response
            if response.status_code not in _RETRYABLE_HTTP_STATUS:
                return self._raise_for_status(response, url)
            if attempt >= self._max_retries:
                return self._raise_for_status(response, url)

            delay_s = self._compute_retry_delay_s(response=response, attempt=attempt)
            _LOGGER.warning(
                "Retryable response %s for %s; retrying in %.1fs (%d/%d)",
                response.status_code,
                url,
                delay_s,
                attempt + 1,
                self._max_retries,
            )
            response.close()
            time.sleep(delay_s)
        raise RuntimeError("Unreachable retry loop in HTTP source")

    @staticmethod
    def _raise_for_status(response: requests.Response, url: str) -> requests.Response:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise SourceUnavailableError(f"Request for {url} failed: {exc}") from exc
        return response

    def _compute_retry_delay_s(self, *, response: requests.Response, attempt: int) -> float:
        retry_after_s = _parse_retry_after_seconds(response.headers.get("Retry-After"))
        exponential_s = self._retry_backoff_s * (2**attempt)
        return min(max(exponential_s, retry_after_s), 300.0)


def _parse_retry_after_seconds(raw: str | None) -> float:
    if raw is None:
        return 0.0
    value = raw.strip()
    if not value:
        return 0.0
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    return max(parsed, 0.0)
