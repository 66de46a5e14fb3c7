"""Exception taxonomy for dataset loading and record construction."""

from __future__ import annotations

from typing import Sequence


class CountryDataError(Exception):
    """Base class for every error raised by countrydata."""


class NotFoundError(CountryDataError, LookupError):
    """Raised when a requested identifier has no matching dataset."""

    def __init__(self, message: str, identifier: str | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier

    @classmethod
    def invalid_country(cls, code: str | None = None) -> NotFoundError:
        return cls(
            "Country code may be misspelled, invalid, or data not found on server!",
            identifier=code,
        )


class MalformedDataError(CountryDataError, ValueError):
    """Raised when a resource exists but cannot be parsed into the expected shape."""


class ValidationError(CountryDataError, ValueError):
    """Raised when a record is missing mandatory fields."""

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


class SourceUnavailableError(CountryDataError):
    """Raised when a byte source cannot be reached."""
