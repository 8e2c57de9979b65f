"""Domain errors that cross the orchestrator boundary.

Callers receive either a complete ValuationResult or one of exactly two
fatal error kinds. Everything else (transient provider errors, open
breakers, malformed records, cache failures) is absorbed and logged.
"""

from enum import Enum


class ErrorKind(Enum):
    """Distinguishable kinds of total valuation failure."""

    NO_PROVIDERS_AVAILABLE = "no_providers_available"
    NO_DATA_AVAILABLE = "no_data_available"


class ValuationError(Exception):
    """Base exception for total valuation failure."""

    kind: ErrorKind

    def __init__(self, message: str, query: object | None = None) -> None:
        super().__init__(message)
        self.query = query


class NoProvidersAvailableError(ValuationError):
    """Every configured provider is excluded (breaker open or none registered)."""

    kind = ErrorKind.NO_PROVIDERS_AVAILABLE


class NoDataAvailableError(ValuationError):
    """Providers were queried but no usable observations came back."""

    kind = ErrorKind.NO_DATA_AVAILABLE
