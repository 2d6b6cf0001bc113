"""Exception hierarchy for the borrower monitor."""
from __future__ import annotations


class MonitorError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(MonitorError, ValueError):
    """Configuration is missing or invalid. Fatal at startup."""


class RpcError(MonitorError, RuntimeError):
    """Transport, timeout or JSON-RPC level failure talking to a node."""


class CatalogBuildError(MonitorError):
    """An asset lookup failed while building the asset catalog."""


class PriceFetchError(MonitorError):
    """A price feed could not be read."""


class BorrowerIndexError(MonitorError):
    """Chain head or event log query failed; the block cursor is kept."""


class AccountLookupError(MonitorError):
    """Principal, balance or collateral lookup failed for one account."""

    def __init__(self, account: str, cause: Exception) -> None:
        super().__init__(f"Lookup failed for {account}: {cause}")
        self.account = account
        self.cause = cause


class QueryError(MonitorError):
    """Snapshot for the requested instance is missing or unserializable."""
