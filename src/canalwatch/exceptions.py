"""
Exceptions for canalwatch operations.
"""


class CanalWatchError(Exception):
    """Base exception for canalwatch errors."""

    pass


class StoreError(CanalWatchError):
    """Base exception for reading store errors."""

    pass


class StoreUnavailableError(StoreError):
    """The reading store client could not be created (missing or bad configuration)."""

    pass


class StoreQueryError(StoreError):
    """A single query against the reading store failed."""

    pass


class DashboardError(CanalWatchError):
    """Base exception for errors talking to the dashboard JSON API."""

    pass


class DashboardConnectionError(DashboardError):
    """Error connecting to the dashboard API."""

    pass


class DashboardQueryError(DashboardError):
    """Unexpected response from the dashboard API."""

    pass
