"""
Safety dashboard backend for a canal skating surface.

Resolves location naming variants, normalizes aggregated sensor readings
and derives an overall safety status across the monitored locations.
"""

try:
    from importlib import metadata

    __version__ = metadata.version(__name__)
except Exception:
    __version__ = "unknown"

from .config import Settings, configure_logging
from .exceptions import (
    CanalWatchError,
    DashboardConnectionError,
    DashboardError,
    DashboardQueryError,
    StoreError,
    StoreQueryError,
    StoreUnavailableError,
)
from .fetch import coerce_hours, fetch_history, fetch_latest_reading
from .locations import (
    CANONICAL_LOCATIONS,
    DISPLAY_NAMES,
    display_name,
    name_variants,
    normalize_location,
)
from .models import (
    NormalizedReading,
    StatusSummary,
    SystemStatus,
    normalize_reading,
    readings_to_dataframe,
)
from .query import ReadingQuery
from .status import (
    classify_safety,
    derive_system_status,
    fetch_all_latest,
    get_system_status,
    summarize,
)
from .store import CosmosReadingStore, ReadingStore, create_store

__all__ = [
    "__version__",
    "Settings",
    "configure_logging",
    "CanalWatchError",
    "DashboardConnectionError",
    "DashboardError",
    "DashboardQueryError",
    "StoreError",
    "StoreQueryError",
    "StoreUnavailableError",
    "coerce_hours",
    "fetch_history",
    "fetch_latest_reading",
    "CANONICAL_LOCATIONS",
    "DISPLAY_NAMES",
    "display_name",
    "name_variants",
    "normalize_location",
    "NormalizedReading",
    "StatusSummary",
    "SystemStatus",
    "normalize_reading",
    "readings_to_dataframe",
    "ReadingQuery",
    "classify_safety",
    "derive_system_status",
    "fetch_all_latest",
    "get_system_status",
    "summarize",
    "CosmosReadingStore",
    "ReadingStore",
    "create_store",
]
