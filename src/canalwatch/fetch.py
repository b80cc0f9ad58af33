"""
Per-location reading fetchers.

Both fetchers resolve a canonical location key to its stored-name variants
and walk them in order, stopping at the first variant that returns any
records. Results from different variants are never merged or compared.

    fetch_latest_reading()   newest reading for one location
    fetch_history()          readings within a lookback window, oldest first

A failed query for one variant is logged on the ``canalwatch.fetch`` logger
with ``location``, ``variant`` and ``error`` attributes, and the walk moves
on to the next variant as if that one had returned nothing.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Tuple

from .exceptions import StoreQueryError, StoreUnavailableError
from .locations import name_variants
from .models import NormalizedReading, normalize_reading
from .query import DistinctLocationsQuery, ReadingQuery
from .store import ReadingStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_HOURS = 1

_LEADING_INT = re.compile(r"\s*\+?(\d+)")


def coerce_hours(value: Any, default: int = DEFAULT_HISTORY_HOURS) -> int:
    """
    Coerce a lookback value to a positive whole number of hours.

    The leading integer of the value is used ("2.5" gives 2). Absent,
    non-numeric, zero and negative values fall back to ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            hours = int(value)
        except (ValueError, OverflowError):
            return default
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return default
        hours = int(match.group(1))
    return hours if hours > 0 else default


async def _first_matching_variant(
    location_key: str,
    store: ReadingStore,
    build_query: Callable[[str], ReadingQuery],
) -> Tuple[Optional[str], List[Any]]:
    """
    Query each name variant in order and return the first non-empty result.

    Returns:
        (matched variant, records), or (None, []) if no variant matched
    """
    for variant in name_variants(location_key):
        query = build_query(variant)
        try:
            records = await store.query(query)
        except StoreQueryError as e:
            logger.warning(
                f"Error querying location {variant!r} for {location_key!r}: {e}",
                extra={"location": location_key, "variant": variant, "error": str(e)},
            )
            continue

        if records:
            return variant, records

    return None, []


async def _log_available_locations(store: ReadingStore) -> None:
    try:
        locations = await store.query(DistinctLocationsQuery())
    except StoreQueryError as e:
        logger.debug(f"Error checking available locations: {e}")
        return
    if locations:
        logger.debug(f"Available locations in store: {locations}")


async def fetch_latest_reading(
    location_key: str,
    store: Optional[ReadingStore],
) -> Optional[NormalizedReading]:
    """
    Fetch the most recent reading for one location.

    Args:
        location_key: Canonical location key (e.g. "dows-lake")
        store: Reading store, or None when no store is configured

    Returns:
        The newest NormalizedReading under the first name variant that has
        any data, or None if no variant has data

    Raises:
        StoreUnavailableError: If no store is configured

    Examples:
        >>> reading = await fetch_latest_reading("fifth-avenue", store)
        >>> reading.location
        'fifth-avenue'
    """
    if store is None:
        raise StoreUnavailableError("Reading store not initialized")

    variant, records = await _first_matching_variant(
        location_key, store, ReadingQuery.latest
    )
    if variant is not None:
        logger.debug(f"Found data for location: {variant} (searched as: {location_key})")
        return normalize_reading(records[0])

    if logger.isEnabledFor(logging.DEBUG):
        await _log_available_locations(store)
    logger.debug(f"No data found for location: {location_key}")
    return None


async def fetch_history(
    location_key: str,
    hours: Any = DEFAULT_HISTORY_HOURS,
    store: Optional[ReadingStore] = None,
    now: Optional[datetime] = None,
) -> List[NormalizedReading]:
    """
    Fetch readings for one location within a lookback window.

    History degrades gracefully: an empty list is returned when nothing
    matches, when every variant query fails, or when no store is configured.

    Args:
        location_key: Canonical location key
        hours: Lookback window in hours (coerced with :func:`coerce_hours`)
        store: Reading store, or None when no store is configured
        now: Reference instant (default: current UTC time)

    Returns:
        List of NormalizedReading ordered oldest to newest
    """
    if store is None:
        logger.warning(f"Reading store not initialized; no history for {location_key!r}")
        return []

    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=coerce_hours(hours))

    variant, records = await _first_matching_variant(
        location_key, store, lambda name: ReadingQuery.history(name, cutoff)
    )
    if variant is not None:
        logger.debug(
            f"Found {len(records)} readings for {variant} since {cutoff.isoformat()}"
        )

    return [reading for reading in map(normalize_reading, records) if reading is not None]
