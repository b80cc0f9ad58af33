"""
System-wide safety status aggregation.
"""

import asyncio
from typing import Dict, Mapping, Optional, Sequence

from .fetch import fetch_latest_reading
from .locations import CANONICAL_LOCATIONS
from .models import NormalizedReading, StatusSummary, SystemStatus
from .store import ReadingStore

SAFE = "safe"
CAUTION = "caution"
UNSAFE = "unsafe"


def classify_safety(safety_status: Optional[str]) -> str:
    """
    Classify a reading's safety status into safe, caution or unsafe.

    Matching is case-insensitive. Anything other than "safe" or "caution",
    including a missing value, is unsafe.
    """
    value = safety_status.lower() if isinstance(safety_status, str) else ""
    if value == SAFE:
        return SAFE
    if value == CAUTION:
        return CAUTION
    return UNSAFE


def derive_system_status(total: int, safe: int, caution: int, unsafe: int) -> str:
    """Overall status by strict priority: No Data, Unsafe, Caution, Safe."""
    if total == 0:
        return SystemStatus.NO_DATA
    if unsafe > 0:
        return SystemStatus.UNSAFE
    if caution > 0:
        return SystemStatus.CAUTION
    if safe == total:
        return SystemStatus.SAFE
    # Counts are inconsistent; not reachable through classify_safety
    return SystemStatus.UNKNOWN


def summarize(readings: Mapping[str, Optional[NormalizedReading]]) -> StatusSummary:
    """
    Build a StatusSummary from each location's latest reading.

    Locations without a reading are left out of every count.
    """
    present: Dict[str, NormalizedReading] = {
        key: reading for key, reading in readings.items() if reading is not None
    }
    counts = {SAFE: 0, CAUTION: 0, UNSAFE: 0}
    last_update = None

    for reading in present.values():
        counts[classify_safety(reading.safety_status)] += 1
        if reading.is_newer_than(last_update):
            last_update = reading.instant

    total = len(present)
    return StatusSummary(
        system_status=derive_system_status(
            total, counts[SAFE], counts[CAUTION], counts[UNSAFE]
        ),
        total_locations=total,
        safe_locations=counts[SAFE],
        caution_locations=counts[CAUTION],
        unsafe_locations=counts[UNSAFE],
        last_update=last_update,
        locations=present,
    )


async def fetch_all_latest(
    store: Optional[ReadingStore],
    locations: Sequence[str] = CANONICAL_LOCATIONS,
) -> Dict[str, NormalizedReading]:
    """
    Fetch the latest reading for every location concurrently.

    A location whose queries fail with StoreQueryError is omitted like one
    with no data. Other exceptions from the store propagate.

    Returns:
        Mapping of location key to reading, in ``locations`` order, with
        locations that have no data omitted

    Raises:
        StoreUnavailableError: If no store is configured
    """
    results = await asyncio.gather(
        *(fetch_latest_reading(location, store) for location in locations)
    )
    return {
        location: reading
        for location, reading in zip(locations, results)
        if reading is not None
    }


async def get_system_status(
    store: Optional[ReadingStore],
    locations: Sequence[str] = CANONICAL_LOCATIONS,
) -> StatusSummary:
    """
    Summarize the safety status of all monitored locations.

    Raises:
        StoreUnavailableError: If no store is configured
    """
    return summarize(await fetch_all_latest(store, locations))
