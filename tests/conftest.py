"""
Shared fixtures: an in-memory reading store that evaluates ReadingQuery objects.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytest

from canalwatch.exceptions import StoreQueryError
from canalwatch.models import format_timestamp
from canalwatch.query import BaseQuery, CountQuery, DistinctLocationsQuery, ReadingQuery
from canalwatch.store import ReadingStore

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeReadingStore(ReadingStore):
    """In-memory store; window ends compare as ISO strings, as they do upstream."""

    def __init__(
        self,
        records: Optional[Iterable[Dict[str, Any]]] = None,
        failing_variants: Iterable[str] = (),
    ):
        self.records: List[Dict[str, Any]] = list(records or [])
        self.failing_variants = set(failing_variants)
        self.queries: List[BaseQuery] = []
        self.closed = False

    async def query(self, query: BaseQuery) -> List[Any]:
        self.queries.append(query)

        if isinstance(query, DistinctLocationsQuery):
            return sorted({r["location"] for r in self.records if r.get("location")})
        if isinstance(query, CountQuery):
            return [len(self.records)]

        assert isinstance(query, ReadingQuery)
        if query.location in self.failing_variants:
            raise StoreQueryError(f"Simulated failure for {query.location}")

        matches = [
            r
            for r in self.records
            if query.location is None or r.get("location") == query.location
        ]
        if query.cutoff is not None:
            matches = [
                r for r in matches if (r.get("windowEnd") or "") >= query.cutoff_value
            ]
        if query.direction:
            matches.sort(
                key=lambda r: r.get("windowEnd") or "",
                reverse=query.direction == "DESC",
            )
        if query.limit_count is not None:
            matches = matches[: query.limit_count]
        return [dict(r) for r in matches]

    async def close(self) -> None:
        self.closed = True

    @property
    def queried_variants(self) -> List[Optional[str]]:
        return [q.location for q in self.queries if isinstance(q, ReadingQuery)]


def build_record(
    location: str,
    age: timedelta = timedelta(minutes=5),
    safety_status: Optional[str] = "Safe",
    now: datetime = NOW,
    **fields: Any,
) -> Dict[str, Any]:
    record = {
        "id": f"{location}-{int(age.total_seconds())}",
        "location": location,
        "windowEnd": format_timestamp(now - age),
        "avgIceThickness": 32.5,
        "avgSurfaceTemperature": -4.2,
        "maxSnowAccumulation": 3.1,
        "avgExternalTemperature": -9.8,
        "safetyStatus": safety_status,
        "readingCount": 30,
    }
    record.update(fields)
    return record


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_record():
    """Factory for stored reading records."""
    return build_record


@pytest.fixture
def fake_store():
    """Factory for in-memory reading stores."""
    return FakeReadingStore


@pytest.fixture
def populated_store():
    """A store with one Safe reading per location, under mixed naming."""
    return FakeReadingStore(
        [
            build_record("dows-lake", timedelta(minutes=10)),
            build_record("dows-lake", timedelta(minutes=5), avgIceThickness=33.0),
            build_record("Fifth Avenue", timedelta(minutes=4)),
            build_record("NAC", timedelta(minutes=3)),
        ]
    )
