"""
Query building for the reading store.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import format_timestamp

LOCATION_FIELD = "location"
WINDOW_FIELD = "windowEnd"


class BaseQuery(ABC):
    """Base class for reading store queries."""

    @abstractmethod
    def to_sql(self) -> str:
        """Convert the query to a SQL string.

        Returns:
            str: The SQL query string representation.
        """
        pass

    def parameters(self) -> List[Dict[str, Any]]:
        """Named parameters referenced by :meth:`to_sql`."""
        return []

    def to_query_spec(self) -> Dict[str, Any]:
        """Parameterized query spec as accepted by the Cosmos SDK."""
        return {"query": self.to_sql(), "parameters": self.parameters()}


class ReadingQuery(BaseQuery):
    """Builder for filter-and-sort queries over aggregated readings.

    Supports an equality filter on the location field, a lower bound on the
    window end, ordering by window end and a row limit. Structured fields are
    kept so in-memory stores can evaluate the same query.

    Examples:
        # Newest reading stored under one name
        query = ReadingQuery.latest("Dow's Lake")

        # Everything since a cutoff, oldest first
        query = ReadingQuery().where_location("nac").since(cutoff).order_by_window("ASC")
    """

    def __init__(self) -> None:
        self.location: Optional[str] = None
        self.cutoff: Optional[datetime] = None
        self.direction: Optional[str] = None
        self.limit_count: Optional[int] = None

    @classmethod
    def latest(cls, location: str) -> "ReadingQuery":
        """Newest record for one stored location name."""
        return cls().where_location(location).order_by_window("DESC").limit(1)

    @classmethod
    def history(cls, location: str, cutoff: datetime) -> "ReadingQuery":
        """All records for one stored location name since ``cutoff``, oldest first."""
        return cls().where_location(location).since(cutoff).order_by_window("ASC")

    def where_location(self, location: str) -> "ReadingQuery":
        """Filter on an exact stored location value.

        Args:
            location: Stored location string to match.

        Returns:
            ReadingQuery: This query for method chaining.
        """
        self.location = location
        return self

    def since(self, cutoff: datetime) -> "ReadingQuery":
        """Keep records whose window ended at or after ``cutoff``."""
        self.cutoff = cutoff
        return self

    def order_by_window(self, direction: str = "ASC") -> "ReadingQuery":
        """Order by window end.

        Args:
            direction: "ASC" or "DESC".

        Returns:
            ReadingQuery: This query for method chaining.
        """
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise ValueError(f"Invalid sort direction: {direction}")
        self.direction = direction
        return self

    def limit(self, count: int) -> "ReadingQuery":
        """Set the maximum number of records to return."""
        if count < 1:
            raise ValueError("limit must be a positive integer")
        self.limit_count = count
        return self

    @property
    def cutoff_value(self) -> Optional[str]:
        """The cutoff as stored-format string (window ends are ISO-8601 strings)."""
        return format_timestamp(self.cutoff)

    def to_sql(self) -> str:
        conditions = []
        if self.location is not None:
            conditions.append(f"c.{LOCATION_FIELD} = @loc")
        if self.cutoff is not None:
            conditions.append(f"c.{WINDOW_FIELD} >= @cut")

        sql = "SELECT * FROM c"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        if self.direction:
            sql += f" ORDER BY c.{WINDOW_FIELD} {self.direction}"
        if self.limit_count is not None:
            sql += f" OFFSET 0 LIMIT {self.limit_count}"
        return sql

    def parameters(self) -> List[Dict[str, Any]]:
        params: List[Dict[str, Any]] = []
        if self.location is not None:
            params.append({"name": "@loc", "value": self.location})
        if self.cutoff is not None:
            params.append({"name": "@cut", "value": self.cutoff_value})
        return params

    def __repr__(self) -> str:
        return f"ReadingQuery({self.to_sql()!r}, {self.parameters()!r})"


class DistinctLocationsQuery(BaseQuery):
    """Distinct stored location names (diagnostics only)."""

    def to_sql(self) -> str:
        return f"SELECT DISTINCT VALUE c.{LOCATION_FIELD} FROM c"


class CountQuery(BaseQuery):
    """Total number of stored documents (diagnostics only)."""

    def to_sql(self) -> str:
        return "SELECT VALUE COUNT(1) FROM c"
