"""
Data models for canal sensor readings and system status.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .locations import normalize_location

logger = logging.getLogger(__name__)

# Reading fields passed through from stored records unchanged
PASSTHROUGH_FIELDS = {
    "avgIceThickness": "avg_ice_thickness",
    "avgSurfaceTemperature": "avg_surface_temperature",
    "maxSnowAccumulation": "max_snow_accumulation",
    "avgExternalTemperature": "avg_external_temperature",
    "safetyStatus": "safety_status",
    "readingCount": "reading_count",
}


class SystemStatus:
    """Overall system status values reported by /api/status."""

    NO_DATA = "No Data"
    UNSAFE = "Unsafe"
    CAUTION = "Caution"
    SAFE = "Safe"
    UNKNOWN = "Unknown"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored instant into a timezone-aware UTC datetime.

    Accepts datetimes and ISO-8601 strings, with a ``Z`` suffix or a trailing
    ``UTC`` designator. Naive values are taken to be UTC. Anything unparseable
    yields None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("UTC"):
            text = text[:-3].rstrip() + "+00:00"
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format an instant as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if value is None:
        return None
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass
class NormalizedReading:
    """The dashboard's canonical shape for one aggregated reading window."""

    location: Optional[str]
    timestamp: Any
    avg_ice_thickness: Any = None
    avg_surface_temperature: Any = None
    max_snow_accumulation: Any = None
    avg_external_temperature: Any = None
    safety_status: Any = None
    reading_count: Any = None

    @property
    def instant(self) -> Optional[datetime]:
        """The timestamp as a UTC datetime, or None if absent or unparseable."""
        return parse_timestamp(self.timestamp)

    def is_newer_than(self, other: Optional[datetime]) -> bool:
        """Absent or unparseable timestamps never compare as newer than a real one."""
        instant = self.instant
        if instant is None:
            return False
        return other is None or instant > other

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "location": self.location,
            "timestamp": self.timestamp,
        }
        for json_name, attr in PASSTHROUGH_FIELDS.items():
            data[json_name] = getattr(self, attr)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizedReading":
        """Build a reading from its JSON form (as served by the API)."""
        return cls(
            location=data.get("location"),
            timestamp=data.get("timestamp"),
            **{attr: data.get(json_name) for json_name, attr in PASSTHROUGH_FIELDS.items()},
        )


@dataclass
class StatusSummary:
    """System-wide safety summary across all monitored locations."""

    system_status: str
    total_locations: int = 0
    safe_locations: int = 0
    caution_locations: int = 0
    unsafe_locations: int = 0
    last_update: Optional[datetime] = None
    locations: Dict[str, NormalizedReading] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "systemStatus": self.system_status,
            "totalLocations": self.total_locations,
            "safeLocations": self.safe_locations,
            "cautionLocations": self.caution_locations,
            "unsafeLocations": self.unsafe_locations,
            "lastUpdate": format_timestamp(self.last_update),
            "locations": {
                key: reading.to_dict() for key, reading in self.locations.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusSummary":
        return cls(
            system_status=data.get("systemStatus", SystemStatus.UNKNOWN),
            total_locations=int(data.get("totalLocations", 0)),
            safe_locations=int(data.get("safeLocations", 0)),
            caution_locations=int(data.get("cautionLocations", 0)),
            unsafe_locations=int(data.get("unsafeLocations", 0)),
            last_update=parse_timestamp(data.get("lastUpdate")),
            locations={
                key: NormalizedReading.from_dict(value)
                for key, value in (data.get("locations") or {}).items()
            },
        )


def normalize_reading(raw: Optional[Dict[str, Any]]) -> Optional[NormalizedReading]:
    """
    Convert a stored record into a NormalizedReading.

    The location is always derived from the record itself, never from the key
    used to query it. The timestamp is ``windowEnd`` when present, otherwise
    ``timestamp``, passed through as stored. Measurement values are passed
    through without validation or unit conversion.

    Args:
        raw: A stored reading record, or None

    Returns:
        NormalizedReading, or None when ``raw`` is None
    """
    if raw is None:
        return None

    return NormalizedReading(
        location=normalize_location(raw.get("location")),
        timestamp=raw.get("windowEnd") or raw.get("timestamp"),
        **{attr: raw.get(json_name) for json_name, attr in PASSTHROUGH_FIELDS.items()},
    )


def readings_to_dataframe(readings: Iterable[NormalizedReading]) -> pd.DataFrame:
    """
    Convert readings to a pandas DataFrame, one row per reading window.

    Columns use the API's camelCase field names; ``timestamp`` is a
    timezone-aware datetime column.
    """
    columns = ["location", "timestamp", *PASSTHROUGH_FIELDS.keys()]
    rows: List[Dict[str, Any]] = []
    for reading in readings:
        row = reading.to_dict()
        row["timestamp"] = reading.instant
        rows.append(row)

    df = pd.DataFrame(rows, columns=columns)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df
