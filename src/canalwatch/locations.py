"""
Location identity resolution.

Stored readings name their location inconsistently: the ingestion pipeline
writes the device id (``dows-lake``) while older records carry the display
name (``Dow's Lake``). The API only ever speaks canonical keys.
"""

import re
from typing import Dict, List, Optional

DOWS_LAKE = "dows-lake"
FIFTH_AVENUE = "fifth-avenue"
NAC = "nac"

# Canonical keys, in dashboard order
CANONICAL_LOCATIONS = (DOWS_LAKE, FIFTH_AVENUE, NAC)

# Display-name aliases that may appear as the stored ``location`` field
DISPLAY_NAMES: Dict[str, str] = {
    DOWS_LAKE: "Dow's Lake",
    FIFTH_AVENUE: "Fifth Avenue",
    NAC: "NAC",
}

_APOSTROPHES = re.compile(r"['’]")
_WHITESPACE = re.compile(r"\s+")


def name_variants(location_key: str) -> List[str]:
    """
    Return the stored-name variants to search for a location, in query order.

    The canonical key always comes first, followed by its display-name alias
    when one is known. Unknown keys have no alias.

    Examples:
        >>> name_variants("dows-lake")
        ['dows-lake', "Dow's Lake"]
        >>> name_variants("somewhere")
        ['somewhere']
    """
    variants = [location_key]
    alias = DISPLAY_NAMES.get(location_key)
    if alias is not None and alias not in variants:
        variants.append(alias)
    return variants


def normalize_location(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a stored location string to canonical-key form.

    Lower-cases, strips apostrophes and replaces whitespace runs with a single
    hyphen, so "Dow's Lake" and "dows-lake" both become "dows-lake".
    """
    if raw is None:
        return None
    value = _APOSTROPHES.sub("", str(raw).lower()).strip()
    return _WHITESPACE.sub("-", value)


def display_name(location_key: str) -> str:
    """Human-readable name for a canonical key."""
    return DISPLAY_NAMES.get(location_key, location_key)


def is_canonical(location_key: str) -> bool:
    """True if the key is one of the monitored canonical locations."""
    return location_key in CANONICAL_LOCATIONS
