"""Restaurant location catalog with aliases and opening details."""

import logging
from typing import Optional

from tablebot.config import settings

logger = logging.getLogger(__name__)

LOCATION_ALIASES: dict[str, str] = {
    "downtown": "seattle", "sea": "seattle", "seattle downtown": "seattle",
    "bellevue square": "bellevue", "eastside": "bellevue",
    "the landing": "renton",
    "juanita": "kirkland", "totem lake": "kirkland",
    "microsoft campus": "redmond", "redmond town center": "redmond",
}


def get_location_names(locations: Optional[tuple[str, ...]] = None) -> list[str]:
    """Return the canonical location names, in configured order."""
    return list(locations if locations is not None else settings.restaurant.locations)


def get_valid_location_terms(locations: Optional[tuple[str, ...]] = None) -> list[str]:
    """Return all recognized location terms (canonical names + alias keys).

    Aliases pointing at a location that is not configured are left out.
    """
    names = [name.lower() for name in get_location_names(locations)]
    aliases = [alias for alias, target in LOCATION_ALIASES.items() if target in names]
    return names + aliases


def match_location(query: str, locations: Optional[tuple[str, ...]] = None) -> Optional[str]:
    """Match a user query to a canonical location name. Returns None if no match."""
    normalized = " ".join(query.lower().split())
    if not normalized:
        return None
    by_key = {name.lower(): name for name in get_location_names(locations)}
    if normalized in by_key:
        return by_key[normalized]
    target = LOCATION_ALIASES.get(normalized)
    if target in by_key:
        return by_key[target]
    for key, name in by_key.items():
        if key in normalized:
            return name
    logger.debug("No location matched for '%s'", query)
    return None
