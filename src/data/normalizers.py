"""
Log normalization: canonical levels, UTC instants, optional fields.

Every place that filters or aggregates by level goes through the helpers in
this module so that synonyms collapse the same way everywhere.

Design:
- WARN and WARNING are synonyms; WARNING is the canonical bucket
- Any other level passes through verbatim (the level set is open)
- Instants are always timezone-aware UTC
- Empty optional fields (route, metadata) become None, never "" or {}
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

WARNING = "WARNING"
ERROR = "ERROR"
INFO = "INFO"

# Canonical level -> every stored spelling that belongs to its bucket
LEVEL_SYNONYMS: Dict[str, List[str]] = {
    WARNING: ["WARN", "WARNING"],
}


def normalize_level(level: str) -> str:
    """
    Map a stored or requested level to its canonical bucket.

    Args:
        level: Level string as written by the emitting service

    Returns:
        "WARNING" for WARN/WARNING, otherwise the input unchanged
    """
    if level == "WARN":
        return WARNING
    return level


def level_variants(level: str) -> List[str]:
    """
    All stored spellings that match a level filter.

    Examples:
        level_variants("WARN") -> ["WARN", "WARNING"]
        level_variants("ERROR") -> ["ERROR"]
    """
    canonical = normalize_level(level)
    return list(LEVEL_SYNONYMS.get(canonical, [canonical]))


def ensure_utc(value: datetime) -> datetime:
    """
    Return an aware UTC datetime.

    Naive values are taken to already be UTC (the store writes UTC only).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_route(route: Optional[str]) -> Optional[str]:
    """An empty or blank route means "not applicable"."""
    if route is None:
        return None
    route = route.strip()
    return route or None


def normalize_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Metadata is kept only when non-empty."""
    if not metadata:
        return None
    return dict(metadata)
