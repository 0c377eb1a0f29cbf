"""
Shared vocabulary for the recommendation engine.

Read-only registries used by every analyzer: metric names, timing slots,
priority ordering and the keyword matching used to map free-text supplement
ids/names onto knowledge-table keys.
"""

from types import MappingProxyType
from typing import Iterable, Optional

from stackcoach.models import StackItem


METRICS = ("sleep", "energy", "focus", "mood")

TIME_SLOTS = ("morning", "noon", "evening", "bedtime")

RECOMMENDATION_TYPES = ("timing", "dosage", "synergy", "lifestyle", "warning")

# Sort key for merged output, lower = shown first
PRIORITY_ORDER = MappingProxyType({
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
})

SEVERITY_TO_PRIORITY = MappingProxyType({
    "info": "low",
    "warning": "medium",
    "critical": "critical",
})


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def priority_rank(priority: str) -> int:
    """Rank for sorting. Unknown priorities sort last."""
    return PRIORITY_ORDER.get(priority, len(PRIORITY_ORDER))


def text_matches(supplement_id: str, supplement_name: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match of any keyword against id or name."""
    id_lower = supplement_id.lower()
    name_lower = (supplement_name or "").lower()
    for keyword in keywords:
        keyword = keyword.lower()
        if keyword in id_lower or keyword in name_lower:
            return True
    return False


def item_matches(item: StackItem, keywords: Iterable[str]) -> bool:
    return text_matches(item.supplement_id, item.supplement_name, keywords)


def lookup_by_keyword(table, supplement_id: str, supplement_name: str) -> Optional[object]:
    """
    Find the first table entry whose key occurs in the supplement id, then name.

    Tables are insertion-ordered, so more specific keys must come first.
    """
    id_lower = supplement_id.lower()
    for key, value in table.items():
        if key in id_lower:
            return value

    name_lower = (supplement_name or "").lower()
    for key, value in table.items():
        if key in name_lower:
            return value

    return None
