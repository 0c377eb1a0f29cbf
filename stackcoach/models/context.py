import logging
from dataclasses import dataclass, field
from datetime import date
from functools import cached_property
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .checkin import CheckInData
from .journal import JournalEntry
from .stack import StackItem, UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisContext:
    """
    Snapshot of everything the engine knows about one user.

    Built once per request by the caller. Sequences are frozen to tuples so
    analyzers can share the snapshot without copying it.
    """
    user_id: str
    journal_history: Sequence[JournalEntry] = field(default_factory=tuple)
    check_in_history: Sequence[CheckInData] = field(default_factory=tuple)
    current_stack: Sequence[StackItem] = field(default_factory=tuple)
    profile: Optional[UserProfile] = None
    goals: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "journal_history", tuple(self.journal_history))
        object.__setattr__(self, "check_in_history", tuple(self.check_in_history))
        object.__setattr__(self, "current_stack", tuple(self.current_stack))
        object.__setattr__(self, "goals", tuple(self.goals))

    @cached_property
    def stack_by_id(self) -> Mapping[str, StackItem]:
        """Stack keyed by supplement_id, in stack order. First entry wins on duplicates."""
        items: Dict[str, StackItem] = {}
        for item in self.current_stack:
            if item.supplement_id in items:
                logger.warning(
                    f"Duplicate stack entry for {item.supplement_id} (user {self.user_id}), keeping the first"
                )
                continue
            items[item.supplement_id] = item
        return MappingProxyType(items)

    @cached_property
    def check_ins_by_date(self) -> Mapping[date, Tuple[str, ...]]:
        """Supplement ids checked in on each calendar date."""
        grouped: Dict[date, List[str]] = {}
        for check_in in self.check_in_history:
            grouped.setdefault(check_in.check_in_date, []).append(check_in.supplement_id)
        return MappingProxyType({day: tuple(ids) for day, ids in grouped.items()})

    @cached_property
    def journal_by_date(self) -> Mapping[date, JournalEntry]:
        return MappingProxyType({entry.date: entry for entry in self.journal_history})
