"""
Shared builders for engine and API tests.

Builders are exposed as fixtures returning factory functions so tests can
assemble journals, stacks and check-ins inline.
"""

from datetime import date, datetime, timedelta

import pytest

from stackcoach.config import Settings
from stackcoach.models import AnalysisContext, CheckInData, JournalEntry, StackItem

START = date(2024, 3, 1)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def journal():
    """journal(day_offset, sleep=6, energy=6, focus=6, mood=6, **flags) -> JournalEntry"""
    def build(day, sleep=6, energy=6, focus=6, mood=6, **kwargs):
        return JournalEntry(
            date=START + timedelta(days=day),
            sleep=sleep,
            energy=energy,
            focus=focus,
            mood=mood,
            **kwargs,
        )
    return build


@pytest.fixture
def check_in():
    """check_in(supplement_id, day_offset, time="morning") -> CheckInData"""
    def build(supplement_id, day, time="morning", name=None, hour=8):
        return CheckInData(
            supplement_id=supplement_id,
            supplement_name=name or supplement_id.title(),
            checked_at=datetime.combine(START + timedelta(days=day), datetime.min.time()) + timedelta(hours=hour),
            time=time,
        )
    return build


@pytest.fixture
def item():
    """item(supplement_id, name=None, dosage=None, time=None) -> StackItem"""
    def build(supplement_id, name=None, dosage=None, time=None):
        return StackItem(
            supplement_id=supplement_id,
            supplement_name=name or supplement_id.replace("-", " ").title(),
            dosage=dosage,
            time=time,
        )
    return build


@pytest.fixture
def context():
    """context(stack=(), journal=(), check_ins=(), profile=None) -> AnalysisContext"""
    def build(stack=(), journal=(), check_ins=(), profile=None, user_id="user-1"):
        return AnalysisContext(
            user_id=user_id,
            journal_history=journal,
            check_in_history=check_ins,
            current_stack=stack,
            profile=profile,
        )
    return build
