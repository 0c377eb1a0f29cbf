from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class JournalEntry:
    """Daily user-reported wellness metrics (one entry per calendar date)."""
    date: date

    # Subjective ratings (0-10 scale)
    sleep: float
    energy: float
    focus: float
    mood: float
    stress: Optional[float] = None

    # Lifestyle flags, None when the user didn't answer
    exercise: Optional[bool] = None
    meditation: Optional[bool] = None

    @property
    def combined_score(self) -> float:
        """Average of the four core metrics."""
        return (self.sleep + self.energy + self.focus + self.mood) / 4

    def to_dict(self):
        return {
            "date": self.date.isoformat(),
            "sleep": self.sleep,
            "energy": self.energy,
            "focus": self.focus,
            "mood": self.mood,
            "stress": self.stress,
            "exercise": self.exercise,
            "meditation": self.meditation,
        }
