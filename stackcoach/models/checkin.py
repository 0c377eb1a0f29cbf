from dataclasses import dataclass
from datetime import datetime, date
from typing import Optional


@dataclass(frozen=True)
class CheckInData:
    """A single supplement intake event logged by the user."""
    supplement_id: str
    supplement_name: str
    checked_at: datetime
    time: str  # "morning", "noon", "evening", "bedtime"
    dosage: Optional[str] = None  # e.g., "500mg", "2000 IU"

    @property
    def check_in_date(self) -> date:
        return self.checked_at.date()

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "checked_at": self.checked_at.isoformat(),
            "date": str(self.check_in_date),
            "time": self.time,
            "dosage": self.dosage,
        }
