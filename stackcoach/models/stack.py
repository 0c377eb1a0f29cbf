from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class StackItem:
    """One supplement in the user's current regimen."""
    supplement_id: str
    supplement_name: str
    dosage: Optional[str] = None  # free text, e.g., "500mg"
    time: Optional[str] = None  # "morning", "noon", "evening", "bedtime"

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "dosage": self.dosage,
            "time": self.time,
        }


@dataclass(frozen=True)
class UserProfile:
    """
    Profile attributes the engine reads for safety and timing checks.

    Everything is optional; an empty profile disables the profile-driven rules.
    """
    medications: Tuple[str, ...] = field(default_factory=tuple)  # "blood-thinners", "antidepressants", ...
    chronotype: Optional[str] = None  # early, normal, late, irregular
    caffeine_level: Optional[str] = None  # low, moderate, high

    def to_dict(self):
        return {
            "medications": list(self.medications),
            "chronotype": self.chronotype,
            "caffeine_level": self.caffeine_level,
        }
