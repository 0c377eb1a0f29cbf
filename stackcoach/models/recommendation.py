from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class Recommendation:
    """A single piece of advice produced by the engine. Recomputed per request, never stored."""
    id: str
    type: str  # "timing", "dosage", "synergy", "lifestyle", "warning"
    priority: str  # "low", "medium", "high", "critical"
    title: str
    message: str
    confidence: float = 0.0  # 0-1
    data_points: int = 0  # Number of samples behind the advice
    supplement: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.confidence = max(0.0, min(1.0, self.confidence))

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "priority": self.priority,
            "title": self.title,
            "message": self.message,
            "supplement": self.supplement,
            "confidence": self.confidence,
            "data_points": self.data_points,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
