"""
Pattern Analyzer

Descriptive statistics over one user's journal and check-in history:
- Supplement vs. metric association (days taken vs. days not taken)
- Combined wellness score per supplement and time-of-day slot
- Mean/variance helpers shared by the other analyzers

All comparisons are simple group means. Records are only produced when both
groups reach their minimum sample size.
"""

import logging
import statistics
from dataclasses import dataclass
from typing import Dict, List, Optional

from stackcoach.models import AnalysisContext
from .knowledge import METRICS, clamp

logger = logging.getLogger(__name__)

# Minimum days per group before a supplement/metric association is reported
MIN_DAYS_WITH = 5
MIN_DAYS_WITHOUT = 3

# A mean difference of 3 points on the 0-10 scale maps to a score of 1.0
CORRELATION_SCALE = 3.0
DIRECTION_THRESHOLD = 0.2

# Timing slots need this many scored days to be considered
MIN_SLOT_SAMPLES = 3
# Sample count at which timing confidence saturates
TIMING_FULL_CONFIDENCE_SAMPLES = 30


@dataclass
class SupplementMetricCorrelation:
    """Association between taking a supplement and a journal metric."""
    supplement_id: str
    supplement_name: str
    metric: str  # "sleep", "energy", "focus", "mood"
    correlation: float  # normalized mean difference, -1 to +1
    direction: str  # "positive", "negative", "neutral"
    sample_size: int
    mean_with: float
    mean_without: float
    days_with: int
    days_without: int

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "metric": self.metric,
            "correlation": round(self.correlation, 3),
            "direction": self.direction,
            "sample_size": self.sample_size,
            "mean_with": round(self.mean_with, 2),
            "mean_without": round(self.mean_without, 2),
            "days_with": self.days_with,
            "days_without": self.days_without,
        }


@dataclass
class SlotStats:
    mean: float
    variance: float
    count: int


@dataclass
class OptimalTiming:
    time: str
    score: float
    confidence: float


def calculate_stats(values: List[float]) -> SlotStats:
    """Mean and population variance of a list of values."""
    if not values:
        return SlotStats(mean=0.0, variance=0.0, count=0)

    mean = statistics.fmean(values)
    return SlotStats(
        mean=mean,
        variance=statistics.pvariance(values, mu=mean),
        count=len(values),
    )


def get_correlation_direction(correlation: float) -> str:
    if correlation > DIRECTION_THRESHOLD:
        return "positive"
    if correlation < -DIRECTION_THRESHOLD:
        return "negative"
    return "neutral"


def normalize_difference(diff: float) -> float:
    """Map a raw mean difference onto [-1, 1]."""
    return clamp(diff / CORRELATION_SCALE, -1.0, 1.0)


class PatternAnalyzer:
    """Group-comparison statistics over a user's history."""

    def analyze_supplement_metric_correlations(
        self,
        context: AnalysisContext
    ) -> List[SupplementMetricCorrelation]:
        """
        Compare each metric on days a stack supplement was checked in vs. days it wasn't.

        Returns one record per (supplement, metric) pair with at least
        MIN_DAYS_WITH days taken and MIN_DAYS_WITHOUT days not taken.
        """
        correlations = []
        check_ins_by_date = context.check_ins_by_date

        for item in context.stack_by_id.values():
            for metric in METRICS:
                with_supplement = []
                without_supplement = []

                for entry in context.journal_history:
                    value = getattr(entry, metric)
                    if value is None:
                        continue

                    if item.supplement_id in check_ins_by_date.get(entry.date, ()):
                        with_supplement.append(value)
                    else:
                        without_supplement.append(value)

                if len(with_supplement) < MIN_DAYS_WITH or len(without_supplement) < MIN_DAYS_WITHOUT:
                    continue

                mean_with = calculate_stats(with_supplement).mean
                mean_without = calculate_stats(without_supplement).mean
                normalized = normalize_difference(mean_with - mean_without)

                correlations.append(SupplementMetricCorrelation(
                    supplement_id=item.supplement_id,
                    supplement_name=item.supplement_name,
                    metric=metric,
                    correlation=normalized,
                    direction=get_correlation_direction(normalized),
                    sample_size=len(with_supplement) + len(without_supplement),
                    mean_with=mean_with,
                    mean_without=mean_without,
                    days_with=len(with_supplement),
                    days_without=len(without_supplement),
                ))

        logger.debug(f"Found {len(correlations)} supplement/metric correlations for user {context.user_id}")
        return correlations

    def analyze_timing_patterns(
        self,
        context: AnalysisContext
    ) -> Dict[str, Dict[str, List[float]]]:
        """
        Collect combined wellness scores per supplement and time slot.

        Returns supplement_id -> slot -> scores, one score per check-in whose
        date has a journal entry.
        """
        timing_data: Dict[str, Dict[str, List[float]]] = {}
        journal_by_date = context.journal_by_date

        for check_in in context.check_in_history:
            entry = journal_by_date.get(check_in.check_in_date)
            if entry is None:
                continue

            slots = timing_data.setdefault(check_in.supplement_id, {})
            slots.setdefault(check_in.time, []).append(entry.combined_score)

        return timing_data

    def find_optimal_timing(
        self,
        slot_scores: Dict[str, List[float]]
    ) -> Optional[OptimalTiming]:
        """Pick the slot with the best mean score among slots with enough samples."""
        best_time = None
        best_score = float("-inf")
        total_samples = 0

        for time, scores in slot_scores.items():
            if len(scores) < MIN_SLOT_SAMPLES:
                continue

            stats = calculate_stats(scores)
            total_samples += stats.count

            if stats.mean > best_score:
                best_score = stats.mean
                best_time = time

        if best_time is None:
            return None

        return OptimalTiming(
            time=best_time,
            score=best_score,
            confidence=min(1.0, total_samples / TIMING_FULL_CONFIDENCE_SAMPLES),
        )


# Singleton instance
pattern_analyzer = PatternAnalyzer()
