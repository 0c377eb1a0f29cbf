"""
Timing Optimizer

Suggests the best time of day for each supplement in the stack.

Data-driven suggestions come from the user's own check-in/journal history and
win when they are confident enough. Otherwise the established optimal slot
from the knowledge table is used.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional

from stackcoach.models import AnalysisContext, Recommendation, StackItem
from .knowledge import item_matches, lookup_by_keyword
from .patterns import calculate_stats, pattern_analyzer

logger = logging.getLogger(__name__)

MIN_DATA_CONFIDENCE = 0.3
MIN_IMPROVEMENT_PCT = 5
HIGH_PRIORITY_IMPROVEMENT_PCT = 15

# Used when the suggestion comes from the knowledge table
KNOWN_TIME_IMPROVEMENT_PCT = 10
KNOWN_TIME_CONFIDENCE = 0.7

# Caffeine should be taken at least this many hours before bedtime
CAFFEINE_CUTOFF_HOURS = 8


@dataclass(frozen=True)
class KnownTiming:
    time: str  # "morning", "noon", "evening", "bedtime"
    reason: str


# Established optimal slots per supplement class
KNOWN_OPTIMAL_TIMES = MappingProxyType({
    "creatine": KnownTiming("morning", "Better uptake ahead of training"),
    "magnesium": KnownTiming("bedtime", "Supports sleep quality"),
    "vitamin-d": KnownTiming("morning", "Fat-soluble, best taken with breakfast"),
    "omega-3": KnownTiming("noon", "Take with a fatty meal for best absorption"),
    "caffeine": KnownTiming("morning", "Not after 2pm to protect your sleep"),
    "l-theanine": KnownTiming("morning", "Works synergistically with caffeine"),
    "ashwagandha": KnownTiming("bedtime", "Supports cortisol regulation overnight"),
    "melatonin": KnownTiming("bedtime", "30-60 minutes before going to sleep"),
    "zinc": KnownTiming("bedtime", "Supports regeneration during sleep"),
    "b-complex": KnownTiming("morning", "Can be energizing, avoid in the evening"),
    "iron": KnownTiming("morning", "On an empty stomach for best absorption"),
    "probiotics": KnownTiming("morning", "Before breakfast on an empty stomach"),
})

# Clock times for each slot by chronotype
CHRONOTYPE_TIMES = MappingProxyType({
    "early": MappingProxyType({"morning": "06:00", "noon": "11:30", "evening": "18:00", "bedtime": "21:00"}),
    "normal": MappingProxyType({"morning": "07:30", "noon": "12:30", "evening": "19:00", "bedtime": "22:30"}),
    "late": MappingProxyType({"morning": "09:00", "noon": "13:30", "evening": "20:30", "bedtime": "00:00"}),
    "irregular": MappingProxyType({"morning": "08:00", "noon": "12:00", "evening": "19:00", "bedtime": "23:00"}),
})

TIME_LABELS = {
    "morning": "in the morning",
    "noon": "at noon",
    "evening": "in the evening",
    "bedtime": "before bed",
}

CHRONOTYPE_LABELS = {
    "early": "an early riser",
    "late": "a night owl",
}

CAFFEINE_KEYWORDS = ("caffeine", "koffein", "coffee")


@dataclass
class TimingAnalysis:
    """Suggested move of a supplement to a better time slot."""
    supplement_id: str
    supplement_name: str
    optimal_time: str
    current_time: Optional[str]
    improvement: int  # Expected improvement in %
    metric: str  # Metric the improvement refers to
    confidence: float
    source: str  # "data" or "knowledge"
    data_points: int = 0

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "optimal_time": self.optimal_time,
            "current_time": self.current_time,
            "improvement": self.improvement,
            "metric": self.metric,
            "confidence": round(self.confidence, 2),
            "source": self.source,
            "data_points": self.data_points,
        }


def get_chronotype_times(chronotype: Optional[str]):
    """Clock times for a chronotype, normal if unknown."""
    return CHRONOTYPE_TIMES.get(chronotype, CHRONOTYPE_TIMES["normal"])


def get_personalized_time_label(time: str, chronotype: Optional[str] = None) -> str:
    """Human label for a slot, with the concrete clock time when the chronotype is known."""
    label = TIME_LABELS.get(time, time)
    if not chronotype:
        return label
    clock = get_chronotype_times(chronotype).get(time)
    return f"{label} (~{clock})" if clock else label


def _hour(clock: str) -> int:
    return int(clock.split(":")[0])


def is_caffeine_too_late(slot: str, chronotype: Optional[str]) -> bool:
    """True if a slot falls inside the caffeine-free window before the chronotype's bedtime."""
    times = get_chronotype_times(chronotype)
    bedtime_hour = _hour(times["bedtime"])
    cutoff_hour = (bedtime_hour - CAFFEINE_CUTOFF_HOURS) % 24
    if slot not in times:
        return False
    slot_hour = _hour(times[slot])

    if cutoff_hour > 12:
        # Cutoff in the afternoon/evening, window may wrap past midnight
        return slot_hour >= cutoff_hour or slot_hour < 6
    return cutoff_hour <= slot_hour < bedtime_hour


def get_known_optimal_time(supplement_id: str, supplement_name: str) -> Optional[KnownTiming]:
    return lookup_by_keyword(KNOWN_OPTIMAL_TIMES, supplement_id, supplement_name)


class TimingOptimizer:
    """Optimal time-of-day suggestions for the current stack."""

    def _analyze_from_data(self, item: StackItem, slot_scores) -> Optional[TimingAnalysis]:
        optimal = pattern_analyzer.find_optimal_timing(slot_scores)
        if optimal is None or optimal.confidence <= MIN_DATA_CONFIDENCE:
            return None

        if not item.time or item.time == optimal.time:
            return None

        current_scores = slot_scores.get(item.time)
        optimal_scores = slot_scores.get(optimal.time)
        if not current_scores or not optimal_scores:
            return None

        current_mean = calculate_stats(current_scores).mean
        optimal_mean = calculate_stats(optimal_scores).mean
        if current_mean <= 0:
            return None

        improvement = (optimal_mean - current_mean) / current_mean * 100
        if improvement <= MIN_IMPROVEMENT_PCT:
            return None

        return TimingAnalysis(
            supplement_id=item.supplement_id,
            supplement_name=item.supplement_name,
            optimal_time=optimal.time,
            current_time=item.time,
            improvement=round(improvement),
            metric="overall",
            confidence=optimal.confidence,
            source="data",
            data_points=sum(len(scores) for scores in slot_scores.values()),
        )

    def analyze_timing_for_stack(self, context: AnalysisContext) -> List[TimingAnalysis]:
        analyses = []
        timing_data = pattern_analyzer.analyze_timing_patterns(context)

        for item in context.stack_by_id.values():
            analysis = None

            slot_scores = timing_data.get(item.supplement_id)
            if slot_scores:
                analysis = self._analyze_from_data(item, slot_scores)

            if analysis is None:
                known = get_known_optimal_time(item.supplement_id, item.supplement_name)
                if known and item.time and item.time != known.time:
                    analysis = TimingAnalysis(
                        supplement_id=item.supplement_id,
                        supplement_name=item.supplement_name,
                        optimal_time=known.time,
                        current_time=item.time,
                        improvement=KNOWN_TIME_IMPROVEMENT_PCT,
                        metric="overall",
                        confidence=KNOWN_TIME_CONFIDENCE,
                        source="knowledge",
                    )

            if analysis:
                analyses.append(analysis)

        return analyses

    def generate_timing_recommendations(self, context: AnalysisContext) -> List[Recommendation]:
        recommendations = []
        chronotype = context.profile.chronotype if context.profile else None

        for analysis in self.analyze_timing_for_stack(context):
            known = get_known_optimal_time(analysis.supplement_id, analysis.supplement_name)
            time_label = get_personalized_time_label(analysis.optimal_time, chronotype)

            if analysis.confidence > 0.5 and analysis.improvement > 10:
                message = (
                    f"Your data shows: taking {analysis.supplement_name} {time_label} "
                    f"could improve your scores by ~{analysis.improvement}%."
                )
            elif known:
                known_label = get_personalized_time_label(known.time, chronotype)
                message = f"{analysis.supplement_name} works best {known_label}. {known.reason}."
            else:
                message = f"Try taking {analysis.supplement_name} {time_label} for better results."

            recommendations.append(Recommendation(
                id=f"timing-{analysis.supplement_id}",
                type="timing",
                priority="high" if analysis.improvement > HIGH_PRIORITY_IMPROVEMENT_PCT else "medium",
                title=f"⏰ Timing for {analysis.supplement_name}",
                message=message,
                supplement=analysis.supplement_name,
                confidence=analysis.confidence,
                data_points=analysis.data_points,
            ))

        if chronotype:
            recommendations.extend(self._chronotype_caffeine_recommendations(context, chronotype))

        return recommendations

    def _chronotype_caffeine_recommendations(
        self,
        context: AnalysisContext,
        chronotype: str
    ) -> List[Recommendation]:
        recommendations = []
        bedtime = get_chronotype_times(chronotype)["bedtime"]
        who = CHRONOTYPE_LABELS.get(chronotype, "someone with your chronotype")

        for item in context.stack_by_id.values():
            if not item.time or not item_matches(item, CAFFEINE_KEYWORDS):
                continue
            if not is_caffeine_too_late(item.time, chronotype):
                continue

            recommendations.append(Recommendation(
                id=f"timing-{item.supplement_id}-chronotype",
                type="timing",
                priority="high",
                title="⚠️ Caffeine timing",
                message=(
                    f"As {who} you should keep caffeine at least {CAFFEINE_CUTOFF_HOURS} hours "
                    f"before bed (bedtime ~{bedtime})."
                ),
                supplement=item.supplement_name,
                confidence=0.9,
            ))

        return recommendations


# Singleton instance
timing_optimizer = TimingOptimizer()
