"""
Lifestyle Coach

Finds habits in the journal that move the user's metrics:
- Sleep quality vs. next-day energy and focus
- Personal optimal sleep duration
- Exercise vs. mood and energy
- First-week vs. last-week trends
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from stackcoach.models import AnalysisContext, JournalEntry, Recommendation
from .knowledge import METRICS
from .patterns import calculate_stats

logger = logging.getLogger(__name__)

GOOD_SLEEP = 7
BAD_SLEEP = 4
MIN_BUCKET_DAYS = 3
MIN_SLEEP_HISTORY = 7
MIN_TREND_HISTORY = 14
DEFAULT_SLEEP_HOURS = 7

SLEEP_DIFF_THRESHOLD = 1.0
EXERCISE_DIFF_THRESHOLD = 0.5
TREND_THRESHOLD = 1.0

MIN_RECOMMENDATION_CONFIDENCE = 0.4
MAX_LIFESTYLE_RECOMMENDATIONS = 5

PATTERN_MESSAGES = {
    "sleep_energy": {
        "positive": "Your data shows it clearly: good sleep (7+) means noticeably more energy the next day.",
        "negative": "On days after little sleep your energy is noticeably lower.",
        "tip": "Prioritize 7-8 hours of sleep for steady energy.",
    },
    "sleep_focus": {
        "positive": "Enough sleep is strongly linked to how well you can focus.",
        "negative": "Short sleep measurably hurts your focus.",
        "tip": "For maximum concentration, try to be asleep before midnight.",
    },
    "exercise_mood": {
        "positive": "Exercise reliably lifts your mood.",
        "negative": "Interesting: on training days your mood is a bit lower. Watch your recovery.",
        "tip": "Even 20 minutes of movement can lift your mood for the whole day.",
    },
    "exercise_energy": {
        "positive": "Training gives you more energy, not less.",
        "negative": "Your energy is a bit lower on training days. Maybe time for more recovery?",
        "tip": "Morning movement can energize the whole day.",
    },
}

PATTERN_ICONS = {
    "sleep_energy": "😴",
    "sleep_focus": "🎯",
    "optimal_sleep": "⏰",
    "exercise_mood": "🏃",
    "exercise_energy": "💪",
}

METRIC_LABELS = {
    "sleep": "sleep",
    "energy": "energy level",
    "focus": "focus",
    "mood": "mood",
}


@dataclass
class MetricImpact:
    metric: str
    change: int  # Difference in tenths of a point


@dataclass
class LifestylePattern:
    """A habit that measurably affects the user's metrics."""
    pattern: str
    impact: List[MetricImpact]
    recommendation: str
    confidence: float
    data_points: int = 0

    def to_dict(self):
        return {
            "pattern": self.pattern,
            "impact": [{"metric": i.metric, "change": i.change} for i in self.impact],
            "recommendation": self.recommendation,
            "confidence": round(self.confidence, 2),
            "data_points": self.data_points,
        }


def _mean_of(entries: List[JournalEntry], metric: str) -> float:
    return calculate_stats([getattr(e, metric) for e in entries]).mean


def _compare_pattern(
    name: str,
    metric: str,
    group_a: List[JournalEntry],
    group_b: List[JournalEntry],
    threshold: float,
    confidence_days: int,
) -> Optional[LifestylePattern]:
    """Compare one metric between two groups of days, or None below threshold."""
    diff = _mean_of(group_a, metric) - _mean_of(group_b, metric)
    if abs(diff) < threshold:
        return None

    messages = PATTERN_MESSAGES[name]
    sample = len(group_a) + len(group_b)
    return LifestylePattern(
        pattern=name,
        impact=[MetricImpact(metric=metric, change=round(diff * 10))],
        recommendation=messages["positive"] if diff > 0 else messages["negative"],
        confidence=min(1.0, sample / confidence_days),
        data_points=sample,
    )


class LifestyleCoach:
    """Lifestyle pattern detection and coaching messages."""

    def analyze_sleep_patterns(self, journal_history: List[JournalEntry]) -> List[LifestylePattern]:
        patterns = []

        if len(journal_history) < MIN_SLEEP_HISTORY:
            return patterns

        good_sleep = [j for j in journal_history if j.sleep >= GOOD_SLEEP]
        bad_sleep = [j for j in journal_history if j.sleep <= BAD_SLEEP]

        if len(good_sleep) >= MIN_BUCKET_DAYS and len(bad_sleep) >= MIN_BUCKET_DAYS:
            for name, metric in (("sleep_energy", "energy"), ("sleep_focus", "focus")):
                pattern = _compare_pattern(
                    name, metric, good_sleep, bad_sleep,
                    threshold=SLEEP_DIFF_THRESHOLD,
                    confidence_days=14,
                )
                if pattern:
                    patterns.append(pattern)

        optimal = self._find_optimal_sleep(journal_history)
        if optimal:
            patterns.append(optimal)

        return patterns

    def _find_optimal_sleep(self, journal_history: List[JournalEntry]) -> Optional[LifestylePattern]:
        """Bucket days by rounded sleep hours and find the best-performing bucket."""
        sleep_groups: Dict[int, List[JournalEntry]] = {}
        for entry in journal_history:
            sleep_groups.setdefault(round(entry.sleep), []).append(entry)

        best_hours = DEFAULT_SLEEP_HOURS
        best_score = 0.0

        for hours, entries in sleep_groups.items():
            if len(entries) < MIN_BUCKET_DAYS:
                continue

            score = (
                _mean_of(entries, "energy") +
                _mean_of(entries, "focus") +
                _mean_of(entries, "mood")
            ) / 3

            if score > best_score:
                best_score = score
                best_hours = hours

        if best_hours == DEFAULT_SLEEP_HOURS:
            return None

        change = round((best_score - 5) * 10)
        return LifestylePattern(
            pattern="optimal_sleep",
            impact=[
                MetricImpact(metric="energy", change=change),
                MetricImpact(metric="focus", change=change),
            ],
            recommendation=f"Your optimal sleep duration seems to be around {best_hours} hours.",
            confidence=min(1.0, len(journal_history) / 21),
            data_points=len(sleep_groups[best_hours]),
        )

    def analyze_activity_patterns(self, journal_history: List[JournalEntry]) -> List[LifestylePattern]:
        patterns = []

        # Days without an answer don't count as rest days
        with_exercise = [j for j in journal_history if j.exercise is True]
        without_exercise = [j for j in journal_history if j.exercise is False]

        if len(with_exercise) < MIN_BUCKET_DAYS or len(without_exercise) < MIN_BUCKET_DAYS:
            return patterns

        for name, metric in (("exercise_mood", "mood"), ("exercise_energy", "energy")):
            pattern = _compare_pattern(
                name, metric, with_exercise, without_exercise,
                threshold=EXERCISE_DIFF_THRESHOLD,
                confidence_days=14,
            )
            if pattern:
                patterns.append(pattern)

        return patterns

    def analyze_trends(self, journal_history: List[JournalEntry]) -> List[LifestylePattern]:
        """Compare the first and last week of the history for each metric."""
        patterns = []

        if len(journal_history) < MIN_TREND_HISTORY:
            return patterns

        ordered = sorted(journal_history, key=lambda j: j.date)
        first_week = ordered[:7]
        last_week = ordered[-7:]

        for metric in METRICS:
            change = _mean_of(last_week, metric) - _mean_of(first_week, metric)
            if abs(change) < TREND_THRESHOLD:
                continue

            label = METRIC_LABELS[metric]
            if change > 0:
                message = f"Your {label} has improved over the last weeks! Keep it up."
            else:
                message = f"Your {label} shows a downward trend. Time for some adjustments?"

            patterns.append(LifestylePattern(
                pattern=f"trend_{metric}",
                impact=[MetricImpact(metric=metric, change=round(change * 10))],
                recommendation=message,
                confidence=0.6,
                data_points=len(ordered),
            ))

        return patterns

    def analyze_all_lifestyle_patterns(self, context: AnalysisContext) -> List[LifestylePattern]:
        """All lifestyle patterns, most confident first."""
        history = list(context.journal_history)
        patterns = []
        patterns.extend(self.analyze_sleep_patterns(history))
        patterns.extend(self.analyze_activity_patterns(history))
        patterns.extend(self.analyze_trends(history))

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        return patterns

    def generate_lifestyle_recommendations(self, context: AnalysisContext) -> List[Recommendation]:
        recommendations = []

        for pattern in self.analyze_all_lifestyle_patterns(context):
            if pattern.confidence < MIN_RECOMMENDATION_CONFIDENCE:
                logger.debug(f"Skipping low-confidence pattern {pattern.pattern} ({pattern.confidence:.2f})")
                continue
            if len(recommendations) >= MAX_LIFESTYLE_RECOMMENDATIONS:
                break

            icon = PATTERN_ICONS.get(pattern.pattern, "📈" if pattern.pattern.startswith("trend_") else "💡")
            first_change = pattern.impact[0].change if pattern.impact else 0

            recommendations.append(Recommendation(
                id=f"lifestyle-{pattern.pattern}",
                type="lifestyle",
                priority="medium" if abs(first_change) > 15 else "low",
                title=f"{icon} Lifestyle Insight",
                message=pattern.recommendation,
                confidence=pattern.confidence,
                data_points=len(context.journal_history),
            ))

        return recommendations

    def generate_personalized_tips(
        self,
        today: Optional[JournalEntry],
        averages: Dict[str, float]
    ) -> List[str]:
        """Short tips for today based on today's entry and the user's averages."""
        if today is None:
            return ["Log your daily metrics to unlock personalized insights."]

        tips = []

        if today.sleep < 5:
            tips.append("Sleep was short last night. Try going to bed earlier tonight.")
        elif today.sleep < averages.get("sleep", 0) - 1:
            tips.append("Your sleep was below your average. A short power nap could help.")

        if today.energy < 4:
            tips.append("Low energy? Try a short walk or some sunlight.")

        if today.focus < 4:
            tips.append("Trouble focusing? Cut down on multitasking and try Pomodoro sessions.")

        if today.mood < 4:
            tips.append("Mood could be better? Movement, nature or time with friends help.")

        return tips


# Singleton instance
lifestyle_coach = LifestyleCoach()
