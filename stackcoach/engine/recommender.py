import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from stackcoach.config import Settings, get_settings
from stackcoach.models import (
    AnalysisContext,
    CheckInData,
    JournalEntry,
    Recommendation,
    StackItem,
    UserProfile,
)
from .knowledge import RECOMMENDATION_TYPES, priority_rank
from .patterns import pattern_analyzer, SupplementMetricCorrelation
from .lifestyle import lifestyle_coach, LifestylePattern
from .timing import timing_optimizer, TimingAnalysis
from .dosage import dosage_advisor, DosageAnalysis
from .synergy import synergy_checker, StackSynergy, MissingPartner
from .interactions import interaction_warner, SafetyCheckError, SupplementWarning

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerOutcome:
    """Result of running one analyzer step."""
    name: str
    status: str  # "ok", "empty", "failed"
    items: list = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self):
        return {
            "name": self.name,
            "status": self.status,
            "error": self.error,
        }


@dataclass
class ReadinessStatus:
    ready: bool
    journal_days: int
    check_ins: int
    recommendation: str

    def to_dict(self):
        return {
            "ready": self.ready,
            "journal_days": self.journal_days,
            "check_ins": self.check_ins,
            "recommendation": self.recommendation,
        }


@dataclass
class AnalysisResult:
    """Everything the engine found for one user in one pass."""
    user_id: str
    analyzed_at: datetime
    period: str  # "week", "month", "quarter"
    recommendations: List[Recommendation]
    correlations: List[SupplementMetricCorrelation]
    timing_analysis: List[TimingAnalysis]
    dosage_analysis: List[DosageAnalysis]
    synergies: List[StackSynergy]
    lifestyle_patterns: List[LifestylePattern]
    warnings: List[SupplementWarning]
    missing_partners: List[MissingPartner]
    failures: List[AnalyzerOutcome] = field(default_factory=list)

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "analyzed_at": self.analyzed_at.isoformat(),
            "period": self.period,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "correlations": [c.to_dict() for c in self.correlations],
            "timing_analysis": [t.to_dict() for t in self.timing_analysis],
            "dosage_analysis": [d.to_dict() for d in self.dosage_analysis],
            "synergies": [s.to_dict() for s in self.synergies],
            "lifestyle_patterns": [p.to_dict() for p in self.lifestyle_patterns],
            "warnings": [w.to_dict() for w in self.warnings],
            "missing_partners": [m.to_dict() for m in self.missing_partners],
            "failures": [f.to_dict() for f in self.failures],
        }


def sort_by_priority(recommendations: Sequence[Recommendation]) -> List[Recommendation]:
    """Stable sort, critical first. Equal priorities keep their input order."""
    return sorted(recommendations, key=lambda r: priority_rank(r.priority))


class RecommendationService:
    """
    Combines every analyzer into one prioritized recommendation list.

    Advisory analyzers (synergy, timing, dosage, lifestyle, patterns) fail open:
    an exception is logged, recorded in `failures` and the step contributes
    nothing. The interaction warner is safety-critical and its failures are
    raised as SafetyCheckError.
    """

    def __init__(self, context: AnalysisContext, settings: Optional[Settings] = None):
        self.context = context
        self.settings = settings or get_settings()
        self._failures: Dict[str, AnalyzerOutcome] = {}
        self._recommendations: Optional[List[Recommendation]] = None

    @property
    def failures(self) -> List[AnalyzerOutcome]:
        """Latest failed outcome per analyzer step, in order of first failure."""
        return list(self._failures.values())

    def _run(self, name: str, step: Callable[[AnalysisContext], list]) -> AnalyzerOutcome:
        """Run one advisory analyzer step, containing its failures."""
        try:
            items = list(step(self.context))
        except Exception as e:
            logger.exception(f"Analyzer {name} failed for user {self.context.user_id}")
            outcome = AnalyzerOutcome(name=name, status="failed", error=str(e))
            self._failures[name] = outcome
            return outcome

        self._failures.pop(name, None)
        status = "ok" if items else "empty"
        logger.debug(f"Analyzer {name} returned {len(items)} items for user {self.context.user_id}")
        return AnalyzerOutcome(name=name, status=status, items=items)

    def _run_safety(self, name: str, step: Callable[[AnalysisContext], list]) -> list:
        try:
            return list(step(self.context))
        except SafetyCheckError:
            raise
        except Exception as e:
            logger.exception(f"Safety check {name} failed for user {self.context.user_id}")
            raise SafetyCheckError(f"Safety check {name} could not be completed: {e}") from e

    def generate_all(self) -> List[Recommendation]:
        """All recommendations, critical first. Computed once per service."""
        if self._recommendations is not None:
            return list(self._recommendations)

        recommendations: List[Recommendation] = []

        # Warnings first, they must never be dropped
        recommendations.extend(self._run_safety(
            "warnings",
            lambda ctx: interaction_warner.generate_warning_recommendations(
                ctx, max_stack_size=self.settings.max_stack_size
            ),
        ))

        for name, step in (
            ("synergy", synergy_checker.generate_synergy_recommendations),
            ("timing", timing_optimizer.generate_timing_recommendations),
            ("dosage", dosage_advisor.generate_dosage_recommendations),
            ("lifestyle", lifestyle_coach.generate_lifestyle_recommendations),
        ):
            recommendations.extend(self._run(name, step).items)

        self._recommendations = sort_by_priority(recommendations)
        logger.info(
            f"Generated {len(self._recommendations)} recommendations for user {self.context.user_id}"
        )
        return list(self._recommendations)

    def get_top(self, n: Optional[int] = None) -> List[Recommendation]:
        limit = self.settings.default_top_n if n is None else n
        return self.generate_all()[:max(0, limit)]

    def get_by_type(self, recommendation_type: str) -> List[Recommendation]:
        if recommendation_type not in RECOMMENDATION_TYPES:
            raise ValueError(
                f"Unknown recommendation type '{recommendation_type}', "
                f"expected one of {', '.join(RECOMMENDATION_TYPES)}"
            )
        return [r for r in self.generate_all() if r.type == recommendation_type]

    def perform_full_analysis(self, period: str = "month") -> AnalysisResult:
        recommendations = self.generate_all()

        warnings = self._run_safety(
            "warnings",
            lambda ctx: interaction_warner.find_all_warnings(
                ctx, max_stack_size=self.settings.max_stack_size
            ),
        )

        correlations = self._run("correlations", pattern_analyzer.analyze_supplement_metric_correlations)
        timing = self._run("timing_analysis", timing_optimizer.analyze_timing_for_stack)
        dosage = self._run("dosage_analysis", dosage_advisor.analyze_dosages_for_stack)
        synergies = self._run("synergies", synergy_checker.find_stack_synergies)
        lifestyle = self._run("lifestyle_patterns", lifestyle_coach.analyze_all_lifestyle_patterns)
        missing = self._run("missing_partners", synergy_checker.find_missing_synergy_partners)

        return AnalysisResult(
            user_id=self.context.user_id,
            analyzed_at=datetime.now(timezone.utc),
            period=period,
            recommendations=recommendations,
            correlations=correlations.items,
            timing_analysis=timing.items,
            dosage_analysis=dosage.items,
            synergies=synergies.items,
            lifestyle_patterns=lifestyle.items,
            warnings=warnings,
            missing_partners=missing.items,
            failures=self.failures,
        )

    def get_missing_synergy_partners(self) -> List[MissingPartner]:
        return self._run("missing_partners", synergy_checker.find_missing_synergy_partners).items

    def has_enough_data(self) -> ReadinessStatus:
        """Whether there is enough history for personalized analysis. Advisory only."""
        journal_days = len(self.context.journal_history)
        check_ins = len(self.context.check_in_history)
        min_days = self.settings.min_journal_days
        min_check_ins = self.settings.min_check_ins

        if journal_days < min_days:
            return ReadinessStatus(
                ready=False,
                journal_days=journal_days,
                check_ins=check_ins,
                recommendation=f"{min_days - journal_days} more days of journal entries for your first insights.",
            )

        if check_ins < min_check_ins:
            return ReadinessStatus(
                ready=False,
                journal_days=journal_days,
                check_ins=check_ins,
                recommendation=f"{min_check_ins - check_ins} more check-ins for personalized recommendations.",
            )

        return ReadinessStatus(
            ready=True,
            journal_days=journal_days,
            check_ins=check_ins,
            recommendation="Enough data for a personalized analysis!",
        )

    def generate_chat_summary(self) -> str:
        """One-line summary for the coaching chat."""
        readiness = self.has_enough_data()
        if not readiness.ready:
            return readiness.recommendation

        top = self.get_top(3)
        if not top:
            return "All good! Your stack looks solid. Keep it up!"

        urgent = [r for r in top if r.priority in ("critical", "high")]
        if urgent:
            return f"Important: {urgent[0].message}"

        return f"Insight: {top[0].message}"


def create_recommendation_service(
    user_id: str,
    journal_history: Sequence[JournalEntry],
    check_in_history: Sequence[CheckInData],
    current_stack: Sequence[StackItem],
    profile: Optional[UserProfile] = None,
    settings: Optional[Settings] = None
) -> RecommendationService:
    context = AnalysisContext(
        user_id=user_id,
        journal_history=journal_history,
        check_in_history=check_in_history,
        current_stack=current_stack,
        profile=profile,
    )
    return RecommendationService(context, settings=settings)


def get_quick_recommendation(context: AnalysisContext) -> Optional[Recommendation]:
    """The single most important recommendation, or None."""
    top = RecommendationService(context).get_top(1)
    return top[0] if top else None
