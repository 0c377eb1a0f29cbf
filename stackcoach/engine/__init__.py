from .patterns import PatternAnalyzer, pattern_analyzer
from .lifestyle import LifestyleCoach, lifestyle_coach
from .timing import TimingOptimizer, timing_optimizer
from .dosage import DosageAdvisor, dosage_advisor
from .synergy import SynergyChecker, synergy_checker
from .interactions import InteractionWarner, SafetyCheckError, interaction_warner
from .recommender import (
    AnalysisResult,
    AnalyzerOutcome,
    ReadinessStatus,
    RecommendationService,
    create_recommendation_service,
    get_quick_recommendation,
)
