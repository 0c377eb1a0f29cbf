"""
Tests for the recommendation service: ordering, filtering, readiness,
chat summary and the failure policy for analyzers.
"""

import pytest

from stackcoach.engine import (
    RecommendationService,
    SafetyCheckError,
    create_recommendation_service,
    get_quick_recommendation,
)
from stackcoach.engine.interactions import interaction_warner
from stackcoach.engine.recommender import sort_by_priority
from stackcoach.engine.synergy import synergy_checker
from stackcoach.engine.timing import timing_optimizer
from stackcoach.models import Recommendation


def _rec(rec_id, priority):
    return Recommendation(id=rec_id, type="lifestyle", priority=priority, title=rec_id, message=rec_id)


def _ready_history(journal, check_in, days=7, check_ins=14):
    entries = [journal(day, sleep=7) for day in range(days)]
    events = [check_in("other", day % days) for day in range(check_ins)]
    return entries, events


# ─── Ordering ─────────────────────────────────────────────────


class TestOrdering:

    def test_priority_order_is_total(self):
        ordered = sort_by_priority([_rec("a", "low"), _rec("b", "high"), _rec("c", "critical"), _rec("d", "medium")])
        assert [r.priority for r in ordered] == ["critical", "high", "medium", "low"]

    def test_sort_is_stable(self):
        ordered = sort_by_priority([_rec("first", "medium"), _rec("x", "high"), _rec("second", "medium")])
        assert [r.id for r in ordered] == ["x", "first", "second"]

    def test_merged_output(self, item, context, settings):
        service = RecommendationService(context(stack=[item("zinc"), item("iron")]), settings)

        recommendations = service.generate_all()

        assert recommendations[0].type == "synergy"
        assert recommendations[0].priority == "high"
        # Warnings keep their place ahead of later analyzers at equal priority
        low = [r.type for r in recommendations if r.priority == "low"]
        assert low[0] == "warning"
        assert service.failures == []

    def test_get_top(self, item, context, settings):
        stack = [item("zinc"), item("iron"), item("magnesium", time="morning"), item("melatonin")]
        service = RecommendationService(context(stack=stack), settings)

        assert len(service.get_top()) == min(5, len(service.generate_all()))
        assert service.get_top(1) == service.generate_all()[:1]
        assert service.get_top(0) == []

    def test_get_by_type(self, item, context, settings):
        service = RecommendationService(context(stack=[item("zinc"), item("iron")]), settings)

        assert {r.type for r in service.get_by_type("warning")} == {"warning"}
        with pytest.raises(ValueError):
            service.get_by_type("bogus")


# ─── Readiness ────────────────────────────────────────────────


class TestReadiness:

    @pytest.mark.parametrize("days,check_ins,ready,message", [
        (6, 20, False, "1 more days of journal entries"),
        (7, 13, False, "1 more check-ins"),
        (7, 14, True, "Enough data"),
    ])
    def test_boundaries(self, journal, check_in, context, settings, days, check_ins, ready, message):
        entries, events = _ready_history(journal, check_in, days, check_ins)
        status = RecommendationService(context(journal=entries, check_ins=events), settings).has_enough_data()

        assert status.ready is ready
        assert message in status.recommendation
        assert status.journal_days == days
        assert status.check_ins == check_ins

    def test_thresholds_from_settings(self, journal, check_in, context, settings):
        entries, events = _ready_history(journal, check_in, 3, 3)
        relaxed = settings.model_copy(update={"min_journal_days": 3, "min_check_ins": 3})

        assert RecommendationService(context(journal=entries, check_ins=events), relaxed).has_enough_data().ready


# ─── Chat summary ─────────────────────────────────────────────


class TestChatSummary:

    def test_not_ready(self, context, settings):
        summary = RecommendationService(context(), settings).generate_chat_summary()
        assert summary == "7 more days of journal entries for your first insights."

    def test_all_good(self, journal, check_in, context, settings):
        entries, events = _ready_history(journal, check_in)
        summary = RecommendationService(context(journal=entries, check_ins=events), settings).generate_chat_summary()
        assert summary.startswith("All good")

    def test_important(self, journal, check_in, item, context, settings):
        entries, events = _ready_history(journal, check_in)
        service = RecommendationService(
            context(stack=[item("zinc"), item("iron")], journal=entries, check_ins=events),
            settings,
        )

        assert service.generate_chat_summary() == f"Important: {service.generate_all()[0].message}"

    def test_insight(self, journal, check_in, item, context, settings):
        entries, events = _ready_history(journal, check_in)
        service = RecommendationService(
            context(stack=[item("magnesium", dosage="400mg", time="morning")], journal=entries, check_ins=events),
            settings,
        )

        summary = service.generate_chat_summary()

        assert summary.startswith("Insight: Magnesium works best before bed")


# ─── Failure policy ───────────────────────────────────────────


class TestFailurePolicy:

    def test_advisory_analyzer_fails_open(self, monkeypatch, item, context, settings):
        def boom(ctx):
            raise RuntimeError("timing table corrupted")

        monkeypatch.setattr(timing_optimizer, "generate_timing_recommendations", boom)
        service = RecommendationService(context(stack=[item("zinc"), item("iron", time="evening")]), settings)

        recommendations = service.generate_all()

        assert "timing" not in {r.type for r in recommendations}
        assert recommendations[0].type == "synergy"
        assert [(f.name, f.status) for f in service.failures] == [("timing", "failed")]
        assert "timing table corrupted" in service.failures[0].error

    def test_repeated_runs_record_one_failure_per_step(self, monkeypatch, item, context, settings):
        def boom(ctx):
            raise RuntimeError("pair table missing")

        monkeypatch.setattr(synergy_checker, "find_missing_synergy_partners", boom)
        service = RecommendationService(context(stack=[item("vitamin-d")]), settings)

        service.perform_full_analysis()
        result = service.perform_full_analysis()
        assert service.get_missing_synergy_partners() == []

        assert [f.name for f in result.failures] == ["missing_partners"]
        assert [f.name for f in service.failures] == ["missing_partners"]

    def test_later_success_clears_failure(self, monkeypatch, item, context, settings):
        def boom(ctx):
            raise RuntimeError("pair table missing")

        service = RecommendationService(context(stack=[item("vitamin-d")]), settings)
        monkeypatch.setattr(synergy_checker, "find_missing_synergy_partners", boom)
        service.get_missing_synergy_partners()
        monkeypatch.undo()

        missing = service.get_missing_synergy_partners()

        assert [m.missing_partner for m in missing] == ["vitamin-k2"]
        assert service.failures == []

    def test_warner_failure_propagates(self, monkeypatch, item, context, settings):
        def boom(ctx, max_stack_size=15):
            raise KeyError("severity")

        monkeypatch.setattr(interaction_warner, "generate_warning_recommendations", boom)
        service = RecommendationService(context(stack=[item("zinc")]), settings)

        with pytest.raises(SafetyCheckError):
            service.generate_all()


# ─── Full analysis ────────────────────────────────────────────


class TestFullAnalysis:

    def test_sleep_split_scenario(self, journal, item, context, settings):
        entries = [journal(day, sleep=8, energy=8) for day in range(5)]
        entries += [journal(5 + day, sleep=4, energy=4) for day in range(5)]
        service = RecommendationService(context(stack=[item("magnesium")], journal=entries), settings)

        result = service.perform_full_analysis(period="week")

        assert result.period == "week"
        assert result.correlations == []
        patterns = {p.pattern: p for p in result.lifestyle_patterns}
        assert patterns["sleep_energy"].impact[0].change > 0
        assert result.failures == []

    def test_bundle_contents(self, item, context, settings):
        stack = [item("vitamin-d", dosage="20000 IU", time="evening"), item("caffeine", time="bedtime")]
        result = RecommendationService(context(stack=stack), settings).perform_full_analysis()

        data = result.to_dict()

        assert data["period"] == "month"
        assert data["user_id"] == "user-1"
        assert [m["missing_partner"] for m in data["missing_partners"]] == ["vitamin-k2"]
        assert any(w["type"] == "timing" for w in data["warnings"])
        assert {d["supplement_id"]: d["status"] for d in data["dosage_analysis"]} == {
            "vitamin-d": "above_max",
            "caffeine": "unspecified",
        }
        assert {t["supplement_id"] for t in data["timing_analysis"]} == {"vitamin-d", "caffeine"}
        assert len(data["recommendations"]) == len(result.recommendations)


# ─── Helpers ──────────────────────────────────────────────────


class TestHelpers:

    def test_quick_recommendation(self, item, context):
        assert get_quick_recommendation(context()) is None
        quick = get_quick_recommendation(context(stack=[item("5-htp"), item("st-johns-wort")]))
        assert quick.priority == "critical"

    def test_create_service(self, item, settings):
        service = create_recommendation_service("user-9", [], [], [item("zinc"), item("iron")], settings=settings)

        assert service.context.user_id == "user-9"
        assert service.get_by_type("synergy")[0].id == "synergy-zinc-iron"
