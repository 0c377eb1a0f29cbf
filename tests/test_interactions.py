"""
Tests for the interaction warner: rule conditions, medication interactions,
stack-wide checks and new-supplement pre-checks.
"""

import pytest

from stackcoach.engine.interactions import (
    ProfileEquals,
    ScheduledAt,
    condition_holds,
    interaction_warner,
)
from stackcoach.models import UserProfile


def _warnings_of(warnings, type_):
    return [w for w in warnings if w.type == type_]


# ─── Conditional rules ────────────────────────────────────────


class TestConditions:

    def test_caffeine_at_bedtime(self, item, context):
        ctx = context(stack=[item("caffeine", time="bedtime")])

        warnings = _warnings_of(interaction_warner.find_stack_warnings(ctx), "timing")

        assert len(warnings) == 1
        assert warnings[0].severity == "warning"
        assert warnings[0].supplement_id == "caffeine"

    def test_caffeine_in_the_morning(self, item, context):
        ctx = context(stack=[item("caffeine", time="morning")])
        assert _warnings_of(interaction_warner.find_stack_warnings(ctx), "timing") == []

    @pytest.mark.parametrize("supplement_id", ["coffee", "koffein-tabs"])
    def test_every_caffeine_keyword_counts_for_the_schedule(self, item, context, supplement_id):
        ctx = context(stack=[item(supplement_id, time="bedtime")])

        warnings = _warnings_of(interaction_warner.find_stack_warnings(ctx), "timing")

        assert len(warnings) == 1
        assert warnings[0].supplement_id == supplement_id

    def test_b_vitamins_at_bedtime(self, item, context):
        ctx = context(stack=[item("b-complex", time="bedtime")])

        warnings = interaction_warner.find_stack_warnings(ctx)

        assert [w.severity for w in _warnings_of(warnings, "timing")] == ["warning"]

    def test_profile_condition(self, item, context):
        stack = [item("caffeine", time="morning")]

        with_profile = interaction_warner.find_stack_warnings(
            context(stack=stack, profile=UserProfile(caffeine_level="high"))
        )
        without_profile = interaction_warner.find_stack_warnings(context(stack=stack))

        assert len(_warnings_of(with_profile, "dosage")) == 1
        assert _warnings_of(without_profile, "dosage") == []

    def test_scheduled_at(self, item, context):
        ctx = context(stack=[item("melatonin", time="bedtime")])

        assert condition_holds(ScheduledAt(triggers=("melatonin",), slots=("bedtime",)), ctx)
        assert not condition_holds(ScheduledAt(triggers=("melatonin",), slots=("morning",)), ctx)

    def test_profile_equals_without_profile(self, context):
        assert not condition_holds(ProfileEquals(field="chronotype", value="late"), context())

    def test_unknown_condition(self, context):
        with pytest.raises(TypeError):
            condition_holds("always", context())


# ─── Medication interactions ──────────────────────────────────


class TestMedicationInteractions:

    def test_contraindicated(self, item, context):
        ctx = context(
            stack=[item("omega-3", name="Fish Oil")],
            profile=UserProfile(medications=("blood-thinners",)),
        )

        warnings = _warnings_of(interaction_warner.find_stack_warnings(ctx), "medication")

        assert len(warnings) == 1
        assert warnings[0].severity == "critical"
        assert "CONTRAINDICATED with blood thinners" in warnings[0].message
        assert warnings[0].affected_supplements == ["Fish Oil"]

    def test_warning_and_info_levels(self, item, context):
        ctx = context(
            stack=[item("caffeine"), item("magnesium")],
            profile=UserProfile(medications=("blood-pressure",)),
        )

        severities = {
            w.supplement_id: w.severity
            for w in _warnings_of(interaction_warner.find_stack_warnings(ctx), "medication")
        }

        assert severities == {"caffeine": "warning", "magnesium": "info"}

    @pytest.mark.parametrize("medications", [(), ("none", "blood-thinners"), ("unknown-category",)])
    def test_no_medication_warnings(self, item, context, medications):
        ctx = context(stack=[item("omega-3")], profile=UserProfile(medications=medications))
        assert interaction_warner.check_medication_interactions(ctx) == []


# ─── Stack-wide checks ────────────────────────────────────────


class TestStackWarnings:

    def test_too_many_supplements(self, item, context):
        ctx = context(stack=[item(f"supp-{i}") for i in range(16)])

        warnings = [
            w for w in interaction_warner.find_all_warnings(ctx)
            if "16 supplements" in w.message
        ]

        assert len(warnings) == 1
        assert warnings[0].severity == "warning"
        assert warnings[0].supplement_id == "stack"

    def test_duplicate_ids_do_not_count(self, item, context):
        stack = [item(f"supp-{i}") for i in range(15)] + [item("supp-0")]
        assert interaction_warner.check_stack_specific_warnings(context(stack=stack)) == []

    def test_dopaminergic_stack(self, item, context):
        ctx = context(stack=[item("caffeine"), item("l-tyrosine"), item("mucuna")])

        warnings = interaction_warner.check_stack_specific_warnings(ctx)

        assert len(warnings) == 1
        assert warnings[0].supplement_name == "Dopamine stack"
        assert len(warnings[0].affected_supplements) == 3

    def test_serotonergic_stack_is_critical(self, item, context):
        ctx = context(stack=[item("5-htp"), item("st-johns-wort"), item("zinc")])

        recommendations = interaction_warner.generate_warning_recommendations(ctx)

        assert recommendations[0].priority == "critical"
        serotonin = [r for r in recommendations if r.title.endswith("Serotonin stack")]
        assert len(serotonin) == 1
        assert serotonin[0].id == "warning-stack-contraindication"
        assert serotonin[0].confidence == 0.95

    def test_custom_stack_size_limit(self, item, context):
        ctx = context(stack=[item(f"supp-{i}") for i in range(4)])
        warnings = interaction_warner.check_stack_specific_warnings(ctx, max_stack_size=3)
        assert len(warnings) == 1


# ─── Recommendations ──────────────────────────────────────────


class TestWarningRecommendations:

    def test_severity_maps_to_priority(self, item, context):
        ctx = context(stack=[item("zinc"), item("melatonin"), item("st-johns-wort")])

        priorities = {
            r.supplement: r.priority
            for r in interaction_warner.generate_warning_recommendations(ctx)
        }

        assert priorities == {"Zinc": "low", "Melatonin": "medium", "St Johns Wort": "critical"}

    def test_ashwagandha_gets_no_fish_oil_warning(self, item, context):
        ctx = context(stack=[item("ashwagandha"), item("vitamin-e")])

        messages = [w.message for w in interaction_warner.find_stack_warnings(ctx)]

        assert not any("fish oil" in m for m in messages)
        assert any(m.startswith("Adaptogens") for m in messages)

    def test_one_warning_per_rule_and_item(self, item, context):
        ctx = context(stack=[item("omega-3", name="Omega-3 Fish Oil (EPA/DHA)")])
        assert len(interaction_warner.find_stack_warnings(ctx)) == 1


# ─── New supplement pre-check ─────────────────────────────────


class TestNewSupplementWarnings:

    def test_absorption_conflict_with_stack(self, item):
        warnings = interaction_warner.check_new_supplement_warnings(
            "iron", "Iron Bisglycinate", [item("zinc"), item("vitamin-c")]
        )

        conflicts = _warnings_of(warnings, "interaction")
        messages = [w.message for w in conflicts]
        assert "Zinc and iron compete for absorption. Take them separately." in messages
        assert any(w.affected_supplements == ["Zinc"] for w in conflicts)

    def test_conditional_rules_are_skipped(self):
        warnings = interaction_warner.check_new_supplement_warnings("caffeine", "Caffeine", [])
        assert warnings == []

    def test_plain_rules_apply(self):
        warnings = interaction_warner.check_new_supplement_warnings("melatonin", "Melatonin", [])
        assert [w.severity for w in warnings] == ["warning"]
