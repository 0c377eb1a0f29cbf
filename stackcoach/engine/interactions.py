"""
Supplement Warnings Database

Safety checks for the current stack:
- Per-supplement warning rules (timing, dosage, interactions, contraindications)
- Medication interactions from the user's profile
- Stack-wide checks (stack size, dopaminergic and serotonergic load)
- Pre-checks for a supplement the user is about to add

Sources:
- PubMed research articles
- NIH Office of Dietary Supplements
- Clinical pharmacology references
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Optional, Sequence, Tuple, Union

from stackcoach.models import AnalysisContext, Recommendation, StackItem
from .knowledge import SEVERITY_TO_PRIORITY, item_matches, priority_rank, text_matches
from .timing import CAFFEINE_KEYWORDS

logger = logging.getLogger(__name__)

WARNING_CONFIDENCE = 0.95
MAX_STACK_SIZE = 15
DOPAMINE_STACK_THRESHOLD = 3
SEROTONIN_STACK_THRESHOLD = 2

SEVERITY_ICONS = {
    "info": "ℹ️",
    "warning": "⚠️",
    "critical": "🚨",
}


class SafetyCheckError(RuntimeError):
    """The safety checks could not be completed. Never reported as 'no warnings'."""


@dataclass(frozen=True)
class ScheduledAt:
    """Satisfied when a stack item matching `triggers` is taken in one of `slots`."""
    triggers: Tuple[str, ...]
    slots: Tuple[str, ...]


@dataclass(frozen=True)
class ProfileEquals:
    """Satisfied when the user's profile has `field` set to `value`."""
    field: str
    value: str


Condition = Union[ScheduledAt, ProfileEquals]


@dataclass(frozen=True)
class WarningRule:
    triggers: Tuple[str, ...]
    type: str  # "interaction", "timing", "dosage", "contraindication", "medication"
    severity: str  # "info", "warning", "critical"
    message: str
    condition: Optional[Condition] = None


@dataclass(frozen=True)
class MedicationInteraction:
    label: str
    contraindicated: Tuple[str, ...] = ()
    warning: Tuple[str, ...] = ()
    info: Tuple[str, ...] = ()


@dataclass
class SupplementWarning:
    """A safety finding for one supplement (or the whole stack)."""
    supplement_id: str
    supplement_name: str
    type: str  # "interaction", "timing", "dosage", "contraindication", "medication"
    severity: str  # "info", "warning", "critical"
    message: str
    affected_supplements: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "affected_supplements": self.affected_supplements,
        }


WARNING_RULES: Tuple[WarningRule, ...] = (
    # CAFFEINE - LATE INTAKE
    WarningRule(
        triggers=CAFFEINE_KEYWORDS,
        type="timing",
        severity="warning",
        message="Caffeine after 2pm can disturb your sleep. Its half-life is about 6 hours.",
        condition=ScheduledAt(triggers=CAFFEINE_KEYWORDS, slots=("evening", "bedtime")),
    ),
    WarningRule(
        triggers=CAFFEINE_KEYWORDS,
        type="dosage",
        severity="warning",
        message="You already consume a lot of caffeine (300mg+). Caffeinated supplements can push you into overdose.",
        condition=ProfileEquals(field="caffeine_level", value="high"),
    ),

    # IRON ABSORPTION
    WarningRule(
        triggers=("iron", "eisen"),
        type="interaction",
        severity="info",
        message="Don't take iron with coffee, tea or calcium. Vitamin C improves absorption.",
    ),

    # FAT-SOLUBLE VITAMIN D
    WarningRule(
        triggers=("vitamin-d", "d3", "cholecalciferol"),
        type="dosage",
        severity="info",
        message="Vitamin D is fat-soluble. Take it with a meal that contains fat.",
    ),

    # MAGNESIUM FORMS
    WarningRule(
        triggers=("magnesium-oxide", "magnesium oxide", "magnesiumoxid"),
        type="dosage",
        severity="warning",
        message="Magnesium oxide has poor bioavailability. Glycinate or citrate are absorbed much better.",
    ),

    # ZINC ON AN EMPTY STOMACH
    WarningRule(
        triggers=("zinc", "zink"),
        type="dosage",
        severity="info",
        message="Zinc on an empty stomach can cause nausea. Take it with a meal.",
    ),

    # MELATONIN DOSE
    WarningRule(
        triggers=("melatonin",),
        type="dosage",
        severity="warning",
        message="Low melatonin doses (0.3-0.5mg) are often more effective than high doses.",
    ),

    # ST. JOHN'S WORT
    WarningRule(
        triggers=("st-johns-wort", "johanniskraut", "hypericum"),
        type="contraindication",
        severity="critical",
        message="St. John's Wort interacts with many medications (birth control, antidepressants, ...). Talk to your doctor!",
    ),

    # FISH OIL STORAGE
    WarningRule(
        triggers=("omega-3", "fish-oil", "fish oil", "fischöl"),
        type="dosage",
        severity="info",
        message="Keep fish oil in the fridge. Rancid oil smells fishy.",
    ),

    # ADAPTOGEN CYCLING
    WarningRule(
        triggers=("ashwagandha", "rhodiola", "adaptogen"),
        type="dosage",
        severity="info",
        message="Adaptogens can lose their effect with continuous use. Cycling (e.g. 6 weeks on, 2 weeks off) is recommended.",
    ),

    # PROBIOTICS TIMING
    WarningRule(
        triggers=("probiotic", "probiotika", "lactobacillus", "bifidobacterium"),
        type="timing",
        severity="info",
        message="Take probiotics on an empty stomach or before meals for the best survival rate.",
    ),

    # B-VITAMINS AT NIGHT
    WarningRule(
        triggers=("b-complex", "b-komplex", "vitamin-b12", "b12"),
        type="timing",
        severity="warning",
        message="B-vitamins can be energizing. Don't take them right before bed.",
        condition=ScheduledAt(triggers=("b-complex", "b-komplex", "b12"), slots=("bedtime",)),
    ),

    # CREATINE HYDRATION
    WarningRule(
        triggers=("creatine", "kreatin"),
        type="dosage",
        severity="info",
        message="Creatine increases your water needs. Drink an extra 0.5-1L of water daily.",
    ),

    # VITAMIN A ACCUMULATION
    WarningRule(
        triggers=("vitamin-a", "retinol"),
        type="dosage",
        severity="warning",
        message="Vitamin A is fat-soluble and can accumulate. Don't exceed 3000 µg daily without medical advice.",
    ),
)

MEDICATION_INTERACTIONS = MappingProxyType({
    "blood-thinners": MedicationInteraction(
        label="blood thinners",
        contraindicated=("omega-3", "fish-oil", "fischöl", "vitamin-e", "ginkgo", "garlic", "knoblauch", "ginger", "ingwer"),
        warning=("curcumin", "turmeric", "kurkuma", "nattokinase", "bromelain"),
        info=("vitamin-k",),  # affects warfarin dosing
    ),
    "antidepressants": MedicationInteraction(
        label="antidepressants",
        contraindicated=("st-johns-wort", "johanniskraut", "5-htp", "sam-e", "l-tryptophan"),
        warning=("rhodiola", "l-tyrosine", "tyrosin", "ginseng"),
        info=("omega-3",),
    ),
    "blood-pressure": MedicationInteraction(
        label="blood pressure medication",
        contraindicated=("licorice", "süßholz", "ephedra", "ma-huang"),
        warning=("caffeine", "koffein", "ginseng", "yohimbine"),
        info=("coq10", "magnesium"),
    ),
    "thyroid": MedicationInteraction(
        label="thyroid medication",
        warning=("soy", "soja", "kelp", "iodine", "jod"),
        info=("calcium", "iron", "eisen"),  # at least 4h apart
    ),
    "diabetes": MedicationInteraction(
        label="diabetes medication",
        warning=("chromium", "chrom", "alpha-lipoic", "berberine", "cinnamon", "zimt", "bitter-melon"),
        info=("magnesium", "vitamin-d"),
    ),
    "birth-control": MedicationInteraction(
        label="birth control",
        contraindicated=("st-johns-wort", "johanniskraut"),
        warning=("activated-charcoal", "aktivkohle"),
        info=("probiotics", "probiotika"),
    ),
})

MEDICATION_MESSAGES = {
    "critical": "{name} is CONTRAINDICATED with {label}. Medical advice required!",
    "warning": "{name} can interact with {label}. Check with your doctor.",
    "info": "{name} can affect how {label} works. Monitoring recommended.",
}

DOPAMINERGIC = ("caffeine", "koffein", "l-tyrosine", "tyrosin", "mucuna", "l-dopa")
SEROTONERGIC = ("5-htp", "tryptophan", "st-johns-wort", "johanniskraut")

# Absorption antagonists checked before a new supplement joins the stack
ANTAGONISTIC_PAIRS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], str], ...] = (
    (("zinc", "zink"), ("iron", "eisen"), "Zinc and iron compete for absorption. Take them separately."),
    (("calcium", "kalzium"), ("iron", "eisen"), "Calcium inhibits iron absorption. Take them separately."),
    (("zinc", "zink"), ("copper", "kupfer"), "Zinc and copper compete for absorption."),
)


def condition_holds(condition: Condition, context: AnalysisContext) -> bool:
    if isinstance(condition, ScheduledAt):
        return any(
            item.time in condition.slots and item_matches(item, condition.triggers)
            for item in context.stack_by_id.values()
        )

    if isinstance(condition, ProfileEquals):
        if context.profile is None:
            return False
        return getattr(context.profile, condition.field, None) == condition.value

    raise TypeError(f"Unknown warning condition: {condition!r}")


class InteractionWarner:
    """Safety warnings for the current stack."""

    def find_stack_warnings(self, context: AnalysisContext) -> List[SupplementWarning]:
        """Rule-based and medication warnings, deduplicated per supplement."""
        warnings = []
        seen = set()

        for item in context.stack_by_id.values():
            for rule in WARNING_RULES:
                if not item_matches(item, rule.triggers):
                    continue
                if rule.condition is not None and not condition_holds(rule.condition, context):
                    continue

                key = f"{item.supplement_id}-{rule.type}-{rule.message[:20]}"
                if key in seen:
                    continue
                seen.add(key)

                warnings.append(SupplementWarning(
                    supplement_id=item.supplement_id,
                    supplement_name=item.supplement_name,
                    type=rule.type,
                    severity=rule.severity,
                    message=rule.message,
                ))

        for warning in self.check_medication_interactions(context):
            key = f"med-{warning.supplement_id}-{warning.message[:20]}"
            if key in seen:
                continue
            seen.add(key)
            warnings.append(warning)

        return warnings

    def check_medication_interactions(self, context: AnalysisContext) -> List[SupplementWarning]:
        warnings = []
        medications = context.profile.medications if context.profile else ()

        if not medications or "none" in medications:
            return warnings

        for medication in medications:
            interaction = MEDICATION_INTERACTIONS.get(medication)
            if interaction is None:
                logger.debug(f"No interaction data for medication category '{medication}'")
                continue

            for item in context.stack_by_id.values():
                for severity, keywords in (
                    ("critical", interaction.contraindicated),
                    ("warning", interaction.warning),
                    ("info", interaction.info),
                ):
                    if not item_matches(item, keywords):
                        continue

                    warnings.append(SupplementWarning(
                        supplement_id=item.supplement_id,
                        supplement_name=item.supplement_name,
                        type="medication",
                        severity=severity,
                        message=MEDICATION_MESSAGES[severity].format(
                            name=item.supplement_name,
                            label=interaction.label,
                        ),
                        affected_supplements=[item.supplement_name],
                    ))

        return warnings

    def check_stack_specific_warnings(
        self,
        context: AnalysisContext,
        max_stack_size: int = MAX_STACK_SIZE
    ) -> List[SupplementWarning]:
        warnings = []
        stack = list(context.stack_by_id.values())

        if len(stack) > max_stack_size:
            warnings.append(SupplementWarning(
                supplement_id="stack",
                supplement_name="Whole stack",
                type="dosage",
                severity="warning",
                message=(
                    f"You have {len(stack)} supplements in your stack. That can hurt absorption "
                    f"and is hard to track. Focus on the most important ones."
                ),
            ))

        dopamine_items = [item for item in stack if item_matches(item, DOPAMINERGIC)]
        if len(dopamine_items) >= DOPAMINE_STACK_THRESHOLD:
            warnings.append(SupplementWarning(
                supplement_id="stack",
                supplement_name="Dopamine stack",
                type="interaction",
                severity="warning",
                message="Several dopaminergic supplements can lead to tolerance and downregulation. Cycling recommended.",
                affected_supplements=[item.supplement_name for item in dopamine_items],
            ))

        serotonin_items = [item for item in stack if item_matches(item, SEROTONERGIC)]
        if len(serotonin_items) >= SEROTONIN_STACK_THRESHOLD:
            warnings.append(SupplementWarning(
                supplement_id="stack",
                supplement_name="Serotonin stack",
                type="contraindication",
                severity="critical",
                message="Combining several serotonergic substances can be dangerous (serotonin syndrome). Not without medical advice!",
                affected_supplements=[item.supplement_name for item in serotonin_items],
            ))

        return warnings

    def find_all_warnings(
        self,
        context: AnalysisContext,
        max_stack_size: int = MAX_STACK_SIZE
    ) -> List[SupplementWarning]:
        warnings = self.find_stack_warnings(context)
        warnings.extend(self.check_stack_specific_warnings(context, max_stack_size))

        for warning in warnings:
            if warning.severity == "critical":
                logger.warning(
                    f"Critical {warning.type} warning for user {context.user_id}: {warning.supplement_id}"
                )

        return warnings

    def generate_warning_recommendations(
        self,
        context: AnalysisContext,
        max_stack_size: int = MAX_STACK_SIZE
    ) -> List[Recommendation]:
        recommendations = [
            Recommendation(
                id=f"warning-{warning.supplement_id}-{warning.type}",
                type="warning",
                priority=SEVERITY_TO_PRIORITY[warning.severity],
                title=f"{SEVERITY_ICONS[warning.severity]} {warning.supplement_name}",
                message=warning.message,
                supplement=warning.supplement_name,
                confidence=WARNING_CONFIDENCE,
            )
            for warning in self.find_all_warnings(context, max_stack_size)
        ]

        # Critical first
        return sorted(recommendations, key=lambda r: priority_rank(r.priority))

    def check_new_supplement_warnings(
        self,
        supplement_id: str,
        supplement_name: str,
        current_stack: Sequence[StackItem]
    ) -> List[SupplementWarning]:
        """
        Warnings for a supplement the user is about to add.

        Conditional rules are skipped since they depend on the final schedule.
        """
        warnings = []

        for rule in WARNING_RULES:
            if rule.condition is not None:
                continue
            if not text_matches(supplement_id, supplement_name, rule.triggers):
                continue

            warnings.append(SupplementWarning(
                supplement_id=supplement_id,
                supplement_name=supplement_name,
                type=rule.type,
                severity=rule.severity,
                message=rule.message,
            ))

        for first, second, message in ANTAGONISTIC_PAIRS:
            new_is_first = text_matches(supplement_id, supplement_name, first)
            new_is_second = text_matches(supplement_id, supplement_name, second)

            for item in current_stack:
                if (new_is_first and item_matches(item, second)) or (new_is_second and item_matches(item, first)):
                    warnings.append(SupplementWarning(
                        supplement_id=supplement_id,
                        supplement_name=supplement_name,
                        type="interaction",
                        severity="warning",
                        message=message,
                        affected_supplements=[item.supplement_name],
                    ))

        return warnings


# Singleton instance
interaction_warner = InteractionWarner()
