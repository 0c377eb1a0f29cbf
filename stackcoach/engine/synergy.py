"""
Stack Synergy Database

Known beneficial and detrimental combinations of supplement classes.

Sources:
- PubMed research articles
- Examine.com interaction database
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from types import MappingProxyType
from typing import List, Optional, Tuple

from stackcoach.models import AnalysisContext, Recommendation, StackItem
from .knowledge import item_matches

logger = logging.getLogger(__name__)

ANY = "any"

SYNERGY_CONFIDENCE = 0.9


@dataclass(frozen=True)
class SynergyRule:
    """A known interaction between two supplement classes. Order doesn't matter."""
    supplement_a: str
    supplement_b: str
    type: str  # "synergistic", "antagonistic"
    description: str
    recommendation: str


SYNERGY_RULES: Tuple[SynergyRule, ...] = (
    # Synergistic combinations
    SynergyRule(
        supplement_a="vitamin-d",
        supplement_b="vitamin-k2",
        type="synergistic",
        description="Vitamin K2 directs calcium into the bones and helps prevent arterial calcification",
        recommendation="Perfect combination! Take them together for the best calcium utilization.",
    ),
    SynergyRule(
        supplement_a="vitamin-d",
        supplement_b="magnesium",
        type="synergistic",
        description="Magnesium is required to activate vitamin D",
        recommendation="Good combination! Magnesium activates vitamin D in the body.",
    ),
    SynergyRule(
        supplement_a="caffeine",
        supplement_b="l-theanine",
        type="synergistic",
        description="L-theanine smooths caffeine's effect and reduces jitters",
        recommendation="Smart stack! L-theanine + caffeine for calm focus without the jitters.",
    ),
    SynergyRule(
        supplement_a="iron",
        supplement_b="vitamin-c",
        type="synergistic",
        description="Vitamin C markedly improves iron absorption",
        recommendation="Take iron together with vitamin C for up to 3x better absorption.",
    ),
    SynergyRule(
        supplement_a="curcumin",
        supplement_b="black-pepper",
        type="synergistic",
        description="Piperine from black pepper increases curcumin absorption by up to 2000%",
        recommendation="Always combine curcumin with piperine/black pepper!",
    ),
    SynergyRule(
        supplement_a="omega-3",
        supplement_b="vitamin-e",
        type="synergistic",
        description="Vitamin E protects omega-3 fatty acids from oxidation",
        recommendation="Good combination for antioxidant protection.",
    ),
    SynergyRule(
        supplement_a="creatine",
        supplement_b="beta-alanine",
        type="synergistic",
        description="Both improve training performance through different mechanisms",
        recommendation="Strong combination for strength and endurance.",
    ),
    SynergyRule(
        supplement_a="ashwagandha",
        supplement_b="rhodiola",
        type="synergistic",
        description="Two adaptogens with complementary effect profiles",
        recommendation="Synergistic stress reduction and energy.",
    ),

    # Antagonistic combinations
    SynergyRule(
        supplement_a="zinc",
        supplement_b="copper",
        type="antagonistic",
        description="Zinc and copper compete for the same absorption pathways",
        recommendation="Take zinc and copper separately (at least 2h apart).",
    ),
    SynergyRule(
        supplement_a="calcium",
        supplement_b="iron",
        type="antagonistic",
        description="Calcium inhibits iron absorption",
        recommendation="Don't take them together. Keep at least 2h between them.",
    ),
    SynergyRule(
        supplement_a="calcium",
        supplement_b="magnesium",
        type="antagonistic",
        description="High calcium doses can reduce magnesium absorption",
        recommendation="At high doses take them separately (e.g. morning/evening).",
    ),
    SynergyRule(
        supplement_a="zinc",
        supplement_b="iron",
        type="antagonistic",
        description="Zinc and iron compete for absorption",
        recommendation="Don't take them at the same time. Keep at least 2h between them.",
    ),
    SynergyRule(
        supplement_a="caffeine",
        supplement_b="iron",
        type="antagonistic",
        description="Caffeine inhibits iron absorption",
        recommendation="Don't take iron with coffee or tea.",
    ),
    SynergyRule(
        supplement_a="vitamin-e",
        supplement_b="vitamin-k",
        type="antagonistic",
        description="High vitamin E doses can impair the effect of vitamin K",
        recommendation="Watch your vitamin K status when taking high doses of vitamin E.",
    ),
    SynergyRule(
        supplement_a="st-johns-wort",
        supplement_b=ANY,
        type="antagonistic",
        description="St. John's Wort interacts with many substances",
        recommendation="Caution: St. John's Wort has many interactions. Talk to your doctor.",
    ),
)

# Colloquial names for each class key
ALIASES = MappingProxyType({
    "vitamin-d": ("vitamin d", "d3", "cholecalciferol"),
    "vitamin-k2": ("vitamin k2", "k2", "mk-7", "mk7", "menaquinone"),
    "vitamin-k": ("vitamin k", "k2", "mk-7", "menaquinone", "phylloquinone"),
    "vitamin-c": ("vitamin c", "ascorbic", "ascorbinsäure"),
    "vitamin-e": ("vitamin e", "tocopherol"),
    "caffeine": ("koffein", "coffee", "kaffee"),
    "l-theanine": ("theanin", "theanine"),
    "omega-3": ("omega 3", "fish oil", "fish-oil", "fischöl"),
    "magnesium": ("magnesiumglycinat", "magnesiumcitrat"),
    "iron": ("eisen", "ferrous", "ferritin"),
    "zinc": ("zink",),
    "copper": ("kupfer",),
    "calcium": ("kalzium", "calcium carbonate"),
    "curcumin": ("kurkuma", "turmeric"),
    "black-pepper": ("black pepper", "pfeffer", "piperin", "piperine", "bioperine"),
    "beta-alanine": ("beta alanine",),
    "ashwagandha": ("withania",),
    "rhodiola": ("rosenwurz",),
    "st-johns-wort": ("st. john", "st john", "johanniskraut", "hypericum"),
})


@dataclass(frozen=True)
class ImportantPair:
    has: Tuple[str, ...]
    needs: Tuple[str, ...]
    partner: str
    reason: str


# Partners that should almost always accompany a supplement
IMPORTANT_PAIRS: Tuple[ImportantPair, ...] = (
    ImportantPair(
        has=("vitamin-d", "vitamin d", "d3"),
        needs=("vitamin-k2", "vitamin k2", "k2", "mk-7"),
        partner="vitamin-k2",
        reason="Vitamin K2 helps route calcium correctly and prevents arterial calcification",
    ),
    ImportantPair(
        has=("curcumin", "kurkuma", "turmeric"),
        needs=("piperin", "black-pepper", "black pepper", "bioperine"),
        partner="piperine",
        reason="Piperine increases curcumin absorption by up to 2000%",
    ),
    ImportantPair(
        has=("iron", "eisen"),
        needs=("vitamin-c", "vitamin c", "ascorbic"),
        partner="vitamin-c",
        reason="Vitamin C considerably improves iron absorption",
    ),
)


@dataclass
class StackSynergy:
    """A synergy or antagonism found between two stack items."""
    supplements: Tuple[str, str]
    supplement_names: Tuple[str, str]
    type: str  # "synergistic", "antagonistic"
    description: str
    recommendation: str

    def to_dict(self):
        return {
            "supplements": list(self.supplements),
            "supplement_names": list(self.supplement_names),
            "type": self.type,
            "description": self.description,
            "recommendation": self.recommendation,
        }


@dataclass
class MissingPartner:
    supplement: str
    missing_partner: str
    reason: str

    def to_dict(self):
        return {
            "supplement": self.supplement,
            "missing_partner": self.missing_partner,
            "reason": self.reason,
        }


def matches_class(item: StackItem, class_key: str) -> bool:
    """Does a stack item belong to a supplement class (by key or alias)?"""
    if class_key == ANY:
        return True
    return item_matches(item, (class_key,) + ALIASES.get(class_key, ()))


class SynergyChecker:
    """Pairwise synergy/antagonism detection over the current stack."""

    def _match_rule(
        self,
        rule: SynergyRule,
        first: StackItem,
        second: StackItem
    ) -> Optional[Tuple[StackItem, StackItem]]:
        """Return the pair ordered as the rule declares it, or None."""
        if matches_class(first, rule.supplement_a) and matches_class(second, rule.supplement_b):
            return first, second
        if matches_class(second, rule.supplement_a) and matches_class(first, rule.supplement_b):
            return second, first
        return None

    def find_stack_synergies(self, context: AnalysisContext) -> List[StackSynergy]:
        synergies = []

        for first, second in combinations(context.stack_by_id.values(), 2):
            for rule in SYNERGY_RULES:
                pair = self._match_rule(rule, first, second)
                if pair is None:
                    continue

                item_a, item_b = pair
                synergies.append(StackSynergy(
                    supplements=(item_a.supplement_id, item_b.supplement_id),
                    supplement_names=(item_a.supplement_name, item_b.supplement_name),
                    type=rule.type,
                    description=rule.description,
                    recommendation=rule.recommendation,
                ))

        logger.debug(f"Found {len(synergies)} stack synergies for user {context.user_id}")
        return synergies

    def generate_synergy_recommendations(self, context: AnalysisContext) -> List[Recommendation]:
        recommendations = []

        for synergy in self.find_stack_synergies(context):
            name_a, name_b = synergy.supplement_names
            is_antagonistic = synergy.type == "antagonistic"

            recommendations.append(Recommendation(
                id=f"synergy-{synergy.supplements[0]}-{synergy.supplements[1]}",
                type="synergy",
                priority="high" if is_antagonistic else "low",
                title=(
                    f"⚠️ Caution: {name_a} + {name_b}"
                    if is_antagonistic
                    else f"✨ Synergy: {name_a} + {name_b}"
                ),
                message=f"{synergy.description}. {synergy.recommendation}",
                confidence=SYNERGY_CONFIDENCE,
            ))

        return recommendations

    def find_missing_synergy_partners(self, context: AnalysisContext) -> List[MissingPartner]:
        """Flag stacks that contain one half of an important pair but not the other."""
        missing = []
        stack = list(context.stack_by_id.values())

        for pair in IMPORTANT_PAIRS:
            holder = next((item for item in stack if item_matches(item, pair.has)), None)
            if holder is None:
                continue

            if any(item_matches(item, pair.needs) for item in stack):
                continue

            missing.append(MissingPartner(
                supplement=holder.supplement_name,
                missing_partner=pair.partner,
                reason=pair.reason,
            ))

        return missing


# Singleton instance
synergy_checker = SynergyChecker()
