"""
Dosage Advisor

Checks the free-text dosage of each stack item against established ranges.

Sources:
- NIH Office of Dietary Supplements fact sheets
- Examine.com dosage guides
"""

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional, Tuple

from stackcoach.models import AnalysisContext, Recommendation, StackItem
from .knowledge import lookup_by_keyword

logger = logging.getLogger(__name__)

DOSAGE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zA-Zµ]+)")
# "1,000 IU" or "1'000 IU", a dot is always a decimal point
THOUSANDS_SEPARATOR = re.compile(r"(?<=\d)[,'](?=\d{3}(?!\d))")

# Mass units normalized to milligrams
MASS_UNITS_MG = MappingProxyType({
    "g": 1000.0,
    "mg": 1.0,
    "mcg": 0.001,
    "µg": 0.001,
    "ug": 0.001,
})

# Below min / FAR_BELOW_FACTOR the under-dose is reported with high priority
FAR_BELOW_FACTOR = 2

DOSAGE_CONFIDENCE = 0.8


@dataclass(frozen=True)
class DosageRange:
    min: float
    max: float
    unit: str
    optimal_range: Tuple[float, float]  # (low, high)

    def format(self, value: float) -> str:
        return f"{value:g}{self.unit}"


DOSAGE_RANGES = MappingProxyType({
    "creatine": DosageRange(min=3, max=10, unit="g", optimal_range=(3, 5)),
    "magnesium": DosageRange(min=200, max=600, unit="mg", optimal_range=(300, 450)),
    "vitamin-d": DosageRange(min=1000, max=10000, unit="IU", optimal_range=(2000, 5000)),
    "omega-3": DosageRange(min=1, max=5, unit="g", optimal_range=(2, 3)),
    "zinc": DosageRange(min=15, max=50, unit="mg", optimal_range=(25, 40)),
    "vitamin-c": DosageRange(min=500, max=2000, unit="mg", optimal_range=(500, 1000)),
    "b-complex": DosageRange(min=1, max=3, unit="capsules", optimal_range=(1, 2)),
    "ashwagandha": DosageRange(min=300, max=900, unit="mg", optimal_range=(300, 600)),
    "l-theanine": DosageRange(min=100, max=400, unit="mg", optimal_range=(100, 200)),
    "caffeine": DosageRange(min=50, max=400, unit="mg", optimal_range=(100, 200)),
})


@dataclass(frozen=True)
class ParsedDosage:
    value: float
    unit: str


@dataclass
class DosageAnalysis:
    """Suggested dosage change for one stack item."""
    supplement_id: str
    supplement_name: str
    current_dosage: Optional[str]
    suggested_dosage: str
    status: str  # "unspecified", "below_min", "above_max", "below_optimal", "above_optimal"
    reason: str
    priority: str

    def to_dict(self):
        return {
            "supplement_id": self.supplement_id,
            "supplement_name": self.supplement_name,
            "current_dosage": self.current_dosage,
            "suggested_dosage": self.suggested_dosage,
            "status": self.status,
            "reason": self.reason,
            "priority": self.priority,
        }


def parse_dosage(text: Optional[str]) -> Optional[ParsedDosage]:
    """Parse '500mg' / '2.5 g' style text. Returns None if there is no number+unit."""
    if not text:
        return None

    match = DOSAGE_PATTERN.search(THOUSANDS_SEPARATOR.sub("", text))
    if not match:
        return None

    return ParsedDosage(value=float(match.group(1)), unit=match.group(2).lower())


def convert_to_unit(dosage: ParsedDosage, unit: str) -> Optional[float]:
    """Express a parsed dosage in the given unit, or None if the units aren't comparable."""
    target = unit.lower()
    if dosage.unit == target or dosage.unit.rstrip("s") == target.rstrip("s"):
        return dosage.value

    if dosage.unit in MASS_UNITS_MG and target in MASS_UNITS_MG:
        return dosage.value * MASS_UNITS_MG[dosage.unit] / MASS_UNITS_MG[target]

    return None


def get_dosage_range(supplement_id: str, supplement_name: str) -> Optional[DosageRange]:
    return lookup_by_keyword(DOSAGE_RANGES, supplement_id, supplement_name)


class DosageAdvisor:
    """Dosage range checks for the current stack."""

    def analyze_dosage(self, item: StackItem) -> Optional[DosageAnalysis]:
        """
        Classify one item's dosage against its range.

        Returns None when the supplement has no known range or the dosage is
        already inside the optimal range.
        """
        dosage_range = get_dosage_range(item.supplement_id, item.supplement_name)
        if dosage_range is None:
            return None

        low, high = dosage_range.optimal_range
        parsed = parse_dosage(item.dosage)
        value = convert_to_unit(parsed, dosage_range.unit) if parsed else None

        def analysis(status, suggested, reason, priority="medium"):
            return DosageAnalysis(
                supplement_id=item.supplement_id,
                supplement_name=item.supplement_name,
                current_dosage=item.dosage,
                suggested_dosage=suggested,
                status=status,
                reason=reason,
                priority=priority,
            )

        if value is None:
            if item.dosage:
                logger.debug(f"Could not interpret dosage '{item.dosage}' for {item.supplement_id}")
            return analysis(
                "unspecified",
                f"{low:g}-{dosage_range.format(high)}",
                "Scientifically recommended range",
            )

        if value < dosage_range.min:
            far_below = value < dosage_range.min / FAR_BELOW_FACTOR
            return analysis(
                "below_min",
                f"at least {dosage_range.format(dosage_range.min)}",
                f"Your current dosage is below the recommended minimum of {dosage_range.format(dosage_range.min)}",
                priority="high" if far_below else "medium",
            )

        if value > dosage_range.max:
            return analysis(
                "above_max",
                f"at most {dosage_range.format(dosage_range.max)}",
                f"Your dosage exceeds the recommended maximum of {dosage_range.format(dosage_range.max)}",
                priority="high",
            )

        if value < low:
            return analysis(
                "below_optimal",
                dosage_range.format(low),
                f"A slight increase to {dosage_range.format(low)} could be more effective",
            )

        if value > high:
            return analysis(
                "above_optimal",
                dosage_range.format(high),
                f"Reducing to {dosage_range.format(high)} is usually just as effective",
            )

        return None

    def analyze_dosages_for_stack(self, context: AnalysisContext) -> List[DosageAnalysis]:
        analyses = []
        for item in context.stack_by_id.values():
            result = self.analyze_dosage(item)
            if result:
                analyses.append(result)
        return analyses

    def generate_dosage_recommendations(self, context: AnalysisContext) -> List[Recommendation]:
        return [
            Recommendation(
                id=f"dosage-{analysis.supplement_id}",
                type="dosage",
                priority=analysis.priority,
                title=f"💊 Dosage: {analysis.supplement_name}",
                message=f"{analysis.reason}. Suggestion: {analysis.suggested_dosage}",
                supplement=analysis.supplement_name,
                confidence=DOSAGE_CONFIDENCE,
            )
            for analysis in self.analyze_dosages_for_stack(context)
        ]


# Singleton instance
dosage_advisor = DosageAdvisor()
