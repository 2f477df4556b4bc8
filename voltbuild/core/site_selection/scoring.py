"""Weighted site scorer for mining site candidates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

MAX_CRITERION_SCORE = 10


class Criterion(BaseModel):
    key: str
    label: str
    weight: int
    description: str


CRITERIA: tuple[Criterion, ...] = (
    Criterion(key="energy_cost", label="Energy Cost", weight=25, description="All-in $/kWh competitiveness"),
    Criterion(key="power_capacity", label="Power Capacity", weight=20, description="Available MW for current and future needs"),
    Criterion(key="interconnection_timeline", label="Interconnection Timeline", weight=15, description="Speed to energization"),
    Criterion(key="regulatory", label="Regulatory Environment", weight=12, description="Permitting ease and crypto stance"),
    Criterion(key="climate", label="Climate Advantage", weight=10, description="Cooling efficiency and PUE impact"),
    Criterion(key="land_cost", label="Land Cost", weight=8, description="Purchase or lease economics"),
    Criterion(key="infrastructure", label="Infrastructure", weight=5, description="Roads, fibre, water, workforce"),
    Criterion(key="expansion", label="Expansion Potential", weight=5, description="Room to grow beyond initial build"),
)

# (minimum score, grade, label), checked top down
GRADE_BANDS: tuple[tuple[Decimal, str, str], ...] = (
    (Decimal("8.5"), "A", "Excellent"),
    (Decimal("7.5"), "B", "Good"),
    (Decimal("6.5"), "C", "Average"),
    (Decimal("5"), "D", "Below Average"),
)

EXAMPLE_SITES: tuple[dict, ...] = (
    {
        "name": "Alberta Heartland",
        "location": "Alberta, Canada",
        "scores": {
            "energy_cost": 9, "power_capacity": 10, "interconnection_timeline": 8, "regulatory": 9,
            "climate": 10, "land_cost": 8, "infrastructure": 7, "expansion": 9,
        },
    },
    {
        "name": "West Texas Site",
        "location": "ERCOT, Texas",
        "scores": {
            "energy_cost": 8, "power_capacity": 9, "interconnection_timeline": 5, "regulatory": 8,
            "climate": 4, "land_cost": 9, "infrastructure": 6, "expansion": 8,
        },
    },
    {
        "name": "Paraguay Hydro",
        "location": "Hernandarias",
        "scores": {
            "energy_cost": 10, "power_capacity": 7, "interconnection_timeline": 6, "regulatory": 5,
            "climate": 3, "land_cost": 9, "infrastructure": 4, "expansion": 6,
        },
    },
)


class SiteScore(BaseModel):
    weighted_score: float
    grade: str
    grade_label: str
    recommendation: str
    breakdown: dict[str, float]


def weighted_score(scores: dict[str, float]) -> float:
    """Sum of score x weight / 100 over all criteria, rounded to one decimal.

    Raises ValueError when a criterion is missing or out of range.
    """
    total = Decimal(0)
    for criterion in CRITERIA:
        if criterion.key not in scores:
            raise ValueError(f"Missing score for criterion '{criterion.key}'")
        value = Decimal(str(scores[criterion.key]))
        if value < 0 or value > MAX_CRITERION_SCORE:
            raise ValueError(f"Score for '{criterion.key}' must be between 0 and {MAX_CRITERION_SCORE}")
        total += value * criterion.weight
    return float((total / 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def grade_for(score: float) -> tuple[str, str]:
    value = Decimal(str(score))
    for minimum, grade, label in GRADE_BANDS:
        if value >= minimum:
            return grade, label
    return "F", "Poor"


def recommendation_for(score: float) -> str:
    if score >= 8:
        return "Proceed with full due diligence"
    if score >= 6:
        return "Further investigation recommended"
    return "Consider alternative sites"


def score_site(scores: dict[str, float]) -> SiteScore:
    score = weighted_score(scores)
    grade, label = grade_for(score)
    return SiteScore(
        weighted_score=score,
        grade=grade,
        grade_label=label,
        recommendation=recommendation_for(score),
        breakdown={
            c.key: round(float(scores[c.key]) * c.weight / 100, 2) for c in CRITERIA
        },
    )


def score_example_sites() -> list[dict]:
    results = []
    for site in EXAMPLE_SITES:
        scored = score_site(site["scores"])
        results.append({
            "name": site["name"],
            "location": site["location"],
            "scores": site["scores"],
            "weighted_score": scored.weighted_score,
            "grade": scored.grade,
            "grade_label": scored.grade_label,
        })
    return results
