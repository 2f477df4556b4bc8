"""Jurisdiction ratings and a weighted recommender."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

FACTORS: tuple[str, ...] = (
    "energy_cost",
    "regulatory",
    "permitting_speed",
    "climate",
    "grid_capacity",
)


class Jurisdiction(BaseModel):
    name: str
    crypto_stance: str
    permitting: str
    timeline: str
    regulatory_score: int
    ratings: dict[str, float]
    highlights: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)


JURISDICTIONS: tuple[Jurisdiction, ...] = (
    Jurisdiction(
        name="Texas",
        crypto_stance="Friendly",
        permitting="Moderate",
        timeline="6-12 months",
        regulatory_score=85,
        ratings={"energy_cost": 8, "regulatory": 8.5, "permitting_speed": 7, "climate": 5, "grid_capacity": 9},
        highlights=["No state income tax", "ERCOT market access", "Senate Bill 1929 protections"],
        risks=["Grid reliability scrutiny", "Curtailment requirements"],
    ),
    Jurisdiction(
        name="Alberta",
        crypto_stance="Friendly",
        permitting="Streamlined",
        timeline="6-9 months",
        regulatory_score=90,
        ratings={"energy_cost": 8, "regulatory": 9, "permitting_speed": 8, "climate": 10, "grid_capacity": 9},
        highlights=["Self-Retailer model", "Clear regulations", "Industrial zoning available"],
        risks=["Carbon pricing", "Federal scrutiny potential"],
    ),
    Jurisdiction(
        name="Wyoming",
        crypto_stance="Very Friendly",
        permitting="Easy",
        timeline="3-6 months",
        regulatory_score=88,
        ratings={"energy_cost": 8, "regulatory": 9, "permitting_speed": 9, "climate": 9, "grid_capacity": 5},
        highlights=["Digital asset legislation", "No corporate income tax", "Wind PPAs"],
        risks=["Limited transmission", "Smaller market"],
    ),
    Jurisdiction(
        name="New York",
        crypto_stance="Hostile",
        permitting="Difficult",
        timeline="18-36 months",
        regulatory_score=25,
        ratings={"energy_cost": 6, "regulatory": 2, "permitting_speed": 2, "climate": 8, "grid_capacity": 7},
        highlights=["Existing hydro sites grandfathered"],
        risks=["Moratorium on new PoW", "Environmental reviews", "Political opposition"],
    ),
    Jurisdiction(
        name="Paraguay",
        crypto_stance="Mixed",
        permitting="Moderate",
        timeline="6-12 months",
        regulatory_score=65,
        ratings={"energy_cost": 10, "regulatory": 5, "permitting_speed": 6, "climate": 4, "grid_capacity": 5},
        highlights=["Cheap hydro ($0.02/kWh)", "USD-denominated contracts"],
        risks=["Regulatory uncertainty", "Infrastructure quality", "Political instability"],
    ),
    Jurisdiction(
        name="Kazakhstan",
        crypto_stance="Restricted",
        permitting="Complex",
        timeline="12-24 months",
        regulatory_score=45,
        ratings={"energy_cost": 8, "regulatory": 4, "permitting_speed": 4, "climate": 7, "grid_capacity": 5},
        highlights=["Low energy costs", "Existing infrastructure"],
        risks=["Licensing requirements", "Power quotas", "Political risk"],
    ),
)


def get_jurisdiction(name: str) -> Jurisdiction | None:
    for j in JURISDICTIONS:
        if j.name.lower() == name.lower():
            return j
    return None


def match_score(jurisdiction: Jurisdiction, weights: dict[str, float]) -> float:
    """Weighted average of 0-10 ratings, scaled to 0-100 and rounded to one decimal."""
    total_weight = sum(weights.get(f, 0) for f in FACTORS)
    if total_weight <= 0:
        raise ValueError("At least one priority weight must be positive")
    weighted = sum(jurisdiction.ratings[f] * weights.get(f, 0) for f in FACTORS)
    value = Decimal(str(weighted)) * 10 / Decimal(str(total_weight))
    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def recommend(weights: dict[str, float], limit: int | None = None) -> list[tuple[Jurisdiction, float]]:
    """Rank every jurisdiction by match score, best first, ties broken by name."""
    for factor, weight in weights.items():
        if factor not in FACTORS:
            raise ValueError(f"Unknown factor '{factor}'")
        if weight < 0:
            raise ValueError(f"Weight for '{factor}' must not be negative")

    ranked = sorted(
        ((j, match_score(j, weights)) for j in JURISDICTIONS),
        key=lambda pair: (-pair[1], pair[0].name),
    )
    return ranked[:limit] if limit else ranked
