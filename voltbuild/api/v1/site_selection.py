from decimal import Decimal

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.core.site_selection.calculators import (
    DEFAULT_LAND_ACRES,
    DEFAULT_PRICE_PER_ACRE,
    LAND_SIZING_GUIDE,
    PUE_BANDS,
    cooling_overhead_pct,
    estimate_pue,
    land_cost,
)
from voltbuild.core.site_selection.jurisdictions import (
    JURISDICTIONS,
    Jurisdiction,
    get_jurisdiction,
    recommend,
)
from voltbuild.core.site_selection.scoring import CRITERIA, score_example_sites, score_site

router = APIRouter(prefix="/site-selection", tags=["Site Selection"])


# ---------- Schemas ----------


class CriterionResponse(BaseModel):
    key: str
    label: str
    weight: int
    description: str


class SiteScoreRequest(BaseModel):
    name: str | None = Field(None, max_length=255)
    energy_cost: float = Field(..., ge=0, le=10)
    power_capacity: float = Field(..., ge=0, le=10)
    interconnection_timeline: float = Field(..., ge=0, le=10)
    regulatory: float = Field(..., ge=0, le=10)
    climate: float = Field(..., ge=0, le=10)
    land_cost: float = Field(..., ge=0, le=10)
    infrastructure: float = Field(..., ge=0, le=10)
    expansion: float = Field(..., ge=0, le=10)


class SiteScoreResponse(BaseModel):
    name: str | None
    weighted_score: float
    grade: str
    grade_label: str
    recommendation: str
    breakdown: dict[str, float]


class ExampleSiteResponse(BaseModel):
    name: str
    location: str
    scores: dict[str, float]
    weighted_score: float
    grade: str
    grade_label: str


class JurisdictionResponse(BaseModel):
    name: str
    crypto_stance: str
    permitting: str
    timeline: str
    regulatory_score: int
    ratings: dict[str, float]
    highlights: list[str]
    risks: list[str]

    @classmethod
    def from_jurisdiction(cls, j: Jurisdiction) -> "JurisdictionResponse":
        return cls(
            name=j.name,
            crypto_stance=j.crypto_stance,
            permitting=j.permitting,
            timeline=j.timeline,
            regulatory_score=j.regulatory_score,
            ratings=dict(j.ratings),
            highlights=list(j.highlights),
            risks=list(j.risks),
        )


class PriorityWeights(BaseModel):
    energy_cost: float = Field(0, ge=0)
    regulatory: float = Field(0, ge=0)
    permitting_speed: float = Field(0, ge=0)
    climate: float = Field(0, ge=0)
    grid_capacity: float = Field(0, ge=0)


class RecommendRequest(BaseModel):
    weights: PriorityWeights
    limit: int | None = Field(None, ge=1)


class JurisdictionMatch(BaseModel):
    rank: int
    match_score: float
    jurisdiction: JurisdictionResponse


class PUEResponse(BaseModel):
    ambient_temp_c: float
    pue: float
    cooling_overhead_pct: int
    bands: list[dict]


class LandCostResponse(BaseModel):
    acres: float
    price_per_acre: Decimal
    total_cost: Decimal
    sizing_guide: list[dict]


# ---------- Endpoints ----------


@router.get("/criteria", response_model=list[CriterionResponse])
async def list_criteria():
    return [
        CriterionResponse(key=c.key, label=c.label, weight=c.weight, description=c.description)
        for c in CRITERIA
    ]


@router.post("/score", response_model=SiteScoreResponse)
async def score_candidate_site(body: SiteScoreRequest):
    """Weighted 0-10 score, letter grade and recommendation for one site."""
    scores = body.model_dump(exclude={"name"})
    try:
        result = score_site(scores)
    except ValueError as e:
        raise BadRequestError(str(e))
    return SiteScoreResponse(
        name=body.name,
        weighted_score=result.weighted_score,
        grade=result.grade,
        grade_label=result.grade_label,
        recommendation=result.recommendation,
        breakdown=result.breakdown,
    )


@router.get("/example-sites", response_model=list[ExampleSiteResponse])
async def list_example_sites():
    return score_example_sites()


@router.get("/jurisdictions", response_model=list[JurisdictionResponse])
async def list_jurisdictions():
    return [JurisdictionResponse.from_jurisdiction(j) for j in JURISDICTIONS]


@router.get("/jurisdictions/{name}", response_model=JurisdictionResponse)
async def get_jurisdiction_detail(name: str):
    jurisdiction = get_jurisdiction(name)
    if jurisdiction is None:
        raise NotFoundError("Jurisdiction", name)
    return JurisdictionResponse.from_jurisdiction(jurisdiction)


@router.post("/jurisdictions/recommend", response_model=list[JurisdictionMatch])
async def recommend_jurisdictions(body: RecommendRequest):
    try:
        ranked = recommend(body.weights.model_dump(), limit=body.limit)
    except ValueError as e:
        raise BadRequestError(str(e))
    return [
        JurisdictionMatch(
            rank=idx,
            match_score=score,
            jurisdiction=JurisdictionResponse.from_jurisdiction(j),
        )
        for idx, (j, score) in enumerate(ranked, start=1)
    ]


@router.get("/pue", response_model=PUEResponse)
async def get_pue_estimate(ambient_temp_c: float = Query(..., ge=-60, le=60)):
    pue = estimate_pue(ambient_temp_c)
    return PUEResponse(
        ambient_temp_c=ambient_temp_c,
        pue=pue,
        cooling_overhead_pct=cooling_overhead_pct(pue),
        bands=[{"max_temp_c": t, "pue": p} for t, p in PUE_BANDS],
    )


@router.get("/land-cost", response_model=LandCostResponse)
async def get_land_cost(
    acres: float = Query(DEFAULT_LAND_ACRES, ge=0),
    price_per_acre: Decimal = Query(DEFAULT_PRICE_PER_ACRE, ge=0),
):
    try:
        total = land_cost(acres, price_per_acre)
    except ValueError as e:
        raise BadRequestError(str(e))
    return LandCostResponse(
        acres=acres,
        price_per_acre=price_per_acre,
        total_cost=total,
        sizing_guide=list(LAND_SIZING_GUIDE),
    )
