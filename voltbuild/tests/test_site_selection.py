from decimal import Decimal

import pytest

from voltbuild.core.site_selection.calculators import (
    cooling_overhead_pct,
    estimate_pue,
    land_cost,
)
from voltbuild.core.site_selection.jurisdictions import match_score, get_jurisdiction, recommend
from voltbuild.core.site_selection.scoring import (
    CRITERIA,
    grade_for,
    score_example_sites,
    score_site,
    weighted_score,
)

PERFECT = {c.key: 10 for c in CRITERIA}


def test_criteria_weights_sum_to_100():
    assert sum(c.weight for c in CRITERIA) == 100


def test_weighted_score_bounds():
    assert weighted_score(PERFECT) == 10.0
    assert weighted_score({c.key: 0 for c in CRITERIA}) == 0.0


def test_missing_or_out_of_range_criterion():
    partial = dict(PERFECT)
    del partial["climate"]
    with pytest.raises(ValueError):
        weighted_score(partial)
    with pytest.raises(ValueError):
        weighted_score({**PERFECT, "land_cost": 11})


def test_grade_bands():
    assert grade_for(8.5) == ("A", "Excellent")
    assert grade_for(8.4) == ("B", "Good")
    assert grade_for(6.5) == ("C", "Average")
    assert grade_for(5.0) == ("D", "Below Average")
    assert grade_for(4.9) == ("F", "Poor")


def test_example_sites_are_scored_by_formula():
    sites = {s["name"]: s for s in score_example_sites()}
    assert sites["Alberta Heartland"]["weighted_score"] == 9.0
    assert sites["Alberta Heartland"]["grade"] == "A"
    assert sites["West Texas Site"]["weighted_score"] == 7.3
    assert sites["West Texas Site"]["grade"] == "C"
    assert sites["Paraguay Hydro"]["weighted_score"] == 6.9


def test_recommendation_text():
    assert score_site(PERFECT).recommendation == "Proceed with full due diligence"
    mid = {c.key: 6 for c in CRITERIA}
    assert score_site(mid).recommendation == "Further investigation recommended"
    low = {c.key: 3 for c in CRITERIA}
    assert score_site(low).recommendation == "Consider alternative sites"


def test_breakdown_contributions():
    result = score_site(PERFECT)
    assert result.breakdown["energy_cost"] == 2.5
    assert result.breakdown["expansion"] == 0.5


def test_score_result_dumps_cleanly():
    dumped = score_site({c.key: 8 for c in CRITERIA}).model_dump()
    assert dumped["weighted_score"] == 8.0
    assert dumped["grade"] == "B"
    assert dumped["recommendation"] == "Proceed with full due diligence"
    assert sum(dumped["breakdown"].values()) == pytest.approx(8.0)
    assert CRITERIA[0].model_dump() == {
        "key": "energy_cost",
        "label": "Energy Cost",
        "weight": 25,
        "description": "All-in $/kWh competitiveness",
    }


def test_pue_bands():
    assert estimate_pue(-20) == 1.12
    assert estimate_pue(10) == 1.12
    assert estimate_pue(25) == 1.40
    assert estimate_pue(45) == 1.70
    assert cooling_overhead_pct(1.25) == 25


def test_land_cost():
    assert land_cost(20, Decimal("15000")) == Decimal("300000.00")
    with pytest.raises(ValueError):
        land_cost(-1, 100)


def test_recommend_ranks_and_breaks_ties_by_name():
    ranked = recommend({"energy_cost": 1, "grid_capacity": 1})
    names = [j.name for j, _ in ranked]
    assert names[:2] == ["Alberta", "Texas"]
    assert ranked[0][1] == ranked[1][1] == 85.0
    assert names[2] == "Paraguay"
    assert names[-3:] == ["Kazakhstan", "New York", "Wyoming"]


def test_recommend_validation():
    with pytest.raises(ValueError):
        recommend({"energy_cost": 0, "climate": 0})
    with pytest.raises(ValueError):
        recommend({"taxes": 1})
    with pytest.raises(ValueError):
        recommend({"climate": -1})


def test_match_score_single_factor():
    alberta = get_jurisdiction("alberta")
    assert match_score(alberta, {"climate": 3}) == 100.0


# ---------- API ----------


@pytest.mark.asyncio
async def test_score_endpoint(client):
    resp = await client.post("/api/v1/site-selection/score", json={"name": "Candidate", **PERFECT})
    assert resp.status_code == 200
    data = resp.json()
    assert data["weighted_score"] == 10.0
    assert data["grade"] == "A"


@pytest.mark.asyncio
async def test_score_missing_criterion(client):
    body = dict(PERFECT)
    del body["regulatory"]
    resp = await client.post("/api/v1/site-selection/score", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_recommend_endpoint(client):
    resp = await client.post(
        "/api/v1/site-selection/jurisdictions/recommend",
        json={"weights": {"climate": 1}, "limit": 2},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [m["rank"] for m in data] == [1, 2]
    assert data[0]["jurisdiction"]["name"] == "Alberta"

    resp = await client.post(
        "/api/v1/site-selection/jurisdictions/recommend", json={"weights": {}}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_jurisdiction_lookup(client):
    resp = await client.get("/api/v1/site-selection/jurisdictions/wyoming")
    assert resp.json()["name"] == "Wyoming"
    resp = await client.get("/api/v1/site-selection/jurisdictions/atlantis")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_calculator_endpoints(client):
    pue = (await client.get("/api/v1/site-selection/pue", params={"ambient_temp_c": 15})).json()
    assert pue["pue"] == 1.25
    assert pue["cooling_overhead_pct"] == 25

    land = (await client.get("/api/v1/site-selection/land-cost")).json()
    assert Decimal(str(land["total_cost"])) == Decimal("300000.00")
    assert len(land["sizing_guide"]) == 5


@pytest.mark.asyncio
async def test_site_selection_page(client):
    resp = await client.get("/site-selection")
    assert resp.status_code == 200
    assert "Alberta Heartland" in resp.text
