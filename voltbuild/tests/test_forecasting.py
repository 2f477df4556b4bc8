from datetime import date
from decimal import Decimal

import pytest

from voltbuild.core.forecasting.engine import (
    compute_confidence,
    forecast_delta,
    generate_forecast,
)
from voltbuild.core.forecasting.schemas import ForecastInputs

TODAY = date(2025, 3, 1)


def _inputs(**overrides) -> ForecastInputs:
    values = dict(
        total_tasks=10,
        completed_tasks=4,
        in_progress_tasks=0,
        blocked_tasks=3,
        total_phases=4,
        completed_phases=0,
        target_end_date=date(2025, 6, 1),
        capex_budget=Decimal("1000000.00"),
    )
    values.update(overrides)
    return ForecastInputs(**values)


def test_blocked_and_slow_project_scenario():
    result = generate_forecast(_inputs(), TODAY)
    assert result.schedule_slip_days == 16
    assert result.projected_completion_date == date(2025, 6, 17)
    assert result.capex_overrun_pct == 11.0
    assert result.projected_capex == Decimal("1110000.00")
    assert [d.type for d in result.drivers] == ["blockers", "velocity"]
    assert result.recommended_actions[0].priority == "high"


def test_forecast_is_deterministic():
    first = generate_forecast(_inputs(), TODAY)
    second = generate_forecast(_inputs(), TODAY)
    assert first == second


def test_overrun_needs_more_than_two_blocked_tasks():
    assert generate_forecast(_inputs(blocked_tasks=2), TODAY).capex_overrun_pct == 0.0
    assert generate_forecast(_inputs(blocked_tasks=4), TODAY).capex_overrun_pct == 13.0


def test_healthy_project_is_on_track():
    result = generate_forecast(
        _inputs(completed_tasks=6, in_progress_tasks=2, blocked_tasks=0, completed_phases=2), TODAY
    )
    assert result.schedule_slip_days == 0
    assert result.projected_completion_date == date(2025, 6, 1)
    assert {d.type for d in result.drivers} == {"milestones", "on_track"}


def test_many_tasks_in_flight_avoid_velocity_penalty():
    result = generate_forecast(_inputs(blocked_tasks=0, in_progress_tasks=3), TODAY)
    assert result.schedule_slip_days == 0


def test_missing_target_uses_default_horizon():
    result = generate_forecast(
        _inputs(target_end_date=None, blocked_tasks=0, completed_tasks=10), TODAY,
        default_horizon_days=90,
    )
    assert result.projected_completion_date == date(2025, 5, 30)
    assert result.confidence_pct == 70


def test_empty_project_has_no_slip():
    result = generate_forecast(
        ForecastInputs(
            total_tasks=0, completed_tasks=0, in_progress_tasks=0, blocked_tasks=0,
            total_phases=0, completed_phases=0,
        ),
        TODAY,
    )
    assert result.schedule_slip_days == 0
    assert result.confidence_pct == 50
    assert result.projected_capex is None


def test_confidence_grows_with_information_and_is_capped():
    assert compute_confidence(False, False, False) == 50
    assert compute_confidence(True, False, False) == 60
    assert compute_confidence(True, True, False) == 70
    assert compute_confidence(True, True, True) == 80
    assert compute_confidence(True, True, True) <= 85


def test_forecast_delta():
    before = generate_forecast(_inputs(blocked_tasks=0), TODAY)
    after = generate_forecast(_inputs(), TODAY)
    delta = forecast_delta(after, before)
    assert delta.schedule_slip_days == 9
    assert delta.capex_overrun_pct == 11.0
    assert delta.projected_completion_days == 9
    assert delta.confidence_pct == 0


# ---------- API ----------


@pytest.mark.asyncio
async def test_generate_forecast(client, auth_headers, project):
    resp = await client.post(f"/api/v1/projects/{project['id']}/forecasts", headers=auth_headers)
    assert resp.status_code == 201
    data = resp.json()
    # Nothing complete and nothing in flight
    assert data["schedule_slip_days"] == 7
    assert data["projected_completion_date"] == "2025-06-08"
    assert data["capex_overrun_pct"] == 0.0
    assert data["confidence_pct"] == 80
    assert Decimal(str(data["projected_capex"])) == Decimal("10000000.00")
    assert data["inputs"]["total_phases"] == 6


@pytest.mark.asyncio
async def test_latest_forecast_not_found(client, auth_headers, project):
    resp = await client.get(f"/api/v1/projects/{project['id']}/forecasts/latest", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_latest_forecast_with_delta(client, auth_headers, project):
    pid = project["id"]
    await client.post(f"/api/v1/projects/{pid}/forecasts", headers=auth_headers)

    latest = await client.get(f"/api/v1/projects/{pid}/forecasts/latest", headers=auth_headers)
    assert latest.json()["delta"] is None

    tasks = (await client.get(f"/api/v1/projects/{pid}/tasks", headers=auth_headers)).json()["tasks"]
    for task in tasks[:3]:
        await client.patch(
            f"/api/v1/projects/{pid}/tasks/{task['id']}", json={"status": "blocked"}, headers=auth_headers
        )
    await client.post(f"/api/v1/projects/{pid}/forecasts", headers=auth_headers)

    latest = (await client.get(f"/api/v1/projects/{pid}/forecasts/latest", headers=auth_headers)).json()
    assert latest["forecast"]["schedule_slip_days"] == 16
    assert latest["delta"]["schedule_slip_days"] == 9
    assert latest["delta"]["capex_overrun_pct"] == 11.0

    history = await client.get(f"/api/v1/projects/{pid}/forecasts", headers=auth_headers)
    assert [f["schedule_slip_days"] for f in history.json()] == [16, 7]
