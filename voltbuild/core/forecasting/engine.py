"""Additive-penalty schedule and cost forecast.

The model is deliberately simple and deterministic: the same inputs and the
same ``today`` always give the same result.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from voltbuild.common.enums import ActionPriority, DriverImpact
from voltbuild.core.forecasting.schemas import (
    ForecastDelta,
    ForecastDriver,
    ForecastInputs,
    ForecastResult,
    RecommendedAction,
)

BLOCKED_TASK_SLIP_DAYS = 3
LOW_VELOCITY_SLIP_DAYS = 7
LOW_VELOCITY_COMPLETION_RATIO = 0.5
LOW_VELOCITY_MAX_IN_PROGRESS = 3
OVERRUN_BLOCKED_THRESHOLD = 2
OVERRUN_BASE_PCT = 5
OVERRUN_PER_BLOCKED_PCT = 2
CONFIDENCE_BASE = 50
CONFIDENCE_STEP = 10
CONFIDENCE_CAP = 85
DEFAULT_HORIZON_DAYS = 180


def compute_confidence(has_tasks: bool, has_phases: bool, has_target_date: bool) -> int:
    confidence = CONFIDENCE_BASE
    for present in (has_tasks, has_phases, has_target_date):
        if present:
            confidence += CONFIDENCE_STEP
    return min(confidence, CONFIDENCE_CAP)


def compute_capex_overrun(blocked_tasks: int) -> float:
    if blocked_tasks > OVERRUN_BLOCKED_THRESHOLD:
        return float(OVERRUN_BASE_PCT + OVERRUN_PER_BLOCKED_PCT * blocked_tasks)
    return 0.0


def generate_forecast(
    inputs: ForecastInputs,
    today: date,
    default_horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> ForecastResult:
    slip_days = 0
    drivers: list[ForecastDriver] = []
    actions: list[RecommendedAction] = []

    if inputs.blocked_tasks > 0:
        contribution = inputs.blocked_tasks * BLOCKED_TASK_SLIP_DAYS
        slip_days += contribution
        drivers.append(
            ForecastDriver(
                type="blockers",
                description=f"{inputs.blocked_tasks} blocked task(s) delaying progress",
                impact=DriverImpact.NEGATIVE,
                value=contribution,
            )
        )
        actions.append(
            RecommendedAction(
                action=f"Resolve {inputs.blocked_tasks} blocked task(s)",
                priority=ActionPriority.HIGH,
                expected_impact=f"Recover up to {contribution} days",
            )
        )

    low_completion = inputs.completed_tasks < inputs.total_tasks * LOW_VELOCITY_COMPLETION_RATIO
    if (
        inputs.total_tasks > 0
        and low_completion
        and inputs.in_progress_tasks < LOW_VELOCITY_MAX_IN_PROGRESS
    ):
        slip_days += LOW_VELOCITY_SLIP_DAYS
        drivers.append(
            ForecastDriver(
                type="velocity",
                description="Low velocity: under half of tasks complete with little work in flight",
                impact=DriverImpact.NEGATIVE,
                value=LOW_VELOCITY_SLIP_DAYS,
            )
        )
        actions.append(
            RecommendedAction(
                action="Start more tasks in parallel",
                priority=ActionPriority.MEDIUM,
                expected_impact=f"Recover up to {LOW_VELOCITY_SLIP_DAYS} days",
            )
        )

    if inputs.completed_phases > 0:
        drivers.append(
            ForecastDriver(
                type="milestones",
                description=f"{inputs.completed_phases} phase(s) completed on schedule",
                impact=DriverImpact.POSITIVE,
                value=inputs.completed_phases,
            )
        )

    if not any(d.impact == DriverImpact.NEGATIVE for d in drivers):
        drivers.append(
            ForecastDriver(
                type="on_track",
                description="No blockers or velocity issues detected",
                impact=DriverImpact.POSITIVE,
                value=0,
            )
        )
        actions.append(
            RecommendedAction(
                action="Keep monitoring progress",
                priority=ActionPriority.LOW,
                expected_impact="Maintain current schedule",
            )
        )

    baseline = inputs.target_end_date or today + timedelta(days=default_horizon_days)
    overrun = compute_capex_overrun(inputs.blocked_tasks)

    projected_capex = None
    if inputs.capex_budget is not None:
        projected_capex = (
            Decimal(inputs.capex_budget) * (Decimal(1) + Decimal(str(overrun)) / Decimal(100))
        ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return ForecastResult(
        projected_completion_date=baseline + timedelta(days=slip_days),
        schedule_slip_days=slip_days,
        capex_overrun_pct=overrun,
        confidence_pct=compute_confidence(
            inputs.total_tasks > 0,
            inputs.total_phases > 0,
            inputs.target_end_date is not None,
        ),
        projected_capex=projected_capex,
        drivers=drivers,
        recommended_actions=actions,
    )


def forecast_delta(latest: ForecastResult, previous: ForecastResult) -> ForecastDelta:
    """What changed between two snapshots (latest minus previous)."""
    return ForecastDelta(
        schedule_slip_days=latest.schedule_slip_days - previous.schedule_slip_days,
        capex_overrun_pct=round(latest.capex_overrun_pct - previous.capex_overrun_pct, 2),
        confidence_pct=latest.confidence_pct - previous.confidence_pct,
        projected_completion_days=(
            latest.projected_completion_date - previous.projected_completion_date
        ).days,
    )
