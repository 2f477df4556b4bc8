from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from voltbuild.common.enums import ActionPriority, DriverImpact


class ForecastInputs(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    blocked_tasks: int
    total_phases: int
    completed_phases: int
    target_end_date: date | None = None
    capex_budget: Decimal | None = None


class ForecastDriver(BaseModel):
    type: str
    description: str
    impact: DriverImpact
    value: float | int | None = None


class RecommendedAction(BaseModel):
    action: str
    priority: ActionPriority
    expected_impact: str


class ForecastResult(BaseModel):
    projected_completion_date: date
    schedule_slip_days: int
    capex_overrun_pct: float
    confidence_pct: int
    projected_capex: Decimal | None = None
    drivers: list[ForecastDriver]
    recommended_actions: list[RecommendedAction]


class ForecastDelta(BaseModel):
    schedule_slip_days: int
    capex_overrun_pct: float
    confidence_pct: int
    projected_completion_days: int
