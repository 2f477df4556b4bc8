import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.exceptions import NotFoundError
from voltbuild.core.forecasting.schemas import (
    ForecastDelta,
    ForecastDriver,
    ForecastInputs,
    RecommendedAction,
)
from voltbuild.core.forecasting.service import ForecastingService
from voltbuild.db.models.forecast import ProjectForecast
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/forecasts", tags=["Forecasts"])


# ---------- Schemas ----------


class ForecastResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    generated_at: str
    projected_completion_date: date
    schedule_slip_days: int
    capex_overrun_pct: float
    confidence_pct: int
    projected_capex: Decimal | None
    drivers: list[ForecastDriver]
    recommended_actions: list[RecommendedAction]
    inputs: ForecastInputs

    @classmethod
    def from_orm_instance(cls, snapshot: ProjectForecast) -> "ForecastResponse":
        return cls(
            id=snapshot.id,
            project_id=snapshot.project_id,
            generated_at=snapshot.generated_at.isoformat(),
            projected_completion_date=snapshot.projected_completion_date,
            schedule_slip_days=snapshot.schedule_slip_days,
            capex_overrun_pct=float(snapshot.capex_overrun_pct),
            confidence_pct=snapshot.confidence_pct,
            projected_capex=snapshot.projected_capex,
            drivers=snapshot.drivers or [],
            recommended_actions=snapshot.recommended_actions or [],
            inputs=snapshot.inputs,
        )


class LatestForecastResponse(BaseModel):
    forecast: ForecastResponse
    delta: ForecastDelta | None


# ---------- Endpoints ----------


@router.post("", response_model=ForecastResponse, status_code=201)
async def generate_forecast(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Compute a forecast from current task state and store it as a snapshot."""
    project = await get_project_for_user(project_id, current_user, db)
    snapshot = await ForecastingService().create_snapshot(project, db)
    return ForecastResponse.from_orm_instance(snapshot)


@router.get("", response_model=list[ForecastResponse])
async def list_forecasts(
    project_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    snapshots = await ForecastingService().list_snapshots(project_id, db, limit=limit)
    return [ForecastResponse.from_orm_instance(s) for s in snapshots]


@router.get("/latest", response_model=LatestForecastResponse)
async def latest_forecast(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest snapshot and its change against the one before it."""
    await get_project_for_user(project_id, current_user, db)
    latest, delta = await ForecastingService().latest_with_delta(project_id, db)
    if latest is None:
        raise NotFoundError("Forecast")
    return LatestForecastResponse(
        forecast=ForecastResponse.from_orm_instance(latest),
        delta=delta,
    )
