import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.common.enums import PhaseStatus, TaskStatus
from voltbuild.common.events import emit
from voltbuild.common.logging import get_logger
from voltbuild.config import settings
from voltbuild.core.forecasting.engine import forecast_delta, generate_forecast
from voltbuild.core.forecasting.schemas import ForecastDelta, ForecastInputs, ForecastResult
from voltbuild.core.projects.queries import get_phases, get_project_tasks
from voltbuild.db.models.forecast import ProjectForecast
from voltbuild.db.models.project import Project

logger = get_logger("forecasting.service")


def snapshot_to_result(snapshot: ProjectForecast) -> ForecastResult:
    return ForecastResult(
        projected_completion_date=snapshot.projected_completion_date,
        schedule_slip_days=snapshot.schedule_slip_days,
        capex_overrun_pct=snapshot.capex_overrun_pct,
        confidence_pct=snapshot.confidence_pct,
        projected_capex=snapshot.projected_capex,
        drivers=snapshot.drivers or [],
        recommended_actions=snapshot.recommended_actions or [],
    )


class ForecastingService:
    async def build_inputs(self, project: Project, db: AsyncSession) -> ForecastInputs:
        phases = await get_phases(project.id, db)
        tasks = await get_project_tasks(project.id, db)
        return ForecastInputs(
            total_tasks=len(tasks),
            completed_tasks=sum(1 for t in tasks if t.status == TaskStatus.COMPLETE.value),
            in_progress_tasks=sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS.value),
            blocked_tasks=sum(1 for t in tasks if t.status == TaskStatus.BLOCKED.value),
            total_phases=len(phases),
            completed_phases=sum(1 for p in phases if p.status == PhaseStatus.COMPLETE.value),
            target_end_date=project.planned_end_date,
            capex_budget=project.capex_budget,
        )

    async def create_snapshot(
        self, project: Project, db: AsyncSession, today: date | None = None
    ) -> ProjectForecast:
        inputs = await self.build_inputs(project, db)
        result = generate_forecast(
            inputs,
            today=today or date.today(),
            default_horizon_days=settings.FORECAST_DEFAULT_HORIZON_DAYS,
        )

        snapshot = ProjectForecast(
            project_id=project.id,
            projected_completion_date=result.projected_completion_date,
            schedule_slip_days=result.schedule_slip_days,
            capex_overrun_pct=result.capex_overrun_pct,
            confidence_pct=result.confidence_pct,
            projected_capex=result.projected_capex,
            drivers=[d.model_dump(mode="json") for d in result.drivers],
            recommended_actions=[a.model_dump(mode="json") for a in result.recommended_actions],
            inputs=inputs.model_dump(mode="json"),
        )
        db.add(snapshot)
        await db.flush()
        await db.refresh(snapshot)

        logger.info(
            "Forecast for project %s: slip=%dd overrun=%.1f%% confidence=%d%%",
            project.id,
            result.schedule_slip_days,
            result.capex_overrun_pct,
            result.confidence_pct,
        )
        await emit(project.id, "forecast.generated", {
            "forecast_id": str(snapshot.id),
            "projected_completion_date": result.projected_completion_date.isoformat(),
            "schedule_slip_days": result.schedule_slip_days,
        })
        return snapshot

    async def list_snapshots(
        self, project_id: uuid.UUID, db: AsyncSession, limit: int | None = None
    ) -> list[ProjectForecast]:
        query = (
            select(ProjectForecast)
            .where(ProjectForecast.project_id == project_id, ProjectForecast.is_deleted.is_(False))
            .order_by(ProjectForecast.generated_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def latest_with_delta(
        self, project_id: uuid.UUID, db: AsyncSession
    ) -> tuple[ProjectForecast | None, ForecastDelta | None]:
        recent = await self.list_snapshots(project_id, db, limit=2)
        if not recent:
            return None, None
        if len(recent) == 1:
            return recent[0], None
        return recent[0], forecast_delta(snapshot_to_result(recent[0]), snapshot_to_result(recent[1]))
