import uuid
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.enums import PunchStatus, RFIStatus, RiskSeverity, RiskStatus, TaskStatus
from voltbuild.core.advisor.service import advise_project
from voltbuild.core.field.stats import rfi_days_overdue
from voltbuild.core.forecasting.service import ForecastingService
from voltbuild.core.projects.queries import get_phases, get_project_tasks
from voltbuild.db.models.field import FieldCheckin
from voltbuild.db.models.punch import PunchItem
from voltbuild.db.models.rfi import RFI
from voltbuild.db.models.risk import Risk
from voltbuild.db.models.user import User
from voltbuild.db.models.utility import UtilityAlert

router = APIRouter(prefix="/projects/{project_id}", tags=["Dashboard"])


# ---------- Schemas ----------


class ProjectSummary(BaseModel):
    id: uuid.UUID
    name: str
    status: str
    progress: int
    target_capacity_mw: float | None
    cooling_type: str
    utility: str | None
    location: str | None
    planned_start_date: date | None
    planned_end_date: date | None
    capex_budget: Decimal | None
    days_to_target: int | None


class PhaseProgress(BaseModel):
    id: uuid.UUID
    name: str
    status: str
    progress: int
    task_count: int
    completed_count: int


class TaskSummary(BaseModel):
    total: int
    by_status: dict[str, int]
    critical_path_open: int


class RiskSummary(BaseModel):
    open_total: int
    by_severity: dict[str, int]


class ForecastHeadline(BaseModel):
    generated_at: str
    projected_completion_date: date
    schedule_slip_days: int
    capex_overrun_pct: float
    confidence_pct: int


class HealthSummary(BaseModel):
    health_score: int
    status_label: str


class FieldSummary(BaseModel):
    open_punch_items: int
    open_rfis: int
    overdue_rfis: int
    unresolved_utility_alerts: int
    on_site: int


class DashboardResponse(BaseModel):
    project_summary: ProjectSummary
    phase_progress: list[PhaseProgress]
    task_summary: TaskSummary
    risk_summary: RiskSummary
    latest_forecast: ForecastHeadline | None
    health: HealthSummary
    field: FieldSummary


# ---------- Endpoints ----------


@router.get("/dashboard", response_model=DashboardResponse)
async def get_project_dashboard(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)
    today = date.today()

    phases = await get_phases(project_id, db)
    tasks = await get_project_tasks(project_id, db)

    by_status = {s.value: 0 for s in TaskStatus}
    tasks_by_phase: dict[uuid.UUID, list] = {}
    for t in tasks:
        by_status[t.status] = by_status.get(t.status, 0) + 1
        tasks_by_phase.setdefault(t.phase_id, []).append(t)

    phase_progress = [
        PhaseProgress(
            id=p.id,
            name=p.name,
            status=p.status,
            progress=p.progress,
            task_count=len(tasks_by_phase.get(p.id, [])),
            completed_count=sum(
                1 for t in tasks_by_phase.get(p.id, []) if t.status == TaskStatus.COMPLETE.value
            ),
        )
        for p in phases
    ]

    # Open risks by severity
    risk_rows = await db.execute(
        select(Risk.severity, func.count())
        .where(
            Risk.project_id == project_id,
            Risk.is_deleted.is_(False),
            Risk.status == RiskStatus.OPEN.value,
        )
        .group_by(Risk.severity)
    )
    by_severity = {s.value: 0 for s in RiskSeverity}
    for severity, count in risk_rows.all():
        by_severity[severity] = count

    latest, _ = await ForecastingService().latest_with_delta(project_id, db)
    headline = None
    if latest is not None:
        headline = ForecastHeadline(
            generated_at=latest.generated_at.isoformat(),
            projected_completion_date=latest.projected_completion_date,
            schedule_slip_days=latest.schedule_slip_days,
            capex_overrun_pct=float(latest.capex_overrun_pct),
            confidence_pct=latest.confidence_pct,
        )

    advice = await advise_project(project, db)

    punch_open = await db.execute(
        select(func.count()).select_from(PunchItem).where(
            PunchItem.project_id == project_id,
            PunchItem.is_deleted.is_(False),
            PunchItem.status.in_([PunchStatus.OPEN.value, PunchStatus.IN_PROGRESS.value]),
        )
    )
    rfi_result = await db.execute(
        select(RFI).where(
            RFI.project_id == project_id,
            RFI.is_deleted.is_(False),
            RFI.status == RFIStatus.OPEN.value,
        )
    )
    open_rfis = rfi_result.scalars().all()
    alerts = await db.execute(
        select(func.count()).select_from(UtilityAlert).where(
            UtilityAlert.project_id == project_id,
            UtilityAlert.is_deleted.is_(False),
            UtilityAlert.resolved_at.is_(None),
        )
    )
    on_site = await db.execute(
        select(func.count()).select_from(FieldCheckin).where(
            FieldCheckin.project_id == project_id,
            FieldCheckin.is_deleted.is_(False),
            FieldCheckin.checkout_time.is_(None),
        )
    )

    return DashboardResponse(
        project_summary=ProjectSummary(
            id=project.id,
            name=project.name,
            status=project.status,
            progress=project.progress,
            target_capacity_mw=project.target_capacity_mw,
            cooling_type=project.cooling_type,
            utility=project.utility,
            location=project.location,
            planned_start_date=project.planned_start_date,
            planned_end_date=project.planned_end_date,
            capex_budget=project.capex_budget,
            days_to_target=(
                (project.planned_end_date - today).days if project.planned_end_date else None
            ),
        ),
        phase_progress=phase_progress,
        task_summary=TaskSummary(
            total=len(tasks),
            by_status=by_status,
            critical_path_open=sum(
                1 for t in tasks if t.is_critical_path and t.status != TaskStatus.COMPLETE.value
            ),
        ),
        risk_summary=RiskSummary(open_total=sum(by_severity.values()), by_severity=by_severity),
        latest_forecast=headline,
        health=HealthSummary(
            health_score=advice.health_score,
            status_label=advice.status_label.value,
        ),
        field=FieldSummary(
            open_punch_items=punch_open.scalar() or 0,
            open_rfis=len(open_rfis),
            overdue_rfis=sum(1 for r in open_rfis if rfi_days_overdue(r, today) > 0),
            unresolved_utility_alerts=alerts.scalar() or 0,
            on_site=on_site.scalar() or 0,
        ),
    )
