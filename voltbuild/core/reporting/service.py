import uuid
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.common.enums import (
    PunchStatus,
    ReportType,
    RFIStatus,
    RiskStatus,
    TaskStatus,
)
from voltbuild.common.events import emit
from voltbuild.common.logging import get_logger
from voltbuild.core.field.stats import rfi_days_overdue
from voltbuild.core.forecasting.service import ForecastingService
from voltbuild.core.projects.queries import get_project_tasks
from voltbuild.core.reporting.schemas import ReportKPIs
from voltbuild.db.models.field import LaborEntry
from voltbuild.db.models.project import Project
from voltbuild.db.models.punch import PunchItem
from voltbuild.db.models.report import ProjectReport
from voltbuild.db.models.rfi import RFI
from voltbuild.db.models.risk import Risk
from voltbuild.db.models.safety import SafetyIncident

logger = get_logger("reporting.service")

PERIOD_DAYS = {
    ReportType.WEEKLY: 7,
    ReportType.MONTHLY: 30,
}


class ReportingService:
    async def compile_kpis(
        self, project: Project, period_start: date, period_end: date, db: AsyncSession
    ) -> ReportKPIs:
        tasks = await get_project_tasks(project.id, db)
        completed = sum(1 for t in tasks if t.status == TaskStatus.COMPLETE.value)
        blocked = sum(1 for t in tasks if t.status == TaskStatus.BLOCKED.value)

        open_risks = await self._count(
            db, Risk, Risk.project_id == project.id, Risk.status == RiskStatus.OPEN.value
        )
        open_punch = await self._count(
            db,
            PunchItem,
            PunchItem.project_id == project.id,
            PunchItem.status.in_([PunchStatus.OPEN.value, PunchStatus.IN_PROGRESS.value]),
        )
        incidents = await self._count(
            db,
            SafetyIncident,
            SafetyIncident.project_id == project.id,
            SafetyIncident.occurred_on >= period_start,
            SafetyIncident.occurred_on <= period_end,
        )

        rfi_result = await db.execute(
            select(RFI).where(RFI.project_id == project.id, RFI.is_deleted.is_(False))
        )
        rfis = rfi_result.scalars().all()

        hours_result = await db.execute(
            select(func.coalesce(func.sum(LaborEntry.hours_worked), 0.0)).where(
                LaborEntry.project_id == project.id,
                LaborEntry.is_deleted.is_(False),
                LaborEntry.entry_date >= period_start,
                LaborEntry.entry_date <= period_end,
            )
        )

        latest, _ = await ForecastingService().latest_with_delta(project.id, db)

        return ReportKPIs(
            completion_percentage=project.progress,
            tasks_completed=completed,
            tasks_total=len(tasks),
            open_blockers=blocked,
            open_risks=open_risks,
            open_punch_items=open_punch,
            open_rfis=sum(1 for r in rfis if r.status == RFIStatus.OPEN.value),
            overdue_rfis=sum(1 for r in rfis if rfi_days_overdue(r, period_end) > 0),
            labor_hours=round(float(hours_result.scalar() or 0.0), 2),
            safety_incidents=incidents,
            days_to_rfs=(
                (project.planned_end_date - period_end).days if project.planned_end_date else None
            ),
            capex_budget=float(project.capex_budget) if project.capex_budget is not None else None,
            projected_capex=(
                float(latest.projected_capex)
                if latest is not None and latest.projected_capex is not None
                else None
            ),
        )

    async def generate_report(
        self,
        project_id: uuid.UUID,
        db: AsyncSession,
        report_type: ReportType = ReportType.WEEKLY,
        period_end: date | None = None,
    ) -> ProjectReport:
        result = await db.execute(
            select(Project).where(Project.id == project_id, Project.is_deleted.is_(False))
        )
        project = result.scalar_one_or_none()
        if not project:
            raise ValueError(f"Project {project_id} not found")

        period_end = period_end or date.today()
        period_start = period_end - timedelta(days=PERIOD_DAYS[report_type] - 1)
        kpis = await self.compile_kpis(project, period_start, period_end, db)

        report = ProjectReport(
            project_id=project.id,
            report_type=report_type.value,
            period_start=period_start,
            period_end=period_end,
            kpis=kpis.model_dump(mode="json"),
            summary=build_summary(project.name, kpis),
        )
        db.add(report)
        await db.flush()
        await db.refresh(report)

        logger.info("Generated %s report for project %s", report_type.value, project_id)
        await emit(project.id, "report.generated", {
            "report_id": str(report.id),
            "report_type": report_type.value,
        })
        return report

    @staticmethod
    async def _count(db: AsyncSession, model, *criteria) -> int:
        result = await db.execute(
            select(func.count()).select_from(model).where(model.is_deleted.is_(False), *criteria)
        )
        return result.scalar() or 0


def build_summary(project_name: str, kpis: ReportKPIs) -> str:
    parts = [
        f"{project_name} is {kpis.completion_percentage}% complete "
        f"({kpis.tasks_completed}/{kpis.tasks_total} tasks)."
    ]
    if kpis.open_blockers:
        parts.append(f"{kpis.open_blockers} task(s) are blocked.")
    if kpis.open_rfis:
        parts.append(f"{kpis.open_rfis} RFI(s) open, {kpis.overdue_rfis} overdue.")
    if kpis.open_punch_items:
        parts.append(f"{kpis.open_punch_items} punch item(s) outstanding.")
    if kpis.days_to_rfs is not None:
        if kpis.days_to_rfs >= 0:
            parts.append(f"{kpis.days_to_rfs} day(s) to target ready-for-service.")
        else:
            parts.append(f"Target ready-for-service date passed {-kpis.days_to_rfs} day(s) ago.")
    return " ".join(parts)
