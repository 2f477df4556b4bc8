import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.enums import ReportType
from voltbuild.common.exceptions import NotFoundError
from voltbuild.core.reporting.schemas import ReportKPIs
from voltbuild.core.reporting.service import ReportingService
from voltbuild.db.models.report import ProjectReport
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/reports", tags=["Reports"])


# ---------- Schemas ----------


class GenerateReportRequest(BaseModel):
    report_type: ReportType = ReportType.WEEKLY
    period_end: date | None = None


class ReportResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    report_type: str
    period_start: date
    period_end: date
    generated_at: str
    kpis: ReportKPIs
    summary: str | None

    @classmethod
    def from_orm_instance(cls, report: ProjectReport) -> "ReportResponse":
        return cls(
            id=report.id,
            project_id=report.project_id,
            report_type=report.report_type,
            period_start=report.period_start,
            period_end=report.period_end,
            generated_at=report.generated_at.isoformat(),
            kpis=report.kpis,
            summary=report.summary,
        )


class ReportListResponse(BaseModel):
    reports: list[ReportResponse]
    total: int


# ---------- Endpoints ----------


@router.post("", response_model=ReportResponse, status_code=201)
async def generate_report(
    project_id: uuid.UUID,
    body: GenerateReportRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    body = body or GenerateReportRequest()
    report = await ReportingService().generate_report(
        project_id, db, report_type=body.report_type, period_end=body.period_end
    )
    return ReportResponse.from_orm_instance(report)


@router.get("", response_model=ReportListResponse)
async def list_reports(
    project_id: uuid.UUID,
    report_type: ReportType | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)

    query = select(ProjectReport).where(
        ProjectReport.project_id == project_id, ProjectReport.is_deleted.is_(False)
    )
    if report_type:
        query = query.where(ProjectReport.report_type == report_type.value)
    result = await db.execute(query.order_by(ProjectReport.generated_at.desc()))
    reports = result.scalars().all()

    return ReportListResponse(
        reports=[ReportResponse.from_orm_instance(r) for r in reports],
        total=len(reports),
    )


@router.get("/latest", response_model=ReportResponse)
async def latest_report(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)

    result = await db.execute(
        select(ProjectReport)
        .where(ProjectReport.project_id == project_id, ProjectReport.is_deleted.is_(False))
        .order_by(ProjectReport.generated_at.desc())
        .limit(1)
    )
    report = result.scalar_one_or_none()
    if not report:
        raise NotFoundError("Report")
    return ReportResponse.from_orm_instance(report)
