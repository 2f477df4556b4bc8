from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import ReportType
from voltbuild.db.base import BaseModel, ProjectScopedMixin


class ProjectReport(ProjectScopedMixin, BaseModel):
    __tablename__ = "project_reports"

    report_type: Mapped[ReportType] = mapped_column(
        String(20), nullable=False, default=ReportType.WEEKLY
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    kpis: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
