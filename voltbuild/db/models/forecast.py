from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Date, DateTime, Float, Integer, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.db.base import BaseModel, ProjectScopedMixin


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectForecast(ProjectScopedMixin, BaseModel):
    """Append-only forecast snapshot. Rows are never updated after insert."""

    __tablename__ = "project_forecasts"

    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    projected_completion_date: Mapped[date] = mapped_column(Date, nullable=False)
    schedule_slip_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    capex_overrun_pct: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    confidence_pct: Mapped[int] = mapped_column(Integer, nullable=False)
    projected_capex: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    drivers: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    recommended_actions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    inputs: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
