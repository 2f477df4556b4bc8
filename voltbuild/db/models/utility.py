from datetime import date, datetime

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import AlertSeverity, UtilityMilestoneStatus
from voltbuild.db.base import BaseModel, ProjectScopedMixin


class UtilityStatusUpdate(ProjectScopedMixin, BaseModel):
    """One interconnection milestone with a given utility."""

    __tablename__ = "utility_status_updates"

    utility: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    milestone: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[UtilityMilestoneStatus] = mapped_column(
        String(20), nullable=False, default=UtilityMilestoneStatus.NOT_STARTED
    )
    last_update_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class UtilityAlert(ProjectScopedMixin, BaseModel):
    __tablename__ = "utility_alerts"

    utility: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[AlertSeverity] = mapped_column(
        String(20), nullable=False, default=AlertSeverity.MEDIUM
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
