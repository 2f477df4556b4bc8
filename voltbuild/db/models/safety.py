from datetime import date, datetime

from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import IncidentSeverity, IncidentStatus, SafetyPermitStatus
from voltbuild.db.base import BaseModel, ProjectScopedMixin


class SafetyTalk(ProjectScopedMixin, BaseModel):
    __tablename__ = "safety_talks"

    talk_date: Mapped[date] = mapped_column(Date, nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    presenter: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attendee_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class SafetyIncident(ProjectScopedMixin, BaseModel):
    __tablename__ = "safety_incidents"

    occurred_on: Mapped[date] = mapped_column(Date, nullable=False)
    severity: Mapped[IncidentSeverity] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    corrective_action: Mapped[str | None] = mapped_column(Text, nullable=True)
    reported_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[IncidentStatus] = mapped_column(
        String(20), nullable=False, default=IncidentStatus.OPEN
    )
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SafetyPermit(ProjectScopedMixin, BaseModel):
    __tablename__ = "safety_permits"

    permit_type: Mapped[str] = mapped_column(String(100), nullable=False)  # hot_work, confined_space, energized_electrical, excavation
    issued_to: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[SafetyPermitStatus] = mapped_column(
        String(20), nullable=False, default=SafetyPermitStatus.REQUESTED
    )
    valid_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
