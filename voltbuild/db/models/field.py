import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import ShiftType
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class DailyLog(ProjectScopedMixin, BaseModel):
    __tablename__ = "daily_logs"

    log_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    author_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    weather: Mapped[str | None] = mapped_column(String(255), nullable=True)
    temperature_c: Mapped[float | None] = mapped_column(Float, nullable=True)
    crew_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    work_summary: Mapped[str] = mapped_column(Text, nullable=False)
    delays: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class LaborEntry(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "labor_entries"

    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    trade_type: Mapped[str] = mapped_column(String(100), nullable=False)
    headcount: Mapped[int] = mapped_column(Integer, nullable=False)
    hours_worked: Mapped[float | None] = mapped_column(Float, nullable=True)
    shift: Mapped[ShiftType] = mapped_column(String(10), nullable=False, default=ShiftType.DAY)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class FieldCheckin(ProjectScopedMixin, BaseModel):
    __tablename__ = "field_checkins"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=True
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Coarse only (site area or grid cell), never raw coordinates
    coarse_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    checkin_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    checkout_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
