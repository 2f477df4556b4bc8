from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import Discipline, RFIPriority, RFIStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class RFI(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "rfis"

    rfi_number: Mapped[str] = mapped_column(String(20), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    submitted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    submitted_date: Mapped[date] = mapped_column(Date, nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[RFIStatus] = mapped_column(String(20), nullable=False, default=RFIStatus.OPEN)
    priority: Mapped[RFIPriority] = mapped_column(String(20), nullable=False, default=RFIPriority.NORMAL)
    discipline: Mapped[Discipline] = mapped_column(String(20), nullable=False, default=Discipline.GENERAL)
    cost_impact: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    schedule_impact_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
