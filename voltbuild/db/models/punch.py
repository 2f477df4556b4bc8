from datetime import date

from sqlalchemy import Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import PunchPriority, PunchStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class PunchItem(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "punch_items"

    item_number: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    responsible_party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    priority: Mapped[PunchPriority] = mapped_column(String(1), nullable=False, default=PunchPriority.B)
    status: Mapped[PunchStatus] = mapped_column(String(20), nullable=False, default=PunchStatus.OPEN)
    identified_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    verified_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
