import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import CoolingType, ProjectStatus
from voltbuild.db.base import BaseModel


class Project(BaseModel):
    __tablename__ = "projects"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_capacity_mw: Mapped[float | None] = mapped_column(Float, nullable=True)
    cooling_type: Mapped[CoolingType] = mapped_column(
        String(20), nullable=False, default=CoolingType.AIR
    )
    utility: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    planned_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Target end date, used as the forecasting baseline
    planned_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    capex_budget: Mapped[Decimal | None] = mapped_column(Numeric(16, 2), nullable=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ProjectStatus] = mapped_column(
        String(20), nullable=False, default=ProjectStatus.PLANNING
    )
