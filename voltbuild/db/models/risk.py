from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import RiskSeverity, RiskStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class Risk(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "risks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[RiskSeverity] = mapped_column(
        String(20), nullable=False, default=RiskSeverity.MEDIUM
    )
    status: Mapped[RiskStatus] = mapped_column(String(20), nullable=False, default=RiskStatus.OPEN)
    mitigation_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    owner: Mapped[str | None] = mapped_column(String(255), nullable=True)
