from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import CommissioningStatus, GateStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class CommissioningChecklist(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "commissioning_checklists"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    checklist_type: Mapped[str] = mapped_column(String(50), nullable=False)
    # [{description, required, requires_evidence, completed, evidence_url}]
    items: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    status: Mapped[CommissioningStatus] = mapped_column(
        String(20), nullable=False, default=CommissioningStatus.NOT_STARTED
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class EnergizationGate(ProjectScopedMixin, BaseModel):
    __tablename__ = "energization_gates"

    gate_name: Mapped[str] = mapped_column(String(255), nullable=False)
    required_checklist_ids: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    status: Mapped[GateStatus] = mapped_column(String(20), nullable=False, default=GateStatus.BLOCKED)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
