import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import ChangeOrderStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class ChangeOrder(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "change_orders"

    change_order_number: Mapped[str] = mapped_column(String(20), nullable=False)
    task_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Positive values add cost or days, negative values save them
    cost_delta: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    schedule_delta_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ChangeOrderStatus] = mapped_column(
        String(20), nullable=False, default=ChangeOrderStatus.DRAFT
    )
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    implemented_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
