import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import ProcurementCategory, ProcurementStatus, PurchaseOrderStatus
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class ProcurementItem(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    """Equipment or material tracked from order to delivery."""

    __tablename__ = "procurement_items"

    task_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id"), nullable=True
    )
    category: Mapped[ProcurementCategory] = mapped_column(
        String(20), nullable=False, default=ProcurementCategory.OTHER
    )
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vendor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("1"))
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_cost: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False, default=Decimal("0.00"))
    order_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    promised_ship_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[ProcurementStatus] = mapped_column(
        String(20), nullable=False, default=ProcurementStatus.PLANNED
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class PurchaseOrder(ProjectScopedMixin, BaseModel):
    __tablename__ = "purchase_orders"
    __table_args__ = (UniqueConstraint("project_id", "po_number", name="uq_project_po_number"),)

    po_number: Mapped[str] = mapped_column(String(50), nullable=False)
    vendor: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False, default=Decimal("0.00"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[PurchaseOrderStatus] = mapped_column(
        String(20), nullable=False, default=PurchaseOrderStatus.DRAFT
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
