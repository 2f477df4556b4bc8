from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import SubcontractorStatus
from voltbuild.db.base import BaseModel, ProjectScopedMixin


class Subcontractor(ProjectScopedMixin, BaseModel):
    __tablename__ = "subcontractors"

    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    trade: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[SubcontractorStatus] = mapped_column(
        String(20), nullable=False, default=SubcontractorStatus.PENDING
    )
    contract_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    contract_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    contract_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    insurance_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    wcb_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    safety_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    performance_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
