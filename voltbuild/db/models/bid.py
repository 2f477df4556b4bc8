import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import BidRequestStatus, BidStatus, VendorTrade
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class Vendor(BaseModel):
    """A company in a user's vendor directory, shared across their projects."""

    __tablename__ = "vendors"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    trade: Mapped[VendorTrade] = mapped_column(String(20), nullable=False, default=VendorTrade.OTHER)
    regions: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    certifications: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class BidRequest(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    __tablename__ = "bid_requests"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scope_of_work: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[BidRequestStatus] = mapped_column(
        String(20), nullable=False, default=BidRequestStatus.DRAFT
    )
    invited_vendor_ids: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)


class Bid(BaseModel):
    __tablename__ = "bids"

    bid_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bid_requests.id"), nullable=False, index=True
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    timeline_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assumptions: Mapped[str | None] = mapped_column(Text, nullable=True)
    exclusions: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[BidStatus] = mapped_column(String(20), nullable=False, default=BidStatus.SUBMITTED)


class ContractAward(ProjectScopedMixin, BaseModel):
    __tablename__ = "contract_awards"

    bid_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bid_requests.id"), nullable=False, unique=True
    )
    bid_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bids.id"), nullable=False
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id"), nullable=False
    )
    awarded_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
