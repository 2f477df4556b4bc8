import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db
from voltbuild.common.enums import VendorTrade
from voltbuild.common.exceptions import NotFoundError
from voltbuild.db.models.bid import Vendor
from voltbuild.db.models.user import User

router = APIRouter(prefix="/vendors", tags=["Vendors"])


# ---------- Schemas ----------


class VendorCreateRequest(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    trade: VendorTrade = VendorTrade.OTHER
    contact_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    regions: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    notes: str | None = None


class VendorUpdateRequest(BaseModel):
    company_name: str | None = Field(None, min_length=1, max_length=255)
    trade: VendorTrade | None = None
    contact_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    regions: list[str] | None = None
    certifications: list[str] | None = None
    notes: str | None = None


class VendorResponse(BaseModel):
    id: uuid.UUID
    company_name: str
    trade: str
    contact_name: str | None
    email: str | None
    phone: str | None
    regions: list[str]
    certifications: list[str]
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, vendor: Vendor) -> "VendorResponse":
        return cls(
            id=vendor.id,
            company_name=vendor.company_name,
            trade=vendor.trade,
            contact_name=vendor.contact_name,
            email=vendor.email,
            phone=vendor.phone,
            regions=vendor.regions or [],
            certifications=vendor.certifications or [],
            notes=vendor.notes,
            created_at=vendor.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[VendorResponse])
async def list_vendors(
    trade: VendorTrade | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Vendor).where(Vendor.owner_id == current_user.id, Vendor.is_deleted.is_(False))
    if trade:
        query = query.where(Vendor.trade == trade.value)
    result = await db.execute(query.order_by(Vendor.company_name))
    return [VendorResponse.from_orm_instance(v) for v in result.scalars().all()]


@router.post("", response_model=VendorResponse, status_code=201)
async def create_vendor(
    body: VendorCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vendor = Vendor(
        owner_id=current_user.id,
        company_name=body.company_name,
        trade=body.trade.value,
        contact_name=body.contact_name,
        email=body.email,
        phone=body.phone,
        regions=body.regions,
        certifications=body.certifications,
        notes=body.notes,
    )
    db.add(vendor)
    await db.flush()
    await db.refresh(vendor)
    return VendorResponse.from_orm_instance(vendor)


@router.patch("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: uuid.UUID,
    body: VendorUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vendor = await get_vendor_for_user(vendor_id, current_user, db)
    updates = body.model_dump(exclude_unset=True, exclude={"trade"})
    for field, value in updates.items():
        if value is None and field in ("company_name", "regions", "certifications"):
            continue
        setattr(vendor, field, value)
    if body.trade is not None:
        vendor.trade = body.trade.value
    await db.flush()
    await db.refresh(vendor)
    return VendorResponse.from_orm_instance(vendor)


@router.delete("/{vendor_id}", status_code=204)
async def delete_vendor(
    vendor_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    vendor = await get_vendor_for_user(vendor_id, current_user, db)
    vendor.is_deleted = True
    vendor.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def get_vendor_for_user(vendor_id: uuid.UUID, user: User, db: AsyncSession) -> Vendor:
    """Vendors are private to the user who added them; anyone else gets a 404."""
    result = await db.execute(
        select(Vendor).where(
            Vendor.id == vendor_id,
            Vendor.owner_id == user.id,
            Vendor.is_deleted.is_(False),
        )
    )
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFoundError("Vendor", str(vendor_id))
    return vendor
