import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.enums import SubcontractorStatus
from voltbuild.common.exceptions import NotFoundError
from voltbuild.db.models.subcontractor import Subcontractor
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/subcontractors", tags=["Subcontractors"])

COMPLIANCE_WINDOW_DAYS = 30


# ---------- Schemas ----------


class SubcontractorCreateRequest(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255)
    trade: str = Field(..., min_length=1, max_length=100)
    contact_name: str | None = Field(None, max_length=255)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=50)
    status: SubcontractorStatus = SubcontractorStatus.PENDING
    contract_value: Decimal | None = Field(None, ge=0)
    contract_date: date | None = None
    contract_end_date: date | None = None
    insurance_expiry: date | None = None
    wcb_expiry: date | None = None
    safety_rating: int | None = Field(None, ge=1, le=5)
    performance_rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = None


class SubcontractorUpdateRequest(BaseModel):
    company_name: str | None = Field(None, min_length=1, max_length=255)
    trade: str | None = Field(None, min_length=1, max_length=100)
    contact_name: str | None = Field(None, max_length=255)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=50)
    status: SubcontractorStatus | None = None
    contract_value: Decimal | None = Field(None, ge=0)
    contract_date: date | None = None
    contract_end_date: date | None = None
    insurance_expiry: date | None = None
    wcb_expiry: date | None = None
    safety_rating: int | None = Field(None, ge=1, le=5)
    performance_rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = None


class SubcontractorResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    company_name: str
    trade: str
    contact_name: str | None
    contact_email: str | None
    contact_phone: str | None
    status: str
    contract_value: Decimal | None
    contract_date: date | None
    contract_end_date: date | None
    insurance_expiry: date | None
    wcb_expiry: date | None
    safety_rating: int | None
    performance_rating: int | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, sub: Subcontractor) -> "SubcontractorResponse":
        return cls(
            id=sub.id,
            project_id=sub.project_id,
            company_name=sub.company_name,
            trade=sub.trade,
            contact_name=sub.contact_name,
            contact_email=sub.contact_email,
            contact_phone=sub.contact_phone,
            status=sub.status,
            contract_value=sub.contract_value,
            contract_date=sub.contract_date,
            contract_end_date=sub.contract_end_date,
            insurance_expiry=sub.insurance_expiry,
            wcb_expiry=sub.wcb_expiry,
            safety_rating=sub.safety_rating,
            performance_rating=sub.performance_rating,
            notes=sub.notes,
            created_at=sub.created_at.isoformat(),
        )


class ComplianceIssue(BaseModel):
    subcontractor_id: uuid.UUID
    company_name: str
    document: str  # "insurance" or "wcb"
    expiry_date: date
    days_remaining: int
    expired: bool


class ComplianceResponse(BaseModel):
    as_of: date
    window_days: int
    issues: list[ComplianceIssue]


# ---------- Endpoints ----------


@router.get("", response_model=list[SubcontractorResponse])
async def list_subcontractors(
    project_id: uuid.UUID,
    status: SubcontractorStatus | None = Query(None),
    trade: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(Subcontractor).where(
        Subcontractor.project_id == project_id, Subcontractor.is_deleted.is_(False)
    )
    if status:
        query = query.where(Subcontractor.status == status.value)
    if trade:
        query = query.where(Subcontractor.trade == trade)
    result = await db.execute(query.order_by(Subcontractor.company_name))
    return [SubcontractorResponse.from_orm_instance(s) for s in result.scalars().all()]


@router.get("/compliance", response_model=ComplianceResponse)
async def get_compliance(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Insurance and WCB coverage that has lapsed or lapses within 30 days."""
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(Subcontractor)
        .where(Subcontractor.project_id == project_id, Subcontractor.is_deleted.is_(False))
        .order_by(Subcontractor.company_name)
    )
    today = date.today()
    return ComplianceResponse(
        as_of=today,
        window_days=COMPLIANCE_WINDOW_DAYS,
        issues=compliance_issues(result.scalars().all(), today),
    )


@router.post("", response_model=SubcontractorResponse, status_code=201)
async def create_subcontractor(
    project_id: uuid.UUID,
    body: SubcontractorCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    data = body.model_dump()
    data["status"] = body.status.value
    sub = Subcontractor(project_id=project_id, **data)
    db.add(sub)
    await db.flush()
    await db.refresh(sub)
    return SubcontractorResponse.from_orm_instance(sub)


@router.patch("/{sub_id}", response_model=SubcontractorResponse)
async def update_subcontractor(
    project_id: uuid.UUID,
    sub_id: uuid.UUID,
    body: SubcontractorUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    sub = await _get_subcontractor(project_id, sub_id, db)

    for field, value in body.model_dump(exclude_unset=True).items():
        if field in ("company_name", "trade", "status") and value is None:
            continue
        if field == "status":
            value = value.value
        setattr(sub, field, value)

    await db.flush()
    await db.refresh(sub)
    return SubcontractorResponse.from_orm_instance(sub)


@router.delete("/{sub_id}", status_code=204)
async def delete_subcontractor(
    project_id: uuid.UUID,
    sub_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    sub = await _get_subcontractor(project_id, sub_id, db)
    sub.is_deleted = True
    sub.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Helpers ----------


def compliance_issues(subs, today: date, window_days: int = COMPLIANCE_WINDOW_DAYS) -> list[ComplianceIssue]:
    horizon = today + timedelta(days=window_days)
    issues = []
    for sub in subs:
        for document, expiry in (("insurance", sub.insurance_expiry), ("wcb", sub.wcb_expiry)):
            if expiry is None or expiry > horizon:
                continue
            issues.append(ComplianceIssue(
                subcontractor_id=sub.id,
                company_name=sub.company_name,
                document=document,
                expiry_date=expiry,
                days_remaining=(expiry - today).days,
                expired=expiry < today,
            ))
    issues.sort(key=lambda i: (i.expiry_date, i.company_name))
    return issues


async def _get_subcontractor(
    project_id: uuid.UUID, sub_id: uuid.UUID, db: AsyncSession
) -> Subcontractor:
    result = await db.execute(
        select(Subcontractor).where(
            Subcontractor.id == sub_id,
            Subcontractor.project_id == project_id,
            Subcontractor.is_deleted.is_(False),
        )
    )
    sub = result.scalar_one_or_none()
    if not sub:
        raise NotFoundError("Subcontractor", str(sub_id))
    return sub
