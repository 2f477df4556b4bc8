import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.enums import Discipline, RFIPriority, RFIStatus
from voltbuild.common.exceptions import BadRequestError, InvalidTransitionError, NotFoundError
from voltbuild.core.field.numbering import next_number
from voltbuild.core.field.stats import RFIStats, rfi_days_overdue, rfi_stats
from voltbuild.db.models.rfi import RFI
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/rfis", tags=["RFIs"])

# Answered is reached only through the respond endpoint
VALID_TRANSITIONS: dict[str, list[str]] = {
    RFIStatus.OPEN.value: [RFIStatus.CLOSED.value],
    RFIStatus.ANSWERED.value: [RFIStatus.CLOSED.value, RFIStatus.OPEN.value],
    RFIStatus.CLOSED.value: [RFIStatus.OPEN.value],
}


# ---------- Schemas ----------


class RFICreateRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=500)
    question: str = Field(..., min_length=1)
    submitted_by: str | None = Field(None, max_length=255)
    assigned_to: str | None = Field(None, max_length=255)
    submitted_date: date | None = None
    due_date: date | None = None
    priority: RFIPriority = RFIPriority.NORMAL
    discipline: Discipline = Discipline.GENERAL
    phase_id: uuid.UUID | None = None
    cost_impact: Decimal | None = None
    schedule_impact_days: int | None = None


class RFIUpdateRequest(BaseModel):
    subject: str | None = Field(None, min_length=1, max_length=500)
    question: str | None = Field(None, min_length=1)
    assigned_to: str | None = Field(None, max_length=255)
    due_date: date | None = None
    status: RFIStatus | None = None
    priority: RFIPriority | None = None
    discipline: Discipline | None = None
    cost_impact: Decimal | None = None
    schedule_impact_days: int | None = None


class RFIRespondRequest(BaseModel):
    response: str = Field(..., min_length=1)
    cost_impact: Decimal | None = None
    schedule_impact_days: int | None = None


class RFIResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    rfi_number: str
    subject: str
    question: str
    submitted_by: str
    submitted_date: date
    assigned_to: str | None
    due_date: date | None
    response: str | None
    response_date: date | None
    status: str
    priority: str
    discipline: str
    cost_impact: Decimal | None
    schedule_impact_days: int | None
    days_overdue: int
    created_at: str

    @classmethod
    def from_orm_instance(cls, rfi: RFI, today: date | None = None) -> "RFIResponse":
        return cls(
            id=rfi.id,
            project_id=rfi.project_id,
            phase_id=rfi.phase_id,
            rfi_number=rfi.rfi_number,
            subject=rfi.subject,
            question=rfi.question,
            submitted_by=rfi.submitted_by,
            submitted_date=rfi.submitted_date,
            assigned_to=rfi.assigned_to,
            due_date=rfi.due_date,
            response=rfi.response,
            response_date=rfi.response_date,
            status=rfi.status,
            priority=rfi.priority,
            discipline=rfi.discipline,
            cost_impact=rfi.cost_impact,
            schedule_impact_days=rfi.schedule_impact_days,
            days_overdue=rfi_days_overdue(rfi, today or date.today()),
            created_at=rfi.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[RFIResponse])
async def list_rfis(
    project_id: uuid.UUID,
    status: RFIStatus | None = Query(None),
    discipline: Discipline | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(RFI).where(RFI.project_id == project_id, RFI.is_deleted.is_(False))
    if status:
        query = query.where(RFI.status == status.value)
    if discipline:
        query = query.where(RFI.discipline == discipline.value)
    result = await db.execute(query.order_by(RFI.rfi_number))
    today = date.today()
    return [RFIResponse.from_orm_instance(r, today) for r in result.scalars().all()]


@router.get("/stats", response_model=RFIStats)
async def get_rfi_stats(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(RFI).where(RFI.project_id == project_id, RFI.is_deleted.is_(False))
    )
    return rfi_stats(result.scalars().all(), date.today())


@router.post("", response_model=RFIResponse, status_code=201)
async def create_rfi(
    project_id: uuid.UUID,
    body: RFICreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)

    submitted = body.submitted_date or date.today()
    if body.due_date and body.due_date < submitted:
        raise BadRequestError("due_date cannot be before submitted_date")

    rfi = RFI(
        project_id=project_id,
        phase_id=body.phase_id,
        rfi_number=await next_number(db, RFI, project_id, "RFI"),
        subject=body.subject,
        question=body.question,
        submitted_by=body.submitted_by or current_user.full_name,
        submitted_date=submitted,
        assigned_to=body.assigned_to,
        due_date=body.due_date,
        status=RFIStatus.OPEN.value,
        priority=body.priority.value,
        discipline=body.discipline.value,
        cost_impact=body.cost_impact,
        schedule_impact_days=body.schedule_impact_days,
    )
    db.add(rfi)
    await db.flush()
    await db.refresh(rfi)
    return RFIResponse.from_orm_instance(rfi)


@router.get("/{rfi_id}", response_model=RFIResponse)
async def get_rfi(
    project_id: uuid.UUID,
    rfi_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    return RFIResponse.from_orm_instance(await _get_rfi(project_id, rfi_id, db))


@router.patch("/{rfi_id}", response_model=RFIResponse)
async def update_rfi(
    project_id: uuid.UUID,
    rfi_id: uuid.UUID,
    body: RFIUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    rfi = await _get_rfi(project_id, rfi_id, db)

    updates = body.model_dump(exclude_unset=True, exclude={"status", "priority", "discipline"})
    for field, value in updates.items():
        if field in ("subject", "question") and value is None:
            continue
        setattr(rfi, field, value)
    if body.priority is not None:
        rfi.priority = body.priority.value
    if body.discipline is not None:
        rfi.discipline = body.discipline.value

    if body.status is not None and body.status.value != rfi.status:
        allowed = VALID_TRANSITIONS.get(rfi.status, [])
        if body.status.value not in allowed:
            raise InvalidTransitionError("RFI", rfi.status, body.status.value)
        rfi.status = body.status.value

    await db.flush()
    await db.refresh(rfi)
    return RFIResponse.from_orm_instance(rfi)


@router.post("/{rfi_id}/respond", response_model=RFIResponse)
async def respond_to_rfi(
    project_id: uuid.UUID,
    rfi_id: uuid.UUID,
    body: RFIRespondRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    rfi = await _get_rfi(project_id, rfi_id, db)
    if rfi.status == RFIStatus.CLOSED.value:
        raise BadRequestError("Cannot respond to a closed RFI")

    rfi.response = body.response
    rfi.response_date = date.today()
    rfi.status = RFIStatus.ANSWERED.value
    if body.cost_impact is not None:
        rfi.cost_impact = body.cost_impact
    if body.schedule_impact_days is not None:
        rfi.schedule_impact_days = body.schedule_impact_days

    await db.flush()
    await db.refresh(rfi)
    return RFIResponse.from_orm_instance(rfi)


@router.delete("/{rfi_id}", status_code=204)
async def delete_rfi(
    project_id: uuid.UUID,
    rfi_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    rfi = await _get_rfi(project_id, rfi_id, db)
    rfi.is_deleted = True
    rfi.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def _get_rfi(project_id: uuid.UUID, rfi_id: uuid.UUID, db: AsyncSession) -> RFI:
    result = await db.execute(
        select(RFI).where(RFI.id == rfi_id, RFI.project_id == project_id, RFI.is_deleted.is_(False))
    )
    rfi = result.scalar_one_or_none()
    if not rfi:
        raise NotFoundError("RFI", str(rfi_id))
    return rfi
