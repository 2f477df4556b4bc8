import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.enums import PunchPriority, PunchStatus
from voltbuild.common.exceptions import BadRequestError, InvalidTransitionError, NotFoundError
from voltbuild.core.field.numbering import next_number
from voltbuild.core.field.stats import PunchStats, punch_stats
from voltbuild.db.models.punch import PunchItem
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/punch-items", tags=["Punch List"])

# Verified is reached only through the verify endpoint
VALID_TRANSITIONS: dict[str, list[str]] = {
    PunchStatus.OPEN.value: [PunchStatus.IN_PROGRESS.value, PunchStatus.COMPLETE.value],
    PunchStatus.IN_PROGRESS.value: [PunchStatus.OPEN.value, PunchStatus.COMPLETE.value],
    PunchStatus.COMPLETE.value: [PunchStatus.IN_PROGRESS.value],
    PunchStatus.VERIFIED.value: [],
}


# ---------- Schemas ----------


class PunchItemCreateRequest(BaseModel):
    description: str = Field(..., min_length=1)
    location: str | None = Field(None, max_length=255)
    responsible_party: str | None = Field(None, max_length=255)
    priority: PunchPriority = PunchPriority.B
    phase_id: uuid.UUID | None = None
    identified_date: date | None = None
    due_date: date | None = None
    notes: str | None = None


class PunchItemUpdateRequest(BaseModel):
    description: str | None = Field(None, min_length=1)
    location: str | None = Field(None, max_length=255)
    responsible_party: str | None = Field(None, max_length=255)
    priority: PunchPriority | None = None
    status: PunchStatus | None = None
    due_date: date | None = None
    notes: str | None = None


class VerifyRequest(BaseModel):
    verified_by: str | None = Field(None, min_length=1, max_length=255)


class PunchItemResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    item_number: str
    description: str
    location: str | None
    responsible_party: str | None
    priority: str
    status: str
    identified_date: date
    due_date: date | None
    completed_date: date | None
    verified_by: str | None
    verified_date: date | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, item: PunchItem) -> "PunchItemResponse":
        return cls(
            id=item.id,
            project_id=item.project_id,
            phase_id=item.phase_id,
            item_number=item.item_number,
            description=item.description,
            location=item.location,
            responsible_party=item.responsible_party,
            priority=item.priority,
            status=item.status,
            identified_date=item.identified_date,
            due_date=item.due_date,
            completed_date=item.completed_date,
            verified_by=item.verified_by,
            verified_date=item.verified_date,
            notes=item.notes,
            created_at=item.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[PunchItemResponse])
async def list_punch_items(
    project_id: uuid.UUID,
    status: PunchStatus | None = Query(None),
    priority: PunchPriority | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(PunchItem).where(
        PunchItem.project_id == project_id, PunchItem.is_deleted.is_(False)
    )
    if status:
        query = query.where(PunchItem.status == status.value)
    if priority:
        query = query.where(PunchItem.priority == priority.value)
    result = await db.execute(query.order_by(PunchItem.item_number))
    return [PunchItemResponse.from_orm_instance(i) for i in result.scalars().all()]


@router.get("/stats", response_model=PunchStats)
async def get_punch_stats(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(PunchItem).where(PunchItem.project_id == project_id, PunchItem.is_deleted.is_(False))
    )
    return punch_stats(result.scalars().all())


@router.post("", response_model=PunchItemResponse, status_code=201)
async def create_punch_item(
    project_id: uuid.UUID,
    body: PunchItemCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)

    item = PunchItem(
        project_id=project_id,
        phase_id=body.phase_id,
        item_number=await next_number(db, PunchItem, project_id, "PL"),
        description=body.description,
        location=body.location,
        responsible_party=body.responsible_party,
        priority=body.priority.value,
        status=PunchStatus.OPEN.value,
        identified_date=body.identified_date or date.today(),
        due_date=body.due_date,
        notes=body.notes,
    )
    db.add(item)
    await db.flush()
    await db.refresh(item)
    return PunchItemResponse.from_orm_instance(item)


@router.patch("/{item_id}", response_model=PunchItemResponse)
async def update_punch_item(
    project_id: uuid.UUID,
    item_id: uuid.UUID,
    body: PunchItemUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    item = await _get_item(project_id, item_id, db)

    updates = body.model_dump(exclude_unset=True, exclude={"status", "priority"})
    for field, value in updates.items():
        if field == "description" and value is None:
            continue
        setattr(item, field, value)
    if body.priority is not None:
        item.priority = body.priority.value

    if body.status is not None and body.status.value != item.status:
        allowed = VALID_TRANSITIONS.get(item.status, [])
        if body.status.value not in allowed:
            raise InvalidTransitionError("punch item", item.status, body.status.value)
        item.status = body.status.value
        if body.status == PunchStatus.COMPLETE:
            item.completed_date = date.today()
        else:
            item.completed_date = None

    await db.flush()
    await db.refresh(item)
    return PunchItemResponse.from_orm_instance(item)


@router.post("/{item_id}/verify", response_model=PunchItemResponse)
async def verify_punch_item(
    project_id: uuid.UUID,
    item_id: uuid.UUID,
    body: VerifyRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Sign off a completed item."""
    await get_project_for_user(project_id, current_user, db)
    item = await _get_item(project_id, item_id, db)
    if item.status != PunchStatus.COMPLETE.value:
        raise BadRequestError("Only completed punch items can be verified")

    item.status = PunchStatus.VERIFIED.value
    item.verified_by = (body.verified_by if body else None) or current_user.full_name
    item.verified_date = date.today()
    await db.flush()
    await db.refresh(item)
    return PunchItemResponse.from_orm_instance(item)


@router.delete("/{item_id}", status_code=204)
async def delete_punch_item(
    project_id: uuid.UUID,
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    item = await _get_item(project_id, item_id, db)
    item.is_deleted = True
    item.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def _get_item(project_id: uuid.UUID, item_id: uuid.UUID, db: AsyncSession) -> PunchItem:
    result = await db.execute(
        select(PunchItem).where(
            PunchItem.id == item_id,
            PunchItem.project_id == project_id,
            PunchItem.is_deleted.is_(False),
        )
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Punch item", str(item_id))
    return item
