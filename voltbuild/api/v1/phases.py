import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.cache import query_cache
from voltbuild.common.enums import PhaseStatus
from voltbuild.common.events import emit
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.core.progress.service import ProgressService
from voltbuild.core.projects.queries import get_phases
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/phases", tags=["Phases"])


# ---------- Schemas ----------


class PhaseCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    order_index: int | None = Field(None, ge=0)
    planned_start_date: date | None = None
    planned_end_date: date | None = None


class PhaseUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    order_index: int | None = Field(None, ge=0)
    planned_start_date: date | None = None
    planned_end_date: date | None = None


class PhaseResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    description: str | None
    order_index: int
    status: str
    progress: int
    planned_start_date: date | None
    planned_end_date: date | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, phase: Phase) -> "PhaseResponse":
        return cls(
            id=phase.id,
            project_id=phase.project_id,
            name=phase.name,
            description=phase.description,
            order_index=phase.order_index,
            status=phase.status,
            progress=phase.progress,
            planned_start_date=phase.planned_start_date,
            planned_end_date=phase.planned_end_date,
            created_at=phase.created_at.isoformat(),
        )


class PhaseListResponse(BaseModel):
    phases: list[PhaseResponse]
    total: int


# ---------- Endpoints ----------


@router.get("", response_model=PhaseListResponse)
async def list_phases(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)

    cached = query_cache.get("phases", project_id)
    if cached is not None:
        return cached

    phases = await get_phases(project_id, db)
    response = PhaseListResponse(
        phases=[PhaseResponse.from_orm_instance(p) for p in phases],
        total=len(phases),
    ).model_dump(mode="json")
    query_cache.set("phases", project_id, response)
    return response


@router.post("", response_model=PhaseResponse, status_code=201)
async def create_phase(
    project_id: uuid.UUID,
    body: PhaseCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    _check_dates(body.planned_start_date, body.planned_end_date)

    order_index = body.order_index
    if order_index is None:
        result = await db.execute(
            select(func.max(Phase.order_index)).where(
                Phase.project_id == project_id, Phase.is_deleted.is_(False)
            )
        )
        current_max = result.scalar()
        order_index = 0 if current_max is None else current_max + 1

    phase = Phase(
        project_id=project_id,
        name=body.name,
        description=body.description,
        order_index=order_index,
        status=PhaseStatus.NOT_STARTED.value,
        progress=0,
        planned_start_date=body.planned_start_date,
        planned_end_date=body.planned_end_date,
    )
    db.add(phase)
    await db.flush()

    # A new empty phase counts toward the project mean
    await ProgressService().recalculate_project(project_id, db)
    await db.refresh(phase)
    return PhaseResponse.from_orm_instance(phase)


@router.patch("/{phase_id}", response_model=PhaseResponse)
async def update_phase(
    project_id: uuid.UUID,
    phase_id: uuid.UUID,
    body: PhaseUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phase = await get_phase_in_project(project_id, phase_id, db)

    for field, value in body.model_dump(exclude_unset=True).items():
        if field in ("name", "order_index") and value is None:
            continue
        setattr(phase, field, value)
    _check_dates(phase.planned_start_date, phase.planned_end_date)

    await db.flush()
    query_cache.invalidate_project(project_id, db)
    await db.refresh(phase)
    return PhaseResponse.from_orm_instance(phase)


@router.delete("/{phase_id}", status_code=204)
async def delete_phase(
    project_id: uuid.UUID,
    phase_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phase = await get_phase_in_project(project_id, phase_id, db)

    now = datetime.now(timezone.utc)
    phase.is_deleted = True
    phase.deleted_at = now
    await db.execute(
        update(Task)
        .where(Task.phase_id == phase.id, Task.is_deleted.is_(False))
        .values(is_deleted=True, deleted_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    await ProgressService().recalculate_project(project_id, db)


@router.post("/recalculate", response_model=PhaseListResponse)
async def recalculate_phases(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recompute every phase's progress and status from its tasks."""
    await get_project_for_user(project_id, current_user, db)
    phases = await ProgressService().recalculate_all_phases(project_id, db)
    for phase in phases:
        await db.refresh(phase)
    await emit(project_id, "phase.updated", {"recalculated": len(phases)})
    return PhaseListResponse(
        phases=[PhaseResponse.from_orm_instance(p) for p in phases],
        total=len(phases),
    )


# ---------- Helpers ----------


async def get_phase_in_project(
    project_id: uuid.UUID, phase_id: uuid.UUID, db: AsyncSession
) -> Phase:
    result = await db.execute(
        select(Phase).where(
            Phase.id == phase_id,
            Phase.project_id == project_id,
            Phase.is_deleted.is_(False),
        )
    )
    phase = result.scalar_one_or_none()
    if not phase:
        raise NotFoundError("Phase", str(phase_id))
    return phase


def _check_dates(start: date | None, end: date | None) -> None:
    if start and end and end < start:
        raise BadRequestError("planned_end_date cannot be before planned_start_date")
