"""Commissioning checklists and the energization gates that depend on them."""

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.enums import CommissioningStatus
from voltbuild.common.events import emit
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.core.commissioning.checklists import (
    CHECKLIST_TEMPLATES,
    ChecklistItem,
    ChecklistTemplate,
    CommissioningStats,
    GateDetail,
    checklist_progress,
    checklist_status,
    commissioning_stats,
    gate_detail,
    get_template,
)
from voltbuild.db.models.commissioning import CommissioningChecklist, EnergizationGate
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/commissioning", tags=["Commissioning"])


# ---------- Schemas ----------


class ChecklistItemInput(BaseModel):
    description: str = Field(..., min_length=1)
    required: bool = True
    requires_evidence: bool = False


class ChecklistCreateRequest(BaseModel):
    template: str | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    checklist_type: str | None = Field(None, min_length=1, max_length=50)
    items: list[ChecklistItemInput] | None = None
    phase_id: uuid.UUID | None = None


class ItemToggleRequest(BaseModel):
    completed: bool
    evidence_url: str | None = Field(None, min_length=1, max_length=1000)


class ChecklistResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    name: str
    checklist_type: str
    items: list[ChecklistItem]
    status: str
    progress: int
    completed_at: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, checklist: CommissioningChecklist) -> "ChecklistResponse":
        items = _items(checklist)
        return cls(
            id=checklist.id,
            project_id=checklist.project_id,
            phase_id=checklist.phase_id,
            name=checklist.name,
            checklist_type=checklist.checklist_type,
            items=items,
            status=checklist.status,
            progress=checklist_progress(items),
            completed_at=checklist.completed_at.isoformat() if checklist.completed_at else None,
            created_at=checklist.created_at.isoformat(),
        )


class GateCreateRequest(BaseModel):
    gate_name: str = Field(..., min_length=1, max_length=255)
    required_checklist_ids: list[uuid.UUID] = Field(..., min_length=1)
    notes: str | None = None


class GateResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    gate_name: str
    required_checklist_ids: list[str]
    status: str
    detail: GateDetail
    notes: str | None
    created_at: str


# ---------- Checklist endpoints ----------


@router.get("/templates", response_model=list[ChecklistTemplate])
async def list_templates(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    return list(CHECKLIST_TEMPLATES)


@router.get("/checklists", response_model=list[ChecklistResponse])
async def list_checklists(
    project_id: uuid.UUID,
    status: CommissioningStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    checklists = await _load_checklists(project_id, db)
    if status:
        checklists = [c for c in checklists if c.status == status.value]
    return [ChecklistResponse.from_orm_instance(c) for c in checklists]


@router.get("/stats", response_model=CommissioningStats)
async def get_commissioning_stats(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    return commissioning_stats(await _load_checklists(project_id, db))


@router.post("/checklists", response_model=ChecklistResponse, status_code=201)
async def create_checklist(
    project_id: uuid.UUID,
    body: ChecklistCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a checklist from a template, or from a custom item list."""
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)

    if body.template is not None:
        template = get_template(body.template)
        if template is None:
            known = ", ".join(t.checklist_type for t in CHECKLIST_TEMPLATES)
            raise BadRequestError(f"Unknown checklist template '{body.template}'. Known: {known}")
        name = body.name or template.name
        checklist_type = template.checklist_type
        items = [i.model_copy() for i in template.items]
    else:
        if not body.items:
            raise BadRequestError("Provide a template or at least one item")
        if not body.name:
            raise BadRequestError("A custom checklist needs a name")
        name = body.name
        checklist_type = body.checklist_type or "custom"
        items = [ChecklistItem(**i.model_dump()) for i in body.items]

    checklist = CommissioningChecklist(
        project_id=project_id,
        phase_id=body.phase_id,
        name=name,
        checklist_type=checklist_type,
        items=[i.model_dump() for i in items],
        status=CommissioningStatus.NOT_STARTED.value,
    )
    db.add(checklist)
    await db.flush()
    await db.refresh(checklist)
    return ChecklistResponse.from_orm_instance(checklist)


@router.get("/checklists/{checklist_id}", response_model=ChecklistResponse)
async def get_checklist(
    project_id: uuid.UUID,
    checklist_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    return ChecklistResponse.from_orm_instance(await _get_checklist(project_id, checklist_id, db))


@router.patch("/checklists/{checklist_id}/items/{index}", response_model=ChecklistResponse)
async def toggle_checklist_item(
    project_id: uuid.UUID,
    checklist_id: uuid.UUID,
    index: int,
    body: ItemToggleRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tick or untick one item, then refresh the checklist and gate statuses."""
    await get_project_for_user(project_id, current_user, db)
    checklist = await _get_checklist(project_id, checklist_id, db)
    items = _items(checklist)
    if not 0 <= index < len(items):
        raise NotFoundError("Checklist item", str(index))

    item = items[index]
    evidence = body.evidence_url or item.evidence_url
    if body.completed and item.requires_evidence and not evidence:
        raise BadRequestError("This item needs an evidence_url before it can be completed")
    items[index] = item.model_copy(update={"completed": body.completed, "evidence_url": evidence})

    previous = checklist.status
    status = checklist_status(items)
    checklist.items = [i.model_dump() for i in items]
    checklist.status = status.value
    if status == CommissioningStatus.COMPLETE:
        checklist.completed_at = checklist.completed_at or datetime.now(timezone.utc)
    else:
        checklist.completed_at = None

    await db.flush()
    await _refresh_gates(project_id, db)
    await db.refresh(checklist)

    if checklist.status != previous:
        await emit(project_id, "commissioning.updated", {
            "checklist_id": str(checklist.id),
            "status": checklist.status,
        })
    return ChecklistResponse.from_orm_instance(checklist)


@router.delete("/checklists/{checklist_id}", status_code=204)
async def delete_checklist(
    project_id: uuid.UUID,
    checklist_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    checklist = await _get_checklist(project_id, checklist_id, db)
    checklist.is_deleted = True
    checklist.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    await _refresh_gates(project_id, db)


# ---------- Gate endpoints ----------


@router.get("/gates", response_model=list[GateResponse])
async def list_gates(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    return await _refresh_gates(project_id, db)


@router.post("/gates", response_model=GateResponse, status_code=201)
async def create_gate(
    project_id: uuid.UUID,
    body: GateCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    by_id = {c.id: c for c in await _load_checklists(project_id, db)}
    unknown = [str(i) for i in body.required_checklist_ids if i not in by_id]
    if unknown:
        raise BadRequestError(f"Checklists not found in this project: {', '.join(unknown)}")

    required = [str(i) for i in dict.fromkeys(body.required_checklist_ids)]
    detail = gate_detail(required, by_id)
    gate = EnergizationGate(
        project_id=project_id,
        gate_name=body.gate_name,
        required_checklist_ids=required,
        status=detail.status.value,
        notes=body.notes,
    )
    db.add(gate)
    await db.flush()
    await db.refresh(gate)
    return _gate_response(gate, detail)


@router.delete("/gates/{gate_id}", status_code=204)
async def delete_gate(
    project_id: uuid.UUID,
    gate_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(EnergizationGate).where(
            EnergizationGate.id == gate_id,
            EnergizationGate.project_id == project_id,
            EnergizationGate.is_deleted.is_(False),
        )
    )
    gate = result.scalar_one_or_none()
    if not gate:
        raise NotFoundError("Energization gate", str(gate_id))
    gate.is_deleted = True
    gate.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Helpers ----------


def _items(checklist: CommissioningChecklist) -> list[ChecklistItem]:
    return [ChecklistItem(**raw) for raw in checklist.items or []]


def _gate_response(gate: EnergizationGate, detail: GateDetail) -> GateResponse:
    return GateResponse(
        id=gate.id,
        project_id=gate.project_id,
        gate_name=gate.gate_name,
        required_checklist_ids=gate.required_checklist_ids or [],
        status=gate.status,
        detail=detail,
        notes=gate.notes,
        created_at=gate.created_at.isoformat(),
    )


async def _refresh_gates(project_id: uuid.UUID, db: AsyncSession) -> list[GateResponse]:
    """Re-evaluate every gate in the project and store any status change."""
    by_id = {c.id: c for c in await _load_checklists(project_id, db)}
    result = await db.execute(
        select(EnergizationGate)
        .where(EnergizationGate.project_id == project_id, EnergizationGate.is_deleted.is_(False))
        .order_by(EnergizationGate.created_at)
    )
    responses = []
    for gate in result.scalars().all():
        detail = gate_detail(gate.required_checklist_ids or [], by_id)
        gate.status = detail.status.value
        responses.append(_gate_response(gate, detail))
    await db.flush()
    return responses


async def _load_checklists(project_id: uuid.UUID, db: AsyncSession) -> list[CommissioningChecklist]:
    result = await db.execute(
        select(CommissioningChecklist)
        .where(
            CommissioningChecklist.project_id == project_id,
            CommissioningChecklist.is_deleted.is_(False),
        )
        .order_by(CommissioningChecklist.created_at)
    )
    return list(result.scalars().all())


async def _get_checklist(
    project_id: uuid.UUID, checklist_id: uuid.UUID, db: AsyncSession
) -> CommissioningChecklist:
    result = await db.execute(
        select(CommissioningChecklist).where(
            CommissioningChecklist.id == checklist_id,
            CommissioningChecklist.project_id == project_id,
            CommissioningChecklist.is_deleted.is_(False),
        )
    )
    checklist = result.scalar_one_or_none()
    if not checklist:
        raise NotFoundError("Commissioning checklist", str(checklist_id))
    return checklist
