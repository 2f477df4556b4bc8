"""Change orders: scope changes with their cost and schedule impact."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.api.v1.tasks import get_task_in_project
from voltbuild.common.enums import ChangeOrderStatus
from voltbuild.common.events import emit
from voltbuild.common.exceptions import BadRequestError, InvalidTransitionError, NotFoundError
from voltbuild.core.change_orders.impact import ChangeOrderImpact, change_order_impact
from voltbuild.core.field.numbering import next_number
from voltbuild.db.models.change_order import ChangeOrder
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/change-orders", tags=["Change Orders"])

VALID_TRANSITIONS: dict[str, list[str]] = {
    ChangeOrderStatus.DRAFT.value: [ChangeOrderStatus.SUBMITTED.value],
    ChangeOrderStatus.SUBMITTED.value: [ChangeOrderStatus.APPROVED.value, ChangeOrderStatus.REJECTED.value],
    ChangeOrderStatus.APPROVED.value: [ChangeOrderStatus.IMPLEMENTED.value],
    ChangeOrderStatus.REJECTED.value: [ChangeOrderStatus.DRAFT.value],
    ChangeOrderStatus.IMPLEMENTED.value: [],
}

ACTION_MAP = {
    "submit": ChangeOrderStatus.SUBMITTED.value,
    "approve": ChangeOrderStatus.APPROVED.value,
    "reject": ChangeOrderStatus.REJECTED.value,
    "implement": ChangeOrderStatus.IMPLEMENTED.value,
    "revise": ChangeOrderStatus.DRAFT.value,
}


# ---------- Schemas ----------


class ChangeOrderCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    reason: str | None = None
    requested_by: str | None = Field(None, max_length=255)
    phase_id: uuid.UUID | None = None
    task_id: uuid.UUID | None = None
    cost_delta: Decimal = Decimal("0.00")
    schedule_delta_days: int = 0


class ChangeOrderUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    reason: str | None = None
    requested_by: str | None = Field(None, max_length=255)
    cost_delta: Decimal | None = None
    schedule_delta_days: int | None = None


class ChangeOrderActionRequest(BaseModel):
    action: str
    approved_by: str | None = Field(None, min_length=1, max_length=255)


class ChangeOrderResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    task_id: uuid.UUID | None
    change_order_number: str
    title: str
    description: str | None
    reason: str | None
    requested_by: str | None
    cost_delta: Decimal
    schedule_delta_days: int
    status: str
    approved_by: str | None
    approved_at: str | None
    implemented_at: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, co: ChangeOrder) -> "ChangeOrderResponse":
        return cls(
            id=co.id,
            project_id=co.project_id,
            phase_id=co.phase_id,
            task_id=co.task_id,
            change_order_number=co.change_order_number,
            title=co.title,
            description=co.description,
            reason=co.reason,
            requested_by=co.requested_by,
            cost_delta=co.cost_delta,
            schedule_delta_days=co.schedule_delta_days,
            status=co.status,
            approved_by=co.approved_by,
            approved_at=co.approved_at.isoformat() if co.approved_at else None,
            implemented_at=co.implemented_at.isoformat() if co.implemented_at else None,
            created_at=co.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[ChangeOrderResponse])
async def list_change_orders(
    project_id: uuid.UUID,
    status: ChangeOrderStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(ChangeOrder).where(
        ChangeOrder.project_id == project_id, ChangeOrder.is_deleted.is_(False)
    )
    if status:
        query = query.where(ChangeOrder.status == status.value)
    result = await db.execute(query.order_by(ChangeOrder.change_order_number))
    return [ChangeOrderResponse.from_orm_instance(c) for c in result.scalars().all()]


@router.get("/impact", response_model=ChangeOrderImpact)
async def get_change_order_impact(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(ChangeOrder).where(
            ChangeOrder.project_id == project_id, ChangeOrder.is_deleted.is_(False)
        )
    )
    return change_order_impact(result.scalars().all())


@router.post("", response_model=ChangeOrderResponse, status_code=201)
async def create_change_order(
    project_id: uuid.UUID,
    body: ChangeOrderCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phase_id = body.phase_id
    if body.task_id is not None:
        task = await get_task_in_project(project_id, body.task_id, db)
        if phase_id is not None and phase_id != task.phase_id:
            raise BadRequestError("task_id does not belong to phase_id")
        phase_id = task.phase_id
    elif phase_id is not None:
        await get_phase_in_project(project_id, phase_id, db)

    co = ChangeOrder(
        project_id=project_id,
        phase_id=phase_id,
        task_id=body.task_id,
        change_order_number=await next_number(db, ChangeOrder, project_id, "CO"),
        title=body.title,
        description=body.description,
        reason=body.reason,
        requested_by=body.requested_by or current_user.full_name,
        cost_delta=body.cost_delta,
        schedule_delta_days=body.schedule_delta_days,
        status=ChangeOrderStatus.DRAFT.value,
    )
    db.add(co)
    await db.flush()
    await db.refresh(co)

    await emit(project_id, "change_order.created", {
        "change_order_id": str(co.id),
        "number": co.change_order_number,
        "cost_delta": str(co.cost_delta),
    })
    return ChangeOrderResponse.from_orm_instance(co)


@router.patch("/{co_id}", response_model=ChangeOrderResponse)
async def update_change_order(
    project_id: uuid.UUID,
    co_id: uuid.UUID,
    body: ChangeOrderUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Edit a change order while it is still a draft."""
    await get_project_for_user(project_id, current_user, db)
    co = await _get_change_order(project_id, co_id, db)
    if co.status != ChangeOrderStatus.DRAFT.value:
        raise BadRequestError("Only draft change orders can be edited")

    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "cost_delta", "schedule_delta_days"):
            continue
        setattr(co, field, value)

    await db.flush()
    await db.refresh(co)
    return ChangeOrderResponse.from_orm_instance(co)


@router.post("/{co_id}/action", response_model=ChangeOrderResponse)
async def act_on_change_order(
    project_id: uuid.UUID,
    co_id: uuid.UUID,
    body: ChangeOrderActionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move a change order through submit, approve, reject, implement or revise.

    Implementing applies the cost delta to the project's capex budget and the
    schedule delta to its planned end date, where those are set.
    """
    project = await get_project_for_user(project_id, current_user, db)
    co = await _get_change_order(project_id, co_id, db)

    new_status = ACTION_MAP.get(body.action)
    if not new_status:
        raise BadRequestError(f"action must be one of: {', '.join(ACTION_MAP)}")
    if new_status not in VALID_TRANSITIONS.get(co.status, []):
        raise InvalidTransitionError("change order", co.status, new_status)

    now = datetime.now(timezone.utc)
    co.status = new_status
    if new_status == ChangeOrderStatus.APPROVED.value:
        co.approved_by = body.approved_by or current_user.full_name
        co.approved_at = now
    elif new_status == ChangeOrderStatus.DRAFT.value:
        co.approved_by = None
        co.approved_at = None
    elif new_status == ChangeOrderStatus.IMPLEMENTED.value:
        co.implemented_at = now
        if project.capex_budget is not None and co.cost_delta:
            project.capex_budget = project.capex_budget + co.cost_delta
        if project.planned_end_date is not None and co.schedule_delta_days:
            project.planned_end_date = project.planned_end_date + timedelta(days=co.schedule_delta_days)

    await db.flush()
    await db.refresh(co)

    await emit(project_id, "change_order.updated", {
        "change_order_id": str(co.id),
        "action": body.action,
        "status": co.status,
    })
    return ChangeOrderResponse.from_orm_instance(co)


@router.delete("/{co_id}", status_code=204)
async def delete_change_order(
    project_id: uuid.UUID,
    co_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    co = await _get_change_order(project_id, co_id, db)
    if co.status == ChangeOrderStatus.IMPLEMENTED.value:
        raise BadRequestError("Implemented change orders cannot be deleted")
    co.is_deleted = True
    co.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def _get_change_order(
    project_id: uuid.UUID, co_id: uuid.UUID, db: AsyncSession
) -> ChangeOrder:
    result = await db.execute(
        select(ChangeOrder).where(
            ChangeOrder.id == co_id,
            ChangeOrder.project_id == project_id,
            ChangeOrder.is_deleted.is_(False),
        )
    )
    co = result.scalar_one_or_none()
    if not co:
        raise NotFoundError("Change order", str(co_id))
    return co
