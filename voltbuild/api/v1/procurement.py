"""Procurement tracking: long-lead equipment items and purchase orders."""

import re
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.api.v1.tasks import get_task_in_project
from voltbuild.common.enums import ProcurementCategory, ProcurementStatus, PurchaseOrderStatus
from voltbuild.common.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from voltbuild.core.procurement.summary import (
    ProcurementStats,
    PurchaseOrderTotals,
    delivery_outlook,
    line_total,
    procurement_stats,
    purchase_order_totals,
)
from voltbuild.db.models.procurement import ProcurementItem, PurchaseOrder
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/procurement", tags=["Procurement"])

PO_TRANSITIONS: dict[str, list[str]] = {
    PurchaseOrderStatus.DRAFT.value: [PurchaseOrderStatus.SENT.value, PurchaseOrderStatus.CLOSED.value],
    PurchaseOrderStatus.SENT.value: [
        PurchaseOrderStatus.ACCEPTED.value,
        PurchaseOrderStatus.DRAFT.value,
        PurchaseOrderStatus.CLOSED.value,
    ],
    PurchaseOrderStatus.ACCEPTED.value: [PurchaseOrderStatus.PAID.value, PurchaseOrderStatus.CLOSED.value],
    PurchaseOrderStatus.PAID.value: [PurchaseOrderStatus.CLOSED.value],
    PurchaseOrderStatus.CLOSED.value: [],
}

_PO_NUMBER = re.compile(r"^PO-(\d+)$")


# ---------- Schemas ----------


class ProcurementItemCreateRequest(BaseModel):
    item_name: str = Field(..., min_length=1, max_length=255)
    category: ProcurementCategory = ProcurementCategory.OTHER
    vendor: str | None = Field(None, max_length=255)
    phase_id: uuid.UUID | None = None
    task_id: uuid.UUID | None = None
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_cost: Decimal = Field(Decimal("0.00"), ge=0)
    order_date: date | None = None
    promised_ship_date: date | None = None
    expected_delivery_date: date | None = None
    status: ProcurementStatus = ProcurementStatus.PLANNED
    notes: str | None = None


class ProcurementItemUpdateRequest(BaseModel):
    item_name: str | None = Field(None, min_length=1, max_length=255)
    category: ProcurementCategory | None = None
    vendor: str | None = Field(None, max_length=255)
    quantity: Decimal | None = Field(None, gt=0)
    unit_cost: Decimal | None = Field(None, ge=0)
    order_date: date | None = None
    promised_ship_date: date | None = None
    expected_delivery_date: date | None = None
    actual_delivery_date: date | None = None
    status: ProcurementStatus | None = None
    notes: str | None = None


class ProcurementItemResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    task_id: uuid.UUID | None
    category: str
    item_name: str
    vendor: str | None
    quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    order_date: date | None
    promised_ship_date: date | None
    expected_delivery_date: date | None
    actual_delivery_date: date | None
    status: str
    notes: str | None
    days_until_delivery: int | None
    overdue: bool
    created_at: str

    @classmethod
    def from_orm_instance(cls, item: ProcurementItem) -> "ProcurementItemResponse":
        outlook = delivery_outlook(item, date.today())
        return cls(
            id=item.id,
            project_id=item.project_id,
            phase_id=item.phase_id,
            task_id=item.task_id,
            category=item.category,
            item_name=item.item_name,
            vendor=item.vendor,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            total_cost=item.total_cost,
            order_date=item.order_date,
            promised_ship_date=item.promised_ship_date,
            expected_delivery_date=item.expected_delivery_date,
            actual_delivery_date=item.actual_delivery_date,
            status=item.status,
            notes=item.notes,
            days_until_delivery=outlook.days_until_delivery,
            overdue=outlook.overdue,
            created_at=item.created_at.isoformat(),
        )


class PurchaseOrderCreateRequest(BaseModel):
    vendor: str = Field(..., min_length=1, max_length=255)
    po_number: str | None = Field(None, min_length=1, max_length=50)
    amount: Decimal = Field(Decimal("0.00"), ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    notes: str | None = None


class PurchaseOrderUpdateRequest(BaseModel):
    vendor: str | None = Field(None, min_length=1, max_length=255)
    amount: Decimal | None = Field(None, ge=0)
    status: PurchaseOrderStatus | None = None
    notes: str | None = None


class PurchaseOrderResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    po_number: str
    vendor: str
    amount: Decimal
    currency: str
    status: str
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, po: PurchaseOrder) -> "PurchaseOrderResponse":
        return cls(
            id=po.id,
            project_id=po.project_id,
            po_number=po.po_number,
            vendor=po.vendor,
            amount=po.amount,
            currency=po.currency,
            status=po.status,
            notes=po.notes,
            created_at=po.created_at.isoformat(),
        )


# ---------- Item endpoints ----------


@router.get("/items", response_model=list[ProcurementItemResponse])
async def list_procurement_items(
    project_id: uuid.UUID,
    category: ProcurementCategory | None = Query(None),
    status: ProcurementStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(ProcurementItem).where(
        ProcurementItem.project_id == project_id, ProcurementItem.is_deleted.is_(False)
    )
    if category:
        query = query.where(ProcurementItem.category == category.value)
    if status:
        query = query.where(ProcurementItem.status == status.value)
    result = await db.execute(
        query.order_by(ProcurementItem.expected_delivery_date, ProcurementItem.item_name)
    )
    return [ProcurementItemResponse.from_orm_instance(i) for i in result.scalars().all()]


@router.get("/items/stats", response_model=ProcurementStats)
async def get_procurement_stats(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(ProcurementItem).where(
            ProcurementItem.project_id == project_id, ProcurementItem.is_deleted.is_(False)
        )
    )
    return procurement_stats(result.scalars().all(), date.today())


@router.post("/items", response_model=ProcurementItemResponse, status_code=201)
async def create_procurement_item(
    project_id: uuid.UUID,
    body: ProcurementItemCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phase_id = body.phase_id
    if body.task_id is not None:
        task = await get_task_in_project(project_id, body.task_id, db)
        phase_id = task.phase_id
    elif phase_id is not None:
        await get_phase_in_project(project_id, phase_id, db)

    item = ProcurementItem(
        project_id=project_id,
        phase_id=phase_id,
        task_id=body.task_id,
        category=body.category.value,
        item_name=body.item_name,
        vendor=body.vendor,
        quantity=body.quantity,
        unit_cost=body.unit_cost,
        total_cost=line_total(body.quantity, body.unit_cost),
        order_date=body.order_date,
        promised_ship_date=body.promised_ship_date,
        expected_delivery_date=body.expected_delivery_date,
        status=ProcurementStatus.PLANNED.value,
        notes=body.notes,
    )
    _apply_item_status(item, body.status, date.today())
    db.add(item)
    await db.flush()
    await db.refresh(item)
    return ProcurementItemResponse.from_orm_instance(item)


@router.patch("/items/{item_id}", response_model=ProcurementItemResponse)
async def update_procurement_item(
    project_id: uuid.UUID,
    item_id: uuid.UUID,
    body: ProcurementItemUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    item = await _get_item(project_id, item_id, db)

    updates = body.model_dump(exclude_unset=True, exclude={"status", "category"})
    for field, value in updates.items():
        if value is None and field in ("item_name", "quantity", "unit_cost"):
            continue
        setattr(item, field, value)
    if body.category is not None:
        item.category = body.category.value
    item.total_cost = line_total(item.quantity, item.unit_cost)
    if body.status is not None:
        _apply_item_status(item, body.status, date.today())

    await db.flush()
    await db.refresh(item)
    return ProcurementItemResponse.from_orm_instance(item)


@router.delete("/items/{item_id}", status_code=204)
async def delete_procurement_item(
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


# ---------- Purchase order endpoints ----------


@router.get("/purchase-orders", response_model=list[PurchaseOrderResponse])
async def list_purchase_orders(
    project_id: uuid.UUID,
    status: PurchaseOrderStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(PurchaseOrder).where(
        PurchaseOrder.project_id == project_id, PurchaseOrder.is_deleted.is_(False)
    )
    if status:
        query = query.where(PurchaseOrder.status == status.value)
    result = await db.execute(query.order_by(PurchaseOrder.po_number))
    return [PurchaseOrderResponse.from_orm_instance(p) for p in result.scalars().all()]


@router.get("/purchase-orders/totals", response_model=PurchaseOrderTotals)
async def get_purchase_order_totals(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(PurchaseOrder).where(
            PurchaseOrder.project_id == project_id, PurchaseOrder.is_deleted.is_(False)
        )
    )
    return purchase_order_totals(result.scalars().all())


@router.post("/purchase-orders", response_model=PurchaseOrderResponse, status_code=201)
async def create_purchase_order(
    project_id: uuid.UUID,
    body: PurchaseOrderCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    taken = await _taken_po_numbers(project_id, db)
    if body.po_number is not None:
        if body.po_number in taken:
            raise ConflictError(f"PO number {body.po_number} is already used on this project")
        po_number = body.po_number
    else:
        po_number = _next_po_number(taken)

    po = PurchaseOrder(
        project_id=project_id,
        po_number=po_number,
        vendor=body.vendor,
        amount=body.amount,
        currency=body.currency.upper(),
        status=PurchaseOrderStatus.DRAFT.value,
        notes=body.notes,
    )
    db.add(po)
    await db.flush()
    await db.refresh(po)
    return PurchaseOrderResponse.from_orm_instance(po)


@router.patch("/purchase-orders/{po_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    project_id: uuid.UUID,
    po_id: uuid.UUID,
    body: PurchaseOrderUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    po = await _get_purchase_order(project_id, po_id, db)

    if po.status == PurchaseOrderStatus.CLOSED.value:
        raise BadRequestError("Closed purchase orders cannot be changed")
    if body.amount is not None and po.status != PurchaseOrderStatus.DRAFT.value:
        raise BadRequestError("The amount can only change while the purchase order is a draft")

    if body.vendor is not None:
        po.vendor = body.vendor
    if body.amount is not None:
        po.amount = body.amount
    if "notes" in body.model_fields_set:
        po.notes = body.notes
    if body.status is not None and body.status.value != po.status:
        if body.status.value not in PO_TRANSITIONS.get(po.status, []):
            raise InvalidTransitionError("purchase order", po.status, body.status.value)
        po.status = body.status.value

    await db.flush()
    await db.refresh(po)
    return PurchaseOrderResponse.from_orm_instance(po)


@router.delete("/purchase-orders/{po_id}", status_code=204)
async def delete_purchase_order(
    project_id: uuid.UUID,
    po_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    po = await _get_purchase_order(project_id, po_id, db)
    if po.status != PurchaseOrderStatus.DRAFT.value:
        raise BadRequestError("Only draft purchase orders can be deleted")
    po.is_deleted = True
    po.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Helpers ----------


def _apply_item_status(item: ProcurementItem, status: ProcurementStatus, today: date) -> None:
    """Set the status and stamp the order or delivery date it implies."""
    item.status = status.value
    if status == ProcurementStatus.DELIVERED:
        item.actual_delivery_date = item.actual_delivery_date or today
    else:
        item.actual_delivery_date = None
        if status != ProcurementStatus.PLANNED and item.order_date is None:
            item.order_date = today


def _next_po_number(taken: set[str]) -> str:
    highest = 0
    for number in taken:
        match = _PO_NUMBER.match(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"PO-{highest + 1:03d}"


async def _taken_po_numbers(project_id: uuid.UUID, db: AsyncSession) -> set[str]:
    # Deleted orders keep their number
    result = await db.execute(
        select(PurchaseOrder.po_number).where(PurchaseOrder.project_id == project_id)
    )
    return set(result.scalars().all())


async def _get_item(
    project_id: uuid.UUID, item_id: uuid.UUID, db: AsyncSession
) -> ProcurementItem:
    result = await db.execute(
        select(ProcurementItem).where(
            ProcurementItem.id == item_id,
            ProcurementItem.project_id == project_id,
            ProcurementItem.is_deleted.is_(False),
        )
    )
    item = result.scalar_one_or_none()
    if not item:
        raise NotFoundError("Procurement item", str(item_id))
    return item


async def _get_purchase_order(
    project_id: uuid.UUID, po_id: uuid.UUID, db: AsyncSession
) -> PurchaseOrder:
    result = await db.execute(
        select(PurchaseOrder).where(
            PurchaseOrder.id == po_id,
            PurchaseOrder.project_id == project_id,
            PurchaseOrder.is_deleted.is_(False),
        )
    )
    po = result.scalar_one_or_none()
    if not po:
        raise NotFoundError("Purchase order", str(po_id))
    return po
