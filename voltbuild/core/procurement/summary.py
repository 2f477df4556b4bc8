"""Procurement roll-ups: line totals, delivery outlook, and PO totals."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

from voltbuild.common.enums import ProcurementCategory, ProcurementStatus, PurchaseOrderStatus
from voltbuild.db.models.procurement import ProcurementItem, PurchaseOrder

LONG_LEAD_CATEGORIES = (ProcurementCategory.TRANSFORMERS, ProcurementCategory.SWITCHGEAR)
DUE_SOON_DAYS = 7


class ProcurementStats(BaseModel):
    total: int
    planned: int
    ordered: int
    in_transit: int
    delivered: int
    delayed: int
    overdue: int
    total_cost: Decimal
    delivered_cost: Decimal
    unordered_long_lead: list[str]


class DeliveryOutlook(BaseModel):
    days_until_delivery: int | None
    overdue: bool
    due_soon: bool


class PurchaseOrderTotals(BaseModel):
    count: int
    total: Decimal
    by_status: dict[str, Decimal]


def line_total(quantity: Decimal, unit_cost: Decimal) -> Decimal:
    return (Decimal(quantity) * Decimal(unit_cost)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def delivery_outlook(item: ProcurementItem, today: date) -> DeliveryOutlook:
    if item.status == ProcurementStatus.DELIVERED.value or item.expected_delivery_date is None:
        return DeliveryOutlook(days_until_delivery=None, overdue=False, due_soon=False)
    days = (item.expected_delivery_date - today).days
    return DeliveryOutlook(
        days_until_delivery=days,
        overdue=days < 0,
        due_soon=0 <= days <= DUE_SOON_DAYS,
    )


def procurement_stats(items: Iterable[ProcurementItem], today: date) -> ProcurementStats:
    items = list(items)
    by_status = {s: 0 for s in ProcurementStatus}
    for item in items:
        by_status[ProcurementStatus(item.status)] += 1

    return ProcurementStats(
        total=len(items),
        planned=by_status[ProcurementStatus.PLANNED],
        ordered=by_status[ProcurementStatus.ORDERED],
        in_transit=by_status[ProcurementStatus.IN_TRANSIT],
        delivered=by_status[ProcurementStatus.DELIVERED],
        delayed=by_status[ProcurementStatus.DELAYED],
        overdue=sum(1 for i in items if delivery_outlook(i, today).overdue),
        total_cost=sum((i.total_cost for i in items), Decimal("0.00")),
        delivered_cost=sum(
            (i.total_cost for i in items if i.status == ProcurementStatus.DELIVERED.value),
            Decimal("0.00"),
        ),
        unordered_long_lead=[
            i.item_name
            for i in items
            if i.category in {c.value for c in LONG_LEAD_CATEGORIES}
            and i.status == ProcurementStatus.PLANNED.value
        ],
    )


def purchase_order_totals(orders: Iterable[PurchaseOrder]) -> PurchaseOrderTotals:
    orders = list(orders)
    by_status = {s.value: Decimal("0.00") for s in PurchaseOrderStatus}
    for po in orders:
        by_status[PurchaseOrderStatus(po.status).value] += po.amount
    return PurchaseOrderTotals(
        count=len(orders),
        total=sum(by_status.values(), Decimal("0.00")),
        by_status=by_status,
    )
