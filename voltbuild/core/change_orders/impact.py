"""Cost and schedule impact of a project's change orders."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel

from voltbuild.common.enums import ChangeOrderStatus
from voltbuild.db.models.change_order import ChangeOrder

# Statuses whose deltas are committed to the project
COMMITTED_STATUSES = (ChangeOrderStatus.APPROVED, ChangeOrderStatus.IMPLEMENTED)


class ChangeOrderImpact(BaseModel):
    total: int
    draft: int
    pending_approval: int
    approved: int
    rejected: int
    implemented: int
    net_cost_delta: Decimal
    net_schedule_delta_days: int
    pending_cost_delta: Decimal


def change_order_impact(orders: Iterable[ChangeOrder]) -> ChangeOrderImpact:
    """Count orders by status and total the deltas.

    Net totals only include approved and implemented orders; submitted orders
    are reported separately as the cost still awaiting a decision.
    """
    orders = list(orders)
    by_status = {s: 0 for s in ChangeOrderStatus}
    net_cost = Decimal("0.00")
    net_days = 0
    pending_cost = Decimal("0.00")

    for co in orders:
        status = ChangeOrderStatus(co.status)
        by_status[status] += 1
        if status in COMMITTED_STATUSES:
            net_cost += co.cost_delta or Decimal("0.00")
            net_days += co.schedule_delta_days or 0
        elif status == ChangeOrderStatus.SUBMITTED:
            pending_cost += co.cost_delta or Decimal("0.00")

    return ChangeOrderImpact(
        total=len(orders),
        draft=by_status[ChangeOrderStatus.DRAFT],
        pending_approval=by_status[ChangeOrderStatus.SUBMITTED],
        approved=by_status[ChangeOrderStatus.APPROVED],
        rejected=by_status[ChangeOrderStatus.REJECTED],
        implemented=by_status[ChangeOrderStatus.IMPLEMENTED],
        net_cost_delta=net_cost,
        net_schedule_delta_days=net_days,
        pending_cost_delta=pending_cost,
    )
