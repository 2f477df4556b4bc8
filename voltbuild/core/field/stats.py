"""Counting helpers for field records (punch list, RFIs, labor, check-ins)."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel

from voltbuild.common.enums import PunchPriority, PunchStatus, RFIStatus
from voltbuild.core.progress.rollup import round_half_up
from voltbuild.db.models.field import LaborEntry
from voltbuild.db.models.punch import PunchItem
from voltbuild.db.models.rfi import RFI


class PunchStats(BaseModel):
    total: int
    open: int
    in_progress: int
    complete: int
    verified: int
    priority_a_open: int
    completion_rate: int


class RFIStats(BaseModel):
    total: int
    open: int
    answered: int
    closed: int
    overdue: int
    average_response_days: float | None


class TradeLabor(BaseModel):
    trade_type: str
    headcount: int
    hours: float


class LaborSummary(BaseModel):
    entry_date: date | None
    total_headcount: int
    total_hours: float
    by_trade: list[TradeLabor]


def punch_stats(items: Iterable[PunchItem]) -> PunchStats:
    items = list(items)
    by_status = {s: 0 for s in PunchStatus}
    for item in items:
        by_status[PunchStatus(item.status)] += 1
    priority_a_open = sum(
        1
        for i in items
        if i.priority == PunchPriority.A.value
        and i.status in (PunchStatus.OPEN.value, PunchStatus.IN_PROGRESS.value)
    )
    verified = by_status[PunchStatus.VERIFIED]
    return PunchStats(
        total=len(items),
        open=by_status[PunchStatus.OPEN],
        in_progress=by_status[PunchStatus.IN_PROGRESS],
        complete=by_status[PunchStatus.COMPLETE],
        verified=verified,
        priority_a_open=priority_a_open,
        completion_rate=round_half_up(100 * verified / len(items)) if items else 0,
    )


def rfi_days_overdue(rfi: RFI, today: date) -> int:
    """Days past due for an open RFI; answered or closed RFIs are never overdue."""
    if rfi.status != RFIStatus.OPEN.value or rfi.due_date is None:
        return 0
    return max(0, (today - rfi.due_date).days)


def rfi_stats(rfis: Iterable[RFI], today: date) -> RFIStats:
    rfis = list(rfis)
    by_status = {s: 0 for s in RFIStatus}
    for rfi in rfis:
        by_status[RFIStatus(rfi.status)] += 1

    response_days = [
        (r.response_date - r.submitted_date).days
        for r in rfis
        if r.response_date is not None and r.submitted_date is not None
    ]
    return RFIStats(
        total=len(rfis),
        open=by_status[RFIStatus.OPEN],
        answered=by_status[RFIStatus.ANSWERED],
        closed=by_status[RFIStatus.CLOSED],
        overdue=sum(1 for r in rfis if rfi_days_overdue(r, today) > 0),
        average_response_days=(
            round(sum(response_days) / len(response_days), 1) if response_days else None
        ),
    )


def labor_summary(entries: Iterable[LaborEntry], entry_date: date | None = None) -> LaborSummary:
    headcount: dict[str, int] = defaultdict(int)
    hours: dict[str, float] = defaultdict(float)
    for entry in entries:
        headcount[entry.trade_type] += entry.headcount
        hours[entry.trade_type] += entry.hours_worked or 0.0

    by_trade = [
        TradeLabor(trade_type=trade, headcount=headcount[trade], hours=round(hours[trade], 2))
        for trade in sorted(headcount)
    ]
    return LaborSummary(
        entry_date=entry_date,
        total_headcount=sum(headcount.values()),
        total_hours=round(sum(hours.values()), 2),
        by_trade=by_trade,
    )
