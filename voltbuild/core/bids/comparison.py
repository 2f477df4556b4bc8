"""Side-by-side comparison of the bids received for one request."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel

from voltbuild.common.enums import BidStatus
from voltbuild.db.models.bid import Bid


class BidHighlights(BaseModel):
    bid_count: int
    lowest_cost_bid_id: uuid.UUID | None
    fastest_timeline_bid_id: uuid.UUID | None
    lowest_amount: Decimal | None
    highest_amount: Decimal | None
    spread: Decimal | None


def bid_highlights(bids: Iterable[Bid]) -> BidHighlights:
    """Lowest price and shortest timeline among bids still in contention.

    Ties go to the bid received first.
    """
    live = sorted(
        (b for b in bids if b.status != BidStatus.REJECTED.value),
        key=lambda b: b.created_at,
    )
    if not live:
        return BidHighlights(
            bid_count=0,
            lowest_cost_bid_id=None,
            fastest_timeline_bid_id=None,
            lowest_amount=None,
            highest_amount=None,
            spread=None,
        )

    cheapest = min(live, key=lambda b: b.amount)
    timed = [b for b in live if b.timeline_days is not None]
    fastest = min(timed, key=lambda b: b.timeline_days) if timed else None
    highest = max(b.amount for b in live)
    return BidHighlights(
        bid_count=len(live),
        lowest_cost_bid_id=cheapest.id,
        fastest_timeline_bid_id=fastest.id if fastest else None,
        lowest_amount=cheapest.amount,
        highest_amount=highest,
        spread=highest - cheapest.amount,
    )
