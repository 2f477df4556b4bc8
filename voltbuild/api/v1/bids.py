"""Bid requests, the bids vendors send back, and contract awards."""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.api.v1.vendors import get_vendor_for_user
from voltbuild.common.enums import BidRequestStatus, BidStatus
from voltbuild.common.events import emit
from voltbuild.common.exceptions import (
    BadRequestError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
)
from voltbuild.core.bids.comparison import BidHighlights, bid_highlights
from voltbuild.db.models.bid import Bid, BidRequest, ContractAward
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}", tags=["Bids"])

# Awarded is reached only through the award endpoint
REQUEST_TRANSITIONS: dict[str, list[str]] = {
    BidRequestStatus.DRAFT.value: [BidRequestStatus.SENT.value],
    BidRequestStatus.SENT.value: [BidRequestStatus.CLOSED.value],
    BidRequestStatus.CLOSED.value: [BidRequestStatus.SENT.value],
    BidRequestStatus.AWARDED.value: [],
}

BID_TRANSITIONS: dict[str, list[str]] = {
    BidStatus.SUBMITTED.value: [BidStatus.SHORTLISTED.value, BidStatus.REJECTED.value],
    BidStatus.SHORTLISTED.value: [BidStatus.SUBMITTED.value, BidStatus.REJECTED.value],
    BidStatus.REJECTED.value: [],
    BidStatus.AWARDED.value: [],
}

OPEN_REQUEST_STATUSES = {BidRequestStatus.DRAFT.value, BidRequestStatus.SENT.value}


# ---------- Schemas ----------


class BidRequestCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    scope_of_work: str | None = None
    phase_id: uuid.UUID | None = None
    due_date: date | None = None
    invited_vendor_ids: list[uuid.UUID] = Field(default_factory=list)


class BidRequestUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    scope_of_work: str | None = None
    due_date: date | None = None
    status: BidRequestStatus | None = None


class BidRequestResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    title: str
    scope_of_work: str | None
    due_date: date | None
    status: str
    invited_vendor_ids: list[str]
    created_at: str

    @classmethod
    def from_orm_instance(cls, req: BidRequest) -> "BidRequestResponse":
        return cls(
            id=req.id,
            project_id=req.project_id,
            phase_id=req.phase_id,
            title=req.title,
            scope_of_work=req.scope_of_work,
            due_date=req.due_date,
            status=req.status,
            invited_vendor_ids=req.invited_vendor_ids or [],
            created_at=req.created_at.isoformat(),
        )


class BidCreateRequest(BaseModel):
    vendor_id: uuid.UUID
    amount: Decimal = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    timeline_days: int | None = Field(None, ge=1)
    assumptions: str | None = None
    exclusions: str | None = None


class BidStatusRequest(BaseModel):
    status: BidStatus


class BidResponse(BaseModel):
    id: uuid.UUID
    bid_request_id: uuid.UUID
    vendor_id: uuid.UUID
    amount: Decimal
    currency: str
    timeline_days: int | None
    assumptions: str | None
    exclusions: str | None
    status: str
    created_at: str

    @classmethod
    def from_orm_instance(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,
            bid_request_id=bid.bid_request_id,
            vendor_id=bid.vendor_id,
            amount=bid.amount,
            currency=bid.currency,
            timeline_days=bid.timeline_days,
            assumptions=bid.assumptions,
            exclusions=bid.exclusions,
            status=bid.status,
            created_at=bid.created_at.isoformat(),
        )


class BidComparisonResponse(BaseModel):
    bids: list[BidResponse]
    highlights: BidHighlights


class AwardRequest(BaseModel):
    bid_id: uuid.UUID
    start_date: date | None = None
    end_date: date | None = None
    notes: str | None = None


class ContractAwardResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    bid_request_id: uuid.UUID
    bid_id: uuid.UUID
    vendor_id: uuid.UUID
    awarded_amount: Decimal
    start_date: date | None
    end_date: date | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, award: ContractAward) -> "ContractAwardResponse":
        return cls(
            id=award.id,
            project_id=award.project_id,
            bid_request_id=award.bid_request_id,
            bid_id=award.bid_id,
            vendor_id=award.vendor_id,
            awarded_amount=award.awarded_amount,
            start_date=award.start_date,
            end_date=award.end_date,
            notes=award.notes,
            created_at=award.created_at.isoformat(),
        )


# ---------- Bid request endpoints ----------


@router.get("/bid-requests", response_model=list[BidRequestResponse])
async def list_bid_requests(
    project_id: uuid.UUID,
    status: BidRequestStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(BidRequest).where(
        BidRequest.project_id == project_id, BidRequest.is_deleted.is_(False)
    )
    if status:
        query = query.where(BidRequest.status == status.value)
    result = await db.execute(query.order_by(BidRequest.created_at))
    return [BidRequestResponse.from_orm_instance(r) for r in result.scalars().all()]


@router.post("/bid-requests", response_model=BidRequestResponse, status_code=201)
async def create_bid_request(
    project_id: uuid.UUID,
    body: BidRequestCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)
    for vendor_id in body.invited_vendor_ids:
        await get_vendor_for_user(vendor_id, current_user, db)

    req = BidRequest(
        project_id=project_id,
        phase_id=body.phase_id,
        title=body.title,
        scope_of_work=body.scope_of_work,
        due_date=body.due_date,
        status=BidRequestStatus.DRAFT.value,
        invited_vendor_ids=[str(v) for v in dict.fromkeys(body.invited_vendor_ids)],
    )
    db.add(req)
    await db.flush()
    await db.refresh(req)
    return BidRequestResponse.from_orm_instance(req)


@router.patch("/bid-requests/{request_id}", response_model=BidRequestResponse)
async def update_bid_request(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    body: BidRequestUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    req = await _get_request(project_id, request_id, db)
    if req.status == BidRequestStatus.AWARDED.value:
        raise BadRequestError("Awarded bid requests cannot be changed")

    if body.title is not None:
        req.title = body.title
    if "scope_of_work" in body.model_fields_set:
        req.scope_of_work = body.scope_of_work
    if "due_date" in body.model_fields_set:
        req.due_date = body.due_date
    if body.status is not None and body.status.value != req.status:
        if body.status.value not in REQUEST_TRANSITIONS.get(req.status, []):
            raise InvalidTransitionError("bid request", req.status, body.status.value)
        req.status = body.status.value

    await db.flush()
    await db.refresh(req)
    return BidRequestResponse.from_orm_instance(req)


@router.delete("/bid-requests/{request_id}", status_code=204)
async def delete_bid_request(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    req = await _get_request(project_id, request_id, db)
    if req.status != BidRequestStatus.DRAFT.value:
        raise BadRequestError("Only draft bid requests can be deleted")
    req.is_deleted = True
    req.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Bid endpoints ----------


@router.get("/bid-requests/{request_id}/bids", response_model=list[BidResponse])
async def list_bids(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await _get_request(project_id, request_id, db)
    return [BidResponse.from_orm_instance(b) for b in await _load_bids(request_id, db)]


@router.post("/bid-requests/{request_id}/bids", response_model=BidResponse, status_code=201)
async def submit_bid(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    body: BidCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a vendor's bid. Closed or awarded requests take no more bids."""
    await get_project_for_user(project_id, current_user, db)
    req = await _get_request(project_id, request_id, db)
    if req.status not in OPEN_REQUEST_STATUSES:
        raise BadRequestError(f"Bid request is {req.status} and no longer accepts bids")
    await get_vendor_for_user(body.vendor_id, current_user, db)

    bid = Bid(
        bid_request_id=req.id,
        vendor_id=body.vendor_id,
        amount=body.amount,
        currency=body.currency.upper(),
        timeline_days=body.timeline_days,
        assumptions=body.assumptions,
        exclusions=body.exclusions,
        status=BidStatus.SUBMITTED.value,
    )
    db.add(bid)
    await db.flush()
    await db.refresh(bid)
    return BidResponse.from_orm_instance(bid)


@router.patch("/bid-requests/{request_id}/bids/{bid_id}", response_model=BidResponse)
async def update_bid_status(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    bid_id: uuid.UUID,
    body: BidStatusRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await _get_request(project_id, request_id, db)
    bid = await _get_bid(request_id, bid_id, db)
    if body.status.value != bid.status:
        if body.status.value not in BID_TRANSITIONS.get(bid.status, []):
            raise InvalidTransitionError("bid", bid.status, body.status.value)
        bid.status = body.status.value
    await db.flush()
    await db.refresh(bid)
    return BidResponse.from_orm_instance(bid)


@router.get("/bid-requests/{request_id}/comparison", response_model=BidComparisonResponse)
async def compare_bids(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await _get_request(project_id, request_id, db)
    bids = await _load_bids(request_id, db)
    ranked = sorted(bids, key=lambda b: (b.status == BidStatus.REJECTED.value, b.amount))
    return BidComparisonResponse(
        bids=[BidResponse.from_orm_instance(b) for b in ranked],
        highlights=bid_highlights(bids),
    )


@router.post(
    "/bid-requests/{request_id}/award", response_model=ContractAwardResponse, status_code=201
)
async def award_bid(
    project_id: uuid.UUID,
    request_id: uuid.UUID,
    body: AwardRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Award the contract to one bid and reject the rest."""
    await get_project_for_user(project_id, current_user, db)
    req = await _get_request(project_id, request_id, db)
    if req.status == BidRequestStatus.AWARDED.value:
        raise ConflictError("This bid request has already been awarded")
    if body.start_date and body.end_date and body.end_date < body.start_date:
        raise BadRequestError("end_date cannot be before start_date")

    winner = await _get_bid(request_id, body.bid_id, db)
    if winner.status == BidStatus.REJECTED.value:
        raise BadRequestError("A rejected bid cannot be awarded")

    for bid in await _load_bids(request_id, db):
        if bid.id == winner.id:
            bid.status = BidStatus.AWARDED.value
        elif bid.status != BidStatus.REJECTED.value:
            bid.status = BidStatus.REJECTED.value
    req.status = BidRequestStatus.AWARDED.value

    award = ContractAward(
        project_id=project_id,
        bid_request_id=req.id,
        bid_id=winner.id,
        vendor_id=winner.vendor_id,
        awarded_amount=winner.amount,
        start_date=body.start_date,
        end_date=body.end_date,
        notes=body.notes,
    )
    db.add(award)
    await db.flush()
    await db.refresh(award)

    await emit(project_id, "bid.awarded", {
        "bid_request_id": str(req.id),
        "bid_id": str(winner.id),
        "amount": str(winner.amount),
    })
    return ContractAwardResponse.from_orm_instance(award)


@router.get("/contract-awards", response_model=list[ContractAwardResponse])
async def list_contract_awards(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(ContractAward)
        .where(ContractAward.project_id == project_id, ContractAward.is_deleted.is_(False))
        .order_by(ContractAward.created_at)
    )
    return [ContractAwardResponse.from_orm_instance(a) for a in result.scalars().all()]


# ---------- Helpers ----------


async def _get_request(project_id: uuid.UUID, request_id: uuid.UUID, db: AsyncSession) -> BidRequest:
    result = await db.execute(
        select(BidRequest).where(
            BidRequest.id == request_id,
            BidRequest.project_id == project_id,
            BidRequest.is_deleted.is_(False),
        )
    )
    req = result.scalar_one_or_none()
    if not req:
        raise NotFoundError("Bid request", str(request_id))
    return req


async def _get_bid(request_id: uuid.UUID, bid_id: uuid.UUID, db: AsyncSession) -> Bid:
    result = await db.execute(
        select(Bid).where(
            Bid.id == bid_id, Bid.bid_request_id == request_id, Bid.is_deleted.is_(False)
        )
    )
    bid = result.scalar_one_or_none()
    if not bid:
        raise NotFoundError("Bid", str(bid_id))
    return bid


async def _load_bids(request_id: uuid.UUID, db: AsyncSession) -> list[Bid]:
    result = await db.execute(
        select(Bid)
        .where(Bid.bid_request_id == request_id, Bid.is_deleted.is_(False))
        .order_by(Bid.created_at)
    )
    return list(result.scalars().all())
