import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.enums import ShiftType
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.common.pagination import PaginatedResponse, PaginationParams, paginate
from voltbuild.core.field.stats import LaborSummary, labor_summary
from voltbuild.db.models.field import DailyLog, FieldCheckin, LaborEntry
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}", tags=["Field"])


# ---------- Schemas ----------


class DailyLogCreateRequest(BaseModel):
    log_date: date
    weather: str | None = Field(None, max_length=255)
    temperature_c: float | None = None
    crew_count: int = Field(0, ge=0)
    work_summary: str = Field(..., min_length=1)
    delays: str | None = None
    notes: str | None = None


class DailyLogResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    log_date: date
    author_id: uuid.UUID | None
    weather: str | None
    temperature_c: float | None
    crew_count: int
    work_summary: str
    delays: str | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, log: DailyLog) -> "DailyLogResponse":
        return cls(
            id=log.id,
            project_id=log.project_id,
            log_date=log.log_date,
            author_id=log.author_id,
            weather=log.weather,
            temperature_c=log.temperature_c,
            crew_count=log.crew_count,
            work_summary=log.work_summary,
            delays=log.delays,
            notes=log.notes,
            created_at=log.created_at.isoformat(),
        )


class LaborCreateRequest(BaseModel):
    entry_date: date
    phase_id: uuid.UUID | None = None
    trade_type: str = Field(..., min_length=1, max_length=100)
    headcount: int = Field(..., ge=0)
    hours_worked: float | None = Field(None, ge=0)
    shift: ShiftType = ShiftType.DAY
    notes: str | None = None


class LaborResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    entry_date: date
    trade_type: str
    headcount: int
    hours_worked: float | None
    shift: str
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, entry: LaborEntry) -> "LaborResponse":
        return cls(
            id=entry.id,
            project_id=entry.project_id,
            phase_id=entry.phase_id,
            entry_date=entry.entry_date,
            trade_type=entry.trade_type,
            headcount=entry.headcount,
            hours_worked=entry.hours_worked,
            shift=entry.shift,
            notes=entry.notes,
            created_at=entry.created_at.isoformat(),
        )


class CheckinCreateRequest(BaseModel):
    user_name: str | None = Field(None, min_length=1, max_length=255)
    coarse_location: str | None = Field(None, max_length=255)
    notes: str | None = None


class CheckinResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID | None
    user_name: str
    coarse_location: str | None
    checkin_time: str
    checkout_time: str | None
    on_site: bool
    notes: str | None

    @classmethod
    def from_orm_instance(cls, checkin: FieldCheckin) -> "CheckinResponse":
        return cls(
            id=checkin.id,
            project_id=checkin.project_id,
            user_id=checkin.user_id,
            user_name=checkin.user_name,
            coarse_location=checkin.coarse_location,
            checkin_time=checkin.checkin_time.isoformat(),
            checkout_time=checkin.checkout_time.isoformat() if checkin.checkout_time else None,
            on_site=checkin.checkout_time is None,
            notes=checkin.notes,
        )


# ---------- Daily logs ----------


@router.get("/daily-logs", response_model=PaginatedResponse[DailyLogResponse])
async def list_daily_logs(
    project_id: uuid.UUID,
    params: PaginationParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(DailyLog).where(
        DailyLog.project_id == project_id, DailyLog.is_deleted.is_(False)
    )
    logs, total = await paginate(
        db, query, params, model=DailyLog, default_sort=DailyLog.log_date.desc()
    )
    return PaginatedResponse.build(
        [DailyLogResponse.from_orm_instance(log) for log in logs], total, params
    )


@router.post("/daily-logs", response_model=DailyLogResponse, status_code=201)
async def create_daily_log(
    project_id: uuid.UUID,
    body: DailyLogCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    log = DailyLog(project_id=project_id, author_id=current_user.id, **body.model_dump())
    db.add(log)
    await db.flush()
    await db.refresh(log)
    return DailyLogResponse.from_orm_instance(log)


@router.delete("/daily-logs/{log_id}", status_code=204)
async def delete_daily_log(
    project_id: uuid.UUID,
    log_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(DailyLog).where(
            DailyLog.id == log_id,
            DailyLog.project_id == project_id,
            DailyLog.is_deleted.is_(False),
        )
    )
    log = result.scalar_one_or_none()
    if not log:
        raise NotFoundError("Daily log", str(log_id))
    log.is_deleted = True
    log.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Labor ----------


@router.get("/labor", response_model=list[LaborResponse])
async def list_labor(
    project_id: uuid.UUID,
    entry_date: date | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    entries = await _labor_entries(project_id, db, entry_date)
    return [LaborResponse.from_orm_instance(e) for e in entries]


@router.get("/labor/summary", response_model=LaborSummary)
async def get_labor_summary(
    project_id: uuid.UUID,
    entry_date: date | None = Query(None, description="Defaults to today"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Headcount and hours by trade for one day."""
    await get_project_for_user(project_id, current_user, db)
    entry_date = entry_date or date.today()
    entries = await _labor_entries(project_id, db, entry_date)
    return labor_summary(entries, entry_date)


@router.post("/labor", response_model=LaborResponse, status_code=201)
async def create_labor_entry(
    project_id: uuid.UUID,
    body: LaborCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)

    entry = LaborEntry(
        project_id=project_id,
        phase_id=body.phase_id,
        entry_date=body.entry_date,
        trade_type=body.trade_type,
        headcount=body.headcount,
        hours_worked=body.hours_worked,
        shift=body.shift.value,
        notes=body.notes,
    )
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    return LaborResponse.from_orm_instance(entry)


async def _labor_entries(
    project_id: uuid.UUID, db: AsyncSession, entry_date: date | None
) -> list[LaborEntry]:
    query = select(LaborEntry).where(
        LaborEntry.project_id == project_id, LaborEntry.is_deleted.is_(False)
    )
    if entry_date is not None:
        query = query.where(LaborEntry.entry_date == entry_date)
    result = await db.execute(query.order_by(LaborEntry.entry_date.desc(), LaborEntry.trade_type))
    return list(result.scalars().all())


# ---------- Check-ins ----------


@router.get("/checkins", response_model=list[CheckinResponse])
async def list_checkins(
    project_id: uuid.UUID,
    on_site: bool | None = Query(None, description="Only people still checked in"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(FieldCheckin).where(
        FieldCheckin.project_id == project_id, FieldCheckin.is_deleted.is_(False)
    )
    if on_site is True:
        query = query.where(FieldCheckin.checkout_time.is_(None))
    elif on_site is False:
        query = query.where(FieldCheckin.checkout_time.is_not(None))
    result = await db.execute(query.order_by(FieldCheckin.checkin_time.desc()))
    return [CheckinResponse.from_orm_instance(c) for c in result.scalars().all()]


@router.post("/checkins", response_model=CheckinResponse, status_code=201)
async def check_in(
    project_id: uuid.UUID,
    body: CheckinCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    checkin = FieldCheckin(
        project_id=project_id,
        user_id=current_user.id,
        user_name=body.user_name or current_user.full_name,
        coarse_location=body.coarse_location,
        checkin_time=datetime.now(timezone.utc),
        notes=body.notes,
    )
    db.add(checkin)
    await db.flush()
    await db.refresh(checkin)
    return CheckinResponse.from_orm_instance(checkin)


@router.post("/checkins/{checkin_id}/checkout", response_model=CheckinResponse)
async def check_out(
    project_id: uuid.UUID,
    checkin_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(FieldCheckin).where(
            FieldCheckin.id == checkin_id,
            FieldCheckin.project_id == project_id,
            FieldCheckin.is_deleted.is_(False),
        )
    )
    checkin = result.scalar_one_or_none()
    if not checkin:
        raise NotFoundError("Check-in", str(checkin_id))
    if checkin.checkout_time is not None:
        raise BadRequestError("Already checked out")

    checkin.checkout_time = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(checkin)
    return CheckinResponse.from_orm_instance(checkin)
