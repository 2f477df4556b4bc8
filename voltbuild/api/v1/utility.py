import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.enums import AlertSeverity, UtilityMilestoneStatus
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.common.logging import get_logger
from voltbuild.db.models.user import User
from voltbuild.db.models.utility import UtilityAlert, UtilityStatusUpdate

logger = get_logger("api.v1.utility")

router = APIRouter(prefix="/projects/{project_id}/utility", tags=["Utility"])


# ---------- Schemas ----------


class StatusCreateRequest(BaseModel):
    utility: str = Field(..., min_length=1, max_length=255)
    milestone: str = Field(..., min_length=1, max_length=255)
    status: UtilityMilestoneStatus = UtilityMilestoneStatus.NOT_STARTED
    notes: str | None = None


class StatusUpdateRequest(BaseModel):
    status: UtilityMilestoneStatus | None = None
    notes: str | None = None


class StatusResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    utility: str
    milestone: str
    status: str
    last_update_date: date | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, row: UtilityStatusUpdate) -> "StatusResponse":
        return cls(
            id=row.id,
            project_id=row.project_id,
            utility=row.utility,
            milestone=row.milestone,
            status=row.status,
            last_update_date=row.last_update_date,
            notes=row.notes,
            created_at=row.created_at.isoformat(),
        )


class UtilityGroup(BaseModel):
    utility: str
    milestones: list[StatusResponse]


class AlertCreateRequest(BaseModel):
    utility: str = Field(..., min_length=1, max_length=255)
    severity: AlertSeverity = AlertSeverity.MEDIUM
    message: str = Field(..., min_length=1)


class AlertResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    utility: str
    severity: str
    message: str
    resolved: bool
    resolved_at: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, alert: UtilityAlert) -> "AlertResponse":
        return cls(
            id=alert.id,
            project_id=alert.project_id,
            utility=alert.utility,
            severity=alert.severity,
            message=alert.message,
            resolved=alert.resolved_at is not None,
            resolved_at=alert.resolved_at.isoformat() if alert.resolved_at else None,
            created_at=alert.created_at.isoformat(),
        )


# ---------- Interconnection status ----------


@router.get("/statuses", response_model=list[UtilityGroup])
async def list_statuses(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Milestones grouped by utility, utilities in alphabetical order."""
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(UtilityStatusUpdate)
        .where(
            UtilityStatusUpdate.project_id == project_id,
            UtilityStatusUpdate.is_deleted.is_(False),
        )
        .order_by(UtilityStatusUpdate.utility, UtilityStatusUpdate.created_at)
    )

    groups: dict[str, list[StatusResponse]] = {}
    for row in result.scalars().all():
        groups.setdefault(row.utility, []).append(StatusResponse.from_orm_instance(row))
    return [UtilityGroup(utility=name, milestones=rows) for name, rows in groups.items()]


@router.post("/statuses", response_model=StatusResponse, status_code=201)
async def create_status(
    project_id: uuid.UUID,
    body: StatusCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    row = UtilityStatusUpdate(
        project_id=project_id,
        utility=body.utility,
        milestone=body.milestone,
        status=body.status.value,
        last_update_date=date.today(),
        notes=body.notes,
    )
    db.add(row)
    await db.flush()
    await db.refresh(row)
    return StatusResponse.from_orm_instance(row)


@router.patch("/statuses/{status_id}", response_model=StatusResponse)
async def update_status(
    project_id: uuid.UUID,
    status_id: uuid.UUID,
    body: StatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(UtilityStatusUpdate).where(
            UtilityStatusUpdate.id == status_id,
            UtilityStatusUpdate.project_id == project_id,
            UtilityStatusUpdate.is_deleted.is_(False),
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise NotFoundError("Utility status", str(status_id))

    if body.notes is not None:
        row.notes = body.notes
    if body.status is not None and body.status.value != row.status:
        logger.info("Utility milestone %s: %s -> %s", row.milestone, row.status, body.status.value)
        row.status = body.status.value
        row.last_update_date = date.today()

    await db.flush()
    await db.refresh(row)
    return StatusResponse.from_orm_instance(row)


# ---------- Alerts ----------


@router.get("/alerts", response_model=list[AlertResponse])
async def list_alerts(
    project_id: uuid.UUID,
    unresolved: bool = Query(False, description="Only alerts not yet resolved"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(UtilityAlert).where(
        UtilityAlert.project_id == project_id, UtilityAlert.is_deleted.is_(False)
    )
    if unresolved:
        query = query.where(UtilityAlert.resolved_at.is_(None))
    result = await db.execute(query.order_by(UtilityAlert.created_at.desc()))
    return [AlertResponse.from_orm_instance(a) for a in result.scalars().all()]


@router.post("/alerts", response_model=AlertResponse, status_code=201)
async def create_alert(
    project_id: uuid.UUID,
    body: AlertCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    alert = UtilityAlert(
        project_id=project_id,
        utility=body.utility,
        severity=body.severity.value,
        message=body.message,
    )
    db.add(alert)
    await db.flush()
    await db.refresh(alert)
    return AlertResponse.from_orm_instance(alert)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    project_id: uuid.UUID,
    alert_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(UtilityAlert).where(
            UtilityAlert.id == alert_id,
            UtilityAlert.project_id == project_id,
            UtilityAlert.is_deleted.is_(False),
        )
    )
    alert = result.scalar_one_or_none()
    if not alert:
        raise NotFoundError("Alert", str(alert_id))
    if alert.resolved_at is not None:
        raise BadRequestError("Alert is already resolved")

    alert.resolved_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(alert)
    return AlertResponse.from_orm_instance(alert)
