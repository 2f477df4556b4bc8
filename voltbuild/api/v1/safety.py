import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.common.enums import IncidentSeverity, IncidentStatus, SafetyPermitStatus
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.db.models.safety import SafetyIncident, SafetyPermit, SafetyTalk
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/safety", tags=["Safety"])


# ---------- Schemas ----------


class SafetyTalkCreateRequest(BaseModel):
    talk_date: date
    topic: str = Field(..., min_length=1, max_length=255)
    presenter: str | None = Field(None, max_length=255)
    attendee_count: int = Field(0, ge=0)
    notes: str | None = None


class SafetyTalkResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    talk_date: date
    topic: str
    presenter: str | None
    attendee_count: int
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, talk: SafetyTalk) -> "SafetyTalkResponse":
        return cls(
            id=talk.id,
            project_id=talk.project_id,
            talk_date=talk.talk_date,
            topic=talk.topic,
            presenter=talk.presenter,
            attendee_count=talk.attendee_count,
            notes=talk.notes,
            created_at=talk.created_at.isoformat(),
        )


class IncidentCreateRequest(BaseModel):
    occurred_on: date
    severity: IncidentSeverity
    description: str = Field(..., min_length=1)
    corrective_action: str | None = None
    reported_by: str | None = Field(None, max_length=255)


class IncidentUpdateRequest(BaseModel):
    status: IncidentStatus | None = None
    corrective_action: str | None = None
    severity: IncidentSeverity | None = None


class IncidentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    occurred_on: date
    severity: str
    description: str
    corrective_action: str | None
    reported_by: str | None
    status: str
    closed_at: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, incident: SafetyIncident) -> "IncidentResponse":
        return cls(
            id=incident.id,
            project_id=incident.project_id,
            occurred_on=incident.occurred_on,
            severity=incident.severity,
            description=incident.description,
            corrective_action=incident.corrective_action,
            reported_by=incident.reported_by,
            status=incident.status,
            closed_at=incident.closed_at.isoformat() if incident.closed_at else None,
            created_at=incident.created_at.isoformat(),
        )


class PermitCreateRequest(BaseModel):
    permit_type: str = Field(..., min_length=1, max_length=100)
    issued_to: str = Field(..., min_length=1, max_length=255)
    valid_from: date | None = None
    valid_until: date | None = None
    notes: str | None = None


class PermitUpdateRequest(BaseModel):
    status: SafetyPermitStatus | None = None
    valid_from: date | None = None
    valid_until: date | None = None
    notes: str | None = None


class PermitResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    permit_type: str
    issued_to: str
    status: str
    valid_from: date | None
    valid_until: date | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, permit: SafetyPermit) -> "PermitResponse":
        return cls(
            id=permit.id,
            project_id=permit.project_id,
            permit_type=permit.permit_type,
            issued_to=permit.issued_to,
            status=permit.status,
            valid_from=permit.valid_from,
            valid_until=permit.valid_until,
            notes=permit.notes,
            created_at=permit.created_at.isoformat(),
        )


# ---------- Toolbox talks ----------


@router.get("/talks", response_model=list[SafetyTalkResponse])
async def list_talks(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(SafetyTalk)
        .where(SafetyTalk.project_id == project_id, SafetyTalk.is_deleted.is_(False))
        .order_by(SafetyTalk.talk_date.desc())
    )
    return [SafetyTalkResponse.from_orm_instance(t) for t in result.scalars().all()]


@router.post("/talks", response_model=SafetyTalkResponse, status_code=201)
async def create_talk(
    project_id: uuid.UUID,
    body: SafetyTalkCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    talk = SafetyTalk(project_id=project_id, **body.model_dump())
    db.add(talk)
    await db.flush()
    await db.refresh(talk)
    return SafetyTalkResponse.from_orm_instance(talk)


# ---------- Incidents ----------


@router.get("/incidents", response_model=list[IncidentResponse])
async def list_incidents(
    project_id: uuid.UUID,
    status: IncidentStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(SafetyIncident).where(
        SafetyIncident.project_id == project_id, SafetyIncident.is_deleted.is_(False)
    )
    if status:
        query = query.where(SafetyIncident.status == status.value)
    result = await db.execute(query.order_by(SafetyIncident.occurred_on.desc()))
    return [IncidentResponse.from_orm_instance(i) for i in result.scalars().all()]


@router.post("/incidents", response_model=IncidentResponse, status_code=201)
async def report_incident(
    project_id: uuid.UUID,
    body: IncidentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    incident = SafetyIncident(
        project_id=project_id,
        occurred_on=body.occurred_on,
        severity=body.severity.value,
        description=body.description,
        corrective_action=body.corrective_action,
        reported_by=body.reported_by or current_user.full_name,
        status=IncidentStatus.OPEN.value,
    )
    db.add(incident)
    await db.flush()
    await db.refresh(incident)
    return IncidentResponse.from_orm_instance(incident)


@router.patch("/incidents/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    project_id: uuid.UUID,
    incident_id: uuid.UUID,
    body: IncidentUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(SafetyIncident).where(
            SafetyIncident.id == incident_id,
            SafetyIncident.project_id == project_id,
            SafetyIncident.is_deleted.is_(False),
        )
    )
    incident = result.scalar_one_or_none()
    if not incident:
        raise NotFoundError("Incident", str(incident_id))

    if body.corrective_action is not None:
        incident.corrective_action = body.corrective_action
    if body.severity is not None:
        incident.severity = body.severity.value
    if body.status is not None and body.status.value != incident.status:
        incident.status = body.status.value
        incident.closed_at = (
            datetime.now(timezone.utc) if body.status == IncidentStatus.CLOSED else None
        )

    await db.flush()
    await db.refresh(incident)
    return IncidentResponse.from_orm_instance(incident)


# ---------- Permits ----------


@router.get("/permits", response_model=list[PermitResponse])
async def list_permits(
    project_id: uuid.UUID,
    status: SafetyPermitStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(SafetyPermit).where(
        SafetyPermit.project_id == project_id, SafetyPermit.is_deleted.is_(False)
    )
    if status:
        query = query.where(SafetyPermit.status == status.value)
    result = await db.execute(query.order_by(SafetyPermit.created_at.desc()))
    return [PermitResponse.from_orm_instance(p) for p in result.scalars().all()]


@router.post("/permits", response_model=PermitResponse, status_code=201)
async def request_permit(
    project_id: uuid.UUID,
    body: PermitCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    _check_validity(body.valid_from, body.valid_until)
    permit = SafetyPermit(
        project_id=project_id,
        status=SafetyPermitStatus.REQUESTED.value,
        **body.model_dump(),
    )
    db.add(permit)
    await db.flush()
    await db.refresh(permit)
    return PermitResponse.from_orm_instance(permit)


@router.patch("/permits/{permit_id}", response_model=PermitResponse)
async def update_permit(
    project_id: uuid.UUID,
    permit_id: uuid.UUID,
    body: PermitUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    result = await db.execute(
        select(SafetyPermit).where(
            SafetyPermit.id == permit_id,
            SafetyPermit.project_id == project_id,
            SafetyPermit.is_deleted.is_(False),
        )
    )
    permit = result.scalar_one_or_none()
    if not permit:
        raise NotFoundError("Permit", str(permit_id))

    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "status":
            if value is None:
                continue
            value = value.value
        setattr(permit, field, value)
    _check_validity(permit.valid_from, permit.valid_until)

    await db.flush()
    await db.refresh(permit)
    return PermitResponse.from_orm_instance(permit)


def _check_validity(valid_from: date | None, valid_until: date | None) -> None:
    if valid_from and valid_until and valid_until < valid_from:
        raise BadRequestError("valid_until cannot be before valid_from")
