import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.enums import RiskSeverity, RiskStatus
from voltbuild.common.exceptions import NotFoundError
from voltbuild.db.models.risk import Risk
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/risks", tags=["Risks"])


# ---------- Schemas ----------


class RiskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    severity: RiskSeverity = RiskSeverity.MEDIUM
    phase_id: uuid.UUID | None = None
    mitigation_plan: str | None = None
    owner: str | None = Field(None, max_length=255)


class RiskUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    severity: RiskSeverity | None = None
    status: RiskStatus | None = None
    phase_id: uuid.UUID | None = None
    mitigation_plan: str | None = None
    owner: str | None = Field(None, max_length=255)


class RiskResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    title: str
    description: str | None
    severity: str
    status: str
    mitigation_plan: str | None
    owner: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, risk: Risk) -> "RiskResponse":
        return cls(
            id=risk.id,
            project_id=risk.project_id,
            phase_id=risk.phase_id,
            title=risk.title,
            description=risk.description,
            severity=risk.severity,
            status=risk.status,
            mitigation_plan=risk.mitigation_plan,
            owner=risk.owner,
            created_at=risk.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[RiskResponse])
async def list_risks(
    project_id: uuid.UUID,
    status: RiskStatus | None = Query(None),
    severity: RiskSeverity | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)

    query = select(Risk).where(Risk.project_id == project_id, Risk.is_deleted.is_(False))
    if status:
        query = query.where(Risk.status == status.value)
    if severity:
        query = query.where(Risk.severity == severity.value)

    result = await db.execute(query.order_by(Risk.created_at.desc()))
    return [RiskResponse.from_orm_instance(r) for r in result.scalars().all()]


@router.post("", response_model=RiskResponse, status_code=201)
async def create_risk(
    project_id: uuid.UUID,
    body: RiskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    if body.phase_id is not None:
        await get_phase_in_project(project_id, body.phase_id, db)

    risk = Risk(
        project_id=project_id,
        phase_id=body.phase_id,
        title=body.title,
        description=body.description,
        severity=body.severity.value,
        status=RiskStatus.OPEN.value,
        mitigation_plan=body.mitigation_plan,
        owner=body.owner,
    )
    db.add(risk)
    await db.flush()
    await db.refresh(risk)
    return RiskResponse.from_orm_instance(risk)


@router.patch("/{risk_id}", response_model=RiskResponse)
async def update_risk(
    project_id: uuid.UUID,
    risk_id: uuid.UUID,
    body: RiskUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    risk = await _get_risk(project_id, risk_id, db)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("phase_id") is not None:
        await get_phase_in_project(project_id, updates["phase_id"], db)

    for field, value in updates.items():
        if field in ("title", "severity", "status") and value is None:
            continue
        if field in ("severity", "status"):
            value = value.value
        setattr(risk, field, value)

    await db.flush()
    await db.refresh(risk)
    return RiskResponse.from_orm_instance(risk)


@router.delete("/{risk_id}", status_code=204)
async def delete_risk(
    project_id: uuid.UUID,
    risk_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    risk = await _get_risk(project_id, risk_id, db)
    risk.is_deleted = True
    risk.deleted_at = datetime.now(timezone.utc)
    await db.flush()


async def _get_risk(project_id: uuid.UUID, risk_id: uuid.UUID, db: AsyncSession) -> Risk:
    result = await db.execute(
        select(Risk).where(
            Risk.id == risk_id, Risk.project_id == project_id, Risk.is_deleted.is_(False)
        )
    )
    risk = result.scalar_one_or_none()
    if not risk:
        raise NotFoundError("Risk", str(risk_id))
    return risk
