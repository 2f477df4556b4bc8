"""Task completion evidence and its review."""

import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.tasks import get_task_in_project
from voltbuild.common.enums import VerificationStatus, VerificationType
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.core.verification.scoring import PhaseVerificationScore, phase_verification_scores
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task
from voltbuild.db.models.user import User
from voltbuild.db.models.verification import TaskVerification

router = APIRouter(prefix="/projects/{project_id}/verifications", tags=["Verifications"])


# ---------- Schemas ----------


class VerificationCreateRequest(BaseModel):
    task_id: uuid.UUID
    verification_type: VerificationType = VerificationType.PHOTO
    file_url: str = Field(..., min_length=1, max_length=1000)
    notes: str | None = None


class ReviewRequest(BaseModel):
    notes: str | None = None


class VerificationResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    phase_id: uuid.UUID | None
    task_id: uuid.UUID
    verification_type: str
    file_url: str
    notes: str | None
    submitted_by: uuid.UUID
    status: str
    reviewed_by: str | None
    reviewed_at: str | None
    review_notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, v: TaskVerification) -> "VerificationResponse":
        return cls(
            id=v.id,
            project_id=v.project_id,
            phase_id=v.phase_id,
            task_id=v.task_id,
            verification_type=v.verification_type,
            file_url=v.file_url,
            notes=v.notes,
            submitted_by=v.submitted_by,
            status=v.status,
            reviewed_by=v.reviewed_by,
            reviewed_at=v.reviewed_at.isoformat() if v.reviewed_at else None,
            review_notes=v.review_notes,
            created_at=v.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=list[VerificationResponse])
async def list_verifications(
    project_id: uuid.UUID,
    status: VerificationStatus | None = Query(None),
    task_id: uuid.UUID | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    query = select(TaskVerification).where(
        TaskVerification.project_id == project_id, TaskVerification.is_deleted.is_(False)
    )
    if status:
        query = query.where(TaskVerification.status == status.value)
    if task_id:
        query = query.where(TaskVerification.task_id == task_id)
    result = await db.execute(query.order_by(TaskVerification.created_at))
    return [VerificationResponse.from_orm_instance(v) for v in result.scalars().all()]


@router.get("/scores", response_model=list[PhaseVerificationScore])
async def get_verification_scores(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phases = (
        await db.execute(
            select(Phase)
            .where(Phase.project_id == project_id, Phase.is_deleted.is_(False))
            .order_by(Phase.order_index)
        )
    ).scalars().all()
    tasks = (
        await db.execute(
            select(Task).where(
                Task.phase_id.in_([p.id for p in phases]), Task.is_deleted.is_(False)
            )
        )
    ).scalars().all()
    verifications = (
        await db.execute(
            select(TaskVerification).where(
                TaskVerification.project_id == project_id,
                TaskVerification.is_deleted.is_(False),
            )
        )
    ).scalars().all()
    return phase_verification_scores(phases, tasks, verifications)


@router.post("", response_model=VerificationResponse, status_code=201)
async def submit_verification(
    project_id: uuid.UUID,
    body: VerificationCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    task = await get_task_in_project(project_id, body.task_id, db)

    verification = TaskVerification(
        project_id=project_id,
        phase_id=task.phase_id,
        task_id=task.id,
        verification_type=body.verification_type.value,
        file_url=body.file_url,
        notes=body.notes,
        submitted_by=current_user.id,
        status=VerificationStatus.PENDING.value,
    )
    db.add(verification)
    await db.flush()
    await db.refresh(verification)
    return VerificationResponse.from_orm_instance(verification)


@router.post("/{verification_id}/approve", response_model=VerificationResponse)
async def approve_verification(
    project_id: uuid.UUID,
    verification_id: uuid.UUID,
    body: ReviewRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    verification = await _get_pending(project_id, verification_id, db)
    _review(verification, VerificationStatus.APPROVED, current_user, body.notes if body else None)
    await db.flush()
    await db.refresh(verification)
    return VerificationResponse.from_orm_instance(verification)


@router.post("/{verification_id}/reject", response_model=VerificationResponse)
async def reject_verification(
    project_id: uuid.UUID,
    verification_id: uuid.UUID,
    body: ReviewRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reject evidence. The submitter is told why, so notes are required."""
    await get_project_for_user(project_id, current_user, db)
    verification = await _get_pending(project_id, verification_id, db)
    if not body.notes or not body.notes.strip():
        raise BadRequestError("A rejection needs notes explaining what is missing")
    _review(verification, VerificationStatus.REJECTED, current_user, body.notes)
    await db.flush()
    await db.refresh(verification)
    return VerificationResponse.from_orm_instance(verification)


@router.delete("/{verification_id}", status_code=204)
async def delete_verification(
    project_id: uuid.UUID,
    verification_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    verification = await _get_pending(project_id, verification_id, db)
    verification.is_deleted = True
    verification.deleted_at = datetime.now(timezone.utc)
    await db.flush()


# ---------- Helpers ----------


def _review(
    verification: TaskVerification, status: VerificationStatus, reviewer: User, notes: str | None
) -> None:
    verification.status = status.value
    verification.reviewed_by = reviewer.full_name
    verification.reviewed_at = datetime.now(timezone.utc)
    verification.review_notes = notes


async def _get_pending(
    project_id: uuid.UUID, verification_id: uuid.UUID, db: AsyncSession
) -> TaskVerification:
    result = await db.execute(
        select(TaskVerification).where(
            TaskVerification.id == verification_id,
            TaskVerification.project_id == project_id,
            TaskVerification.is_deleted.is_(False),
        )
    )
    verification = result.scalar_one_or_none()
    if not verification:
        raise NotFoundError("Verification", str(verification_id))
    if verification.status != VerificationStatus.PENDING.value:
        raise BadRequestError(f"Verification was already {verification.status}")
    return verification
