import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.tasks import get_task_in_project
from voltbuild.common.exceptions import ConflictError, NotFoundError
from voltbuild.common.logging import get_logger
from voltbuild.db.models.document import TaskDocument
from voltbuild.db.models.user import User
from voltbuild.integrations.secure_share import SecureShareClient

logger = get_logger("api.v1.documents")

router = APIRouter(tags=["Documents"])


# ---------- Schemas ----------


class SecureShareDocument(BaseModel):
    id: str
    filename: str
    content_type: str | None = None


class AttachDocumentRequest(BaseModel):
    secure_share_id: str = Field(..., min_length=1, max_length=255)


class TaskDocumentResponse(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    task_id: uuid.UUID
    secure_share_id: str
    filename: str
    attached_by: uuid.UUID
    created_at: str

    @classmethod
    def from_orm_instance(cls, doc: TaskDocument) -> "TaskDocumentResponse":
        return cls(
            id=doc.id,
            project_id=doc.project_id,
            task_id=doc.task_id,
            secure_share_id=doc.secure_share_id,
            filename=doc.filename,
            attached_by=doc.attached_by,
            created_at=doc.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("/secure-share/documents", response_model=list[SecureShareDocument])
async def list_secure_share_documents(
    search: str | None = Query(None, max_length=200),
    current_user: User = Depends(get_current_user),
):
    """Documents available in SecureShare for attaching to tasks."""
    client = SecureShareClient()
    return await client.list_documents(search)


@router.get(
    "/projects/{project_id}/tasks/{task_id}/documents",
    response_model=list[TaskDocumentResponse],
)
async def list_task_documents(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await get_task_in_project(project_id, task_id, db)

    result = await db.execute(
        select(TaskDocument)
        .where(TaskDocument.task_id == task_id, TaskDocument.is_deleted.is_(False))
        .order_by(TaskDocument.created_at)
    )
    return [TaskDocumentResponse.from_orm_instance(d) for d in result.scalars().all()]


@router.post(
    "/projects/{project_id}/tasks/{task_id}/documents",
    response_model=TaskDocumentResponse,
    status_code=201,
)
async def attach_document(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: AttachDocumentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await get_task_in_project(project_id, task_id, db)

    source = await SecureShareClient().get_document(body.secure_share_id)
    if source is None:
        raise NotFoundError("SecureShare document", body.secure_share_id)

    # Soft-deleted rows still hold the unique (task, document) pair
    result = await db.execute(
        select(TaskDocument).where(
            TaskDocument.task_id == task_id,
            TaskDocument.secure_share_id == body.secure_share_id,
        )
    )
    doc = result.scalar_one_or_none()
    if doc is not None and not doc.is_deleted:
        raise ConflictError("Document is already attached to this task")

    if doc is None:
        doc = TaskDocument(
            project_id=project_id,
            task_id=task_id,
            secure_share_id=body.secure_share_id,
            filename=source["filename"],
            attached_by=current_user.id,
        )
        db.add(doc)
    else:
        doc.is_deleted = False
        doc.deleted_at = None
        doc.filename = source["filename"]
        doc.attached_by = current_user.id

    await db.flush()
    await db.refresh(doc)
    logger.info("Attached %s to task %s", body.secure_share_id, task_id)
    return TaskDocumentResponse.from_orm_instance(doc)


@router.delete("/projects/{project_id}/tasks/{task_id}/documents/{document_id}", status_code=204)
async def detach_document(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    document_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await get_task_in_project(project_id, task_id, db)

    result = await db.execute(
        select(TaskDocument).where(
            TaskDocument.id == document_id,
            TaskDocument.task_id == task_id,
            TaskDocument.is_deleted.is_(False),
        )
    )
    doc = result.scalar_one_or_none()
    if not doc:
        raise NotFoundError("Document", str(document_id))

    doc.is_deleted = True
    doc.deleted_at = datetime.now(timezone.utc)
    await db.flush()
