import uuid
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.api.v1.phases import get_phase_in_project
from voltbuild.common.cache import query_cache
from voltbuild.common.enums import AssignedRole, TaskStatus
from voltbuild.common.events import emit
from voltbuild.common.exceptions import BadRequestError, NotFoundError
from voltbuild.common.logging import get_logger
from voltbuild.core.progress.service import ProgressService
from voltbuild.core.projects.queries import get_project_tasks
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task, TaskComment
from voltbuild.db.models.user import User

logger = get_logger("api.v1.tasks")

router = APIRouter(prefix="/projects/{project_id}/tasks", tags=["Tasks"])


# ---------- Schemas ----------


class TaskCreateRequest(BaseModel):
    phase_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    assigned_role: AssignedRole | None = None
    assigned_user_id: uuid.UUID | None = None
    estimated_duration_days: int | None = Field(None, ge=0)
    is_critical_path: bool = False
    depends_on: list[str] = Field(default_factory=list)
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    notes: str | None = None


class TaskUpdateRequest(BaseModel):
    phase_id: uuid.UUID | None = None
    name: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    assigned_role: AssignedRole | None = None
    assigned_user_id: uuid.UUID | None = None
    estimated_duration_days: int | None = Field(None, ge=0)
    is_critical_path: bool | None = None
    order_index: int | None = Field(None, ge=0)
    depends_on: list[str] | None = None
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    actual_start_date: date | None = None
    actual_end_date: date | None = None
    notes: str | None = None


class TaskResponse(BaseModel):
    id: uuid.UUID
    phase_id: uuid.UUID
    name: str
    description: str | None
    status: str
    assigned_role: str
    assigned_user_id: uuid.UUID | None
    estimated_duration_days: int | None
    is_critical_path: bool
    order_index: int
    depends_on: list[str]
    planned_start_date: date | None
    planned_end_date: date | None
    actual_start_date: date | None
    actual_end_date: date | None
    notes: str | None
    created_at: str

    @classmethod
    def from_orm_instance(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            phase_id=task.phase_id,
            name=task.name,
            description=task.description,
            status=task.status,
            assigned_role=task.assigned_role,
            assigned_user_id=task.assigned_user_id,
            estimated_duration_days=task.estimated_duration_days,
            is_critical_path=task.is_critical_path,
            order_index=task.order_index,
            depends_on=[str(d) for d in (task.depends_on or [])],
            planned_start_date=task.planned_start_date,
            planned_end_date=task.planned_end_date,
            actual_start_date=task.actual_start_date,
            actual_end_date=task.actual_end_date,
            notes=task.notes,
            created_at=task.created_at.isoformat(),
        )


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int


class CommentCreateRequest(BaseModel):
    body: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    author_id: uuid.UUID
    body: str
    created_at: str

    @classmethod
    def from_orm_instance(cls, comment: TaskComment) -> "CommentResponse":
        return cls(
            id=comment.id,
            task_id=comment.task_id,
            author_id=comment.author_id,
            body=comment.body,
            created_at=comment.created_at.isoformat(),
        )


# ---------- Endpoints ----------


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    project_id: uuid.UUID,
    phase_id: uuid.UUID | None = Query(None),
    status: TaskStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)

    cached = query_cache.get("tasks", project_id)
    if cached is None:
        tasks = await get_project_tasks(project_id, db)
        cached = TaskListResponse(
            tasks=[TaskResponse.from_orm_instance(t) for t in tasks],
            total=len(tasks),
        ).model_dump(mode="json")
        query_cache.set("tasks", project_id, cached)

    items = cached["tasks"]
    if phase_id is not None:
        items = [t for t in items if t["phase_id"] == str(phase_id)]
    if status is not None:
        items = [t for t in items if t["status"] == status.value]
    return {"tasks": items, "total": len(items)}


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    project_id: uuid.UUID,
    body: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    phase = await get_phase_in_project(project_id, body.phase_id, db)
    _check_dates(body.planned_start_date, body.planned_end_date)

    result = await db.execute(
        select(func.max(Task.order_index)).where(
            Task.phase_id == phase.id, Task.is_deleted.is_(False)
        )
    )
    current_max = result.scalar()

    task = Task(
        phase_id=phase.id,
        name=body.name,
        description=body.description,
        status=TaskStatus.NOT_STARTED.value,
        assigned_role=(body.assigned_role or AssignedRole.OWNER).value,
        assigned_user_id=body.assigned_user_id,
        estimated_duration_days=body.estimated_duration_days,
        is_critical_path=body.is_critical_path,
        order_index=0 if current_max is None else current_max + 1,
        depends_on=list(body.depends_on),
        planned_start_date=body.planned_start_date,
        planned_end_date=body.planned_end_date,
        notes=body.notes,
    )
    db.add(task)
    await db.flush()

    await ProgressService().recalculate_phase(phase.id, db)
    await db.refresh(task)
    await emit(project_id, "task.updated", {"task_id": str(task.id), "action": "created"})
    return TaskResponse.from_orm_instance(task)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    task = await get_task_in_project(project_id, task_id, db)
    return TaskResponse.from_orm_instance(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: TaskUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    task = await get_task_in_project(project_id, task_id, db)
    previous_phase_id = task.phase_id
    previous_status = task.status

    if body.phase_id is not None and body.phase_id != task.phase_id:
        await get_phase_in_project(project_id, body.phase_id, db)
        task.phase_id = body.phase_id

    updates = body.model_dump(
        exclude_unset=True, exclude={"phase_id", "status", "assigned_role"}
    )
    for field, value in updates.items():
        if field in ("name", "is_critical_path", "order_index", "depends_on") and value is None:
            continue
        setattr(task, field, value)
    if body.assigned_role is not None:
        task.assigned_role = body.assigned_role.value
    _check_dates(task.planned_start_date, task.planned_end_date)

    if body.status is not None:
        apply_status_change(task, body.status, date.today())

    await db.flush()

    progress = ProgressService()
    if body.status is not None or task.phase_id != previous_phase_id:
        await progress.recalculate_phase(task.phase_id, db)
        if task.phase_id != previous_phase_id:
            await progress.recalculate_phase(previous_phase_id, db)
    else:
        query_cache.invalidate("tasks", project_id, db)

    await db.refresh(task)
    if task.status != previous_status:
        logger.info("Task %s status %s -> %s", task.id, previous_status, task.status)
    await emit(project_id, "task.updated", {
        "task_id": str(task.id),
        "action": "updated",
        "status": task.status,
    })
    return TaskResponse.from_orm_instance(task)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    task = await get_task_in_project(project_id, task_id, db)

    task.is_deleted = True
    task.deleted_at = datetime.now(timezone.utc)
    await db.flush()

    await ProgressService().recalculate_phase(task.phase_id, db)
    await emit(project_id, "task.updated", {"task_id": str(task.id), "action": "deleted"})


@router.get("/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await get_task_in_project(project_id, task_id, db)

    result = await db.execute(
        select(TaskComment)
        .where(TaskComment.task_id == task_id, TaskComment.is_deleted.is_(False))
        .order_by(TaskComment.created_at)
    )
    return [CommentResponse.from_orm_instance(c) for c in result.scalars().all()]


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    project_id: uuid.UUID,
    task_id: uuid.UUID,
    body: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await get_project_for_user(project_id, current_user, db)
    await get_task_in_project(project_id, task_id, db)

    comment = TaskComment(task_id=task_id, author_id=current_user.id, body=body.body)
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return CommentResponse.from_orm_instance(comment)


# ---------- Helpers ----------


def apply_status_change(task: Task, new_status: TaskStatus, today: date) -> None:
    """Set the status and stamp actual dates the first time work starts or ends."""
    task.status = new_status.value
    if new_status == TaskStatus.IN_PROGRESS:
        if task.actual_start_date is None:
            task.actual_start_date = today
    elif new_status == TaskStatus.COMPLETE:
        if task.actual_end_date is None:
            task.actual_end_date = today
    elif new_status in (TaskStatus.NOT_STARTED, TaskStatus.BLOCKED):
        pass
    else:
        raise ValueError(f"Unhandled task status: {new_status!r}")


async def get_task_in_project(
    project_id: uuid.UUID, task_id: uuid.UUID, db: AsyncSession
) -> Task:
    result = await db.execute(
        select(Task)
        .join(Phase, Task.phase_id == Phase.id)
        .where(
            Task.id == task_id,
            Task.is_deleted.is_(False),
            Phase.project_id == project_id,
            Phase.is_deleted.is_(False),
        )
    )
    task = result.scalar_one_or_none()
    if not task:
        raise NotFoundError("Task", str(task_id))
    return task


def _check_dates(start: date | None, end: date | None) -> None:
    if start and end and end < start:
        raise BadRequestError("planned_end_date cannot be before planned_start_date")
