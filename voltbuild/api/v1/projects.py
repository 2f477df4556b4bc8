import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user, require_role
from voltbuild.common.cache import query_cache
from voltbuild.common.enums import (
    CoolingType,
    PhaseStatus,
    ProjectStatus,
    TaskStatus,
    UserRole,
)
from voltbuild.common.exceptions import BadRequestError, InvalidTransitionError
from voltbuild.common.logging import get_logger
from voltbuild.core.projects.templates import DEFAULT_PLAN
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.project import Project
from voltbuild.db.models.task import Task
from voltbuild.db.models.user import User

logger = get_logger("api.v1.projects")

router = APIRouter(prefix="/projects", tags=["Projects"])

VALID_TRANSITIONS = {
    ProjectStatus.PLANNING: [ProjectStatus.IN_PROGRESS, ProjectStatus.DELAYED],
    ProjectStatus.IN_PROGRESS: [ProjectStatus.DELAYED, ProjectStatus.COMPLETE],
    ProjectStatus.DELAYED: [ProjectStatus.IN_PROGRESS, ProjectStatus.COMPLETE],
    ProjectStatus.COMPLETE: [ProjectStatus.IN_PROGRESS],
}


# ---------- Schemas ----------


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    target_capacity_mw: float | None = Field(None, gt=0)
    cooling_type: CoolingType = CoolingType.AIR
    utility: str | None = None
    location: str | None = None
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    capex_budget: Decimal | None = Field(None, ge=0)
    seed_template: bool = True


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    target_capacity_mw: float | None = Field(None, gt=0)
    cooling_type: CoolingType | None = None
    utility: str | None = None
    location: str | None = None
    planned_start_date: date | None = None
    planned_end_date: date | None = None
    actual_start_date: date | None = None
    actual_end_date: date | None = None
    capex_budget: Decimal | None = Field(None, ge=0)
    status: ProjectStatus | None = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    description: str | None
    target_capacity_mw: float | None
    cooling_type: str
    utility: str | None
    location: str | None
    planned_start_date: date | None
    planned_end_date: date | None
    actual_start_date: date | None
    actual_end_date: date | None
    capex_budget: Decimal | None
    progress: int
    status: str
    created_at: str

    model_config = {"from_attributes": True}

    @classmethod
    def from_orm_instance(cls, project: Project) -> "ProjectResponse":
        return cls(
            id=project.id,
            owner_id=project.owner_id,
            name=project.name,
            description=project.description,
            target_capacity_mw=project.target_capacity_mw,
            cooling_type=project.cooling_type,
            utility=project.utility,
            location=project.location,
            planned_start_date=project.planned_start_date,
            planned_end_date=project.planned_end_date,
            actual_start_date=project.actual_start_date,
            actual_end_date=project.actual_end_date,
            capex_budget=project.capex_budget,
            progress=project.progress,
            status=project.status,
            created_at=project.created_at.isoformat(),
        )


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


# ---------- Endpoints ----------


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    body: ProjectCreateRequest,
    current_user: User = Depends(require_role(UserRole.OWNER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    if body.planned_start_date and body.planned_end_date and body.planned_end_date < body.planned_start_date:
        raise BadRequestError("planned_end_date cannot be before planned_start_date")

    project = Project(
        owner_id=current_user.id,
        name=body.name,
        description=body.description,
        target_capacity_mw=body.target_capacity_mw,
        cooling_type=body.cooling_type.value,
        utility=body.utility,
        location=body.location,
        planned_start_date=body.planned_start_date,
        planned_end_date=body.planned_end_date,
        capex_budget=body.capex_budget,
        progress=0,
        status=ProjectStatus.PLANNING.value,
    )
    db.add(project)
    await db.flush()

    if body.seed_template:
        seed_default_plan(project, db)
        await db.flush()

    await db.refresh(project)
    logger.info("Created project %s (seeded=%s)", project.id, body.seed_template)
    return ProjectResponse.from_orm_instance(project)


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    status: ProjectStatus | None = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Project).where(Project.is_deleted.is_(False))

    if current_user.role != UserRole.ADMIN.value:
        query = query.where(Project.owner_id == current_user.id)
    if status is not None:
        query = query.where(Project.status == status.value)

    query = query.order_by(Project.created_at.desc())
    result = await db.execute(query)
    projects = result.scalars().all()

    return ProjectListResponse(
        projects=[ProjectResponse.from_orm_instance(p) for p in projects],
        total=len(projects),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)
    return ProjectResponse.from_orm_instance(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)

    updates = body.model_dump(exclude_unset=True, exclude={"status", "cooling_type"})
    for field, value in updates.items():
        if field == "name" and value is None:
            continue
        setattr(project, field, value)
    if body.cooling_type is not None:
        project.cooling_type = body.cooling_type.value

    if (
        project.planned_start_date
        and project.planned_end_date
        and project.planned_end_date < project.planned_start_date
    ):
        raise BadRequestError("planned_end_date cannot be before planned_start_date")

    if body.status is not None and body.status.value != project.status:
        current_status = ProjectStatus(project.status)
        if body.status not in VALID_TRANSITIONS[current_status]:
            raise InvalidTransitionError("project", current_status.value, body.status.value)
        project.status = body.status.value
        if body.status == ProjectStatus.IN_PROGRESS and project.actual_start_date is None:
            project.actual_start_date = date.today()
        if body.status == ProjectStatus.COMPLETE and project.actual_end_date is None:
            project.actual_end_date = date.today()

    await db.flush()
    await db.refresh(project)
    return ProjectResponse.from_orm_instance(project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)
    project.is_deleted = True
    project.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    query_cache.invalidate_project(project.id, db)
    logger.info("Soft-deleted project %s", project.id)


# ---------- Helpers ----------


def seed_default_plan(project: Project, db: AsyncSession) -> list[Phase]:
    """Add the default phases and tasks for a new project to the session."""
    phases = []
    for phase_index, template in enumerate(DEFAULT_PLAN):
        phase = Phase(
            id=uuid.uuid4(),
            project_id=project.id,
            name=template["name"],
            description=template["description"],
            order_index=phase_index,
            status=PhaseStatus.NOT_STARTED.value,
            progress=0,
        )
        db.add(phase)
        phases.append(phase)
        for task_index, (name, role, days, critical) in enumerate(template["tasks"]):
            db.add(
                Task(
                    phase_id=phase.id,
                    name=name,
                    status=TaskStatus.NOT_STARTED.value,
                    assigned_role=role.value,
                    estimated_duration_days=days,
                    is_critical_path=critical,
                    order_index=task_index,
                    depends_on=[],
                )
            )
    return phases
