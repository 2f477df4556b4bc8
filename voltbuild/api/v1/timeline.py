import uuid
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.core.projects.queries import get_phases, get_project_tasks
from voltbuild.core.timeline.builder import Milestone, Timeline, build_timeline
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}", tags=["Timeline"])


# ---------- Schemas ----------


class TimelineResponse(Timeline):
    project_id: uuid.UUID
    project_name: str


class MilestoneListResponse(BaseModel):
    project_id: uuid.UUID
    milestones: list[Milestone]


# ---------- Endpoints ----------


@router.get("/timeline", response_model=TimelineResponse)
async def get_project_timeline(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)
    timeline = build_timeline(
        await get_phases(project_id, db),
        await get_project_tasks(project_id, db),
        today=date.today(),
    )
    return TimelineResponse(
        project_id=project.id,
        project_name=project.name,
        **timeline.model_dump(),
    )


@router.get("/timeline/milestones", response_model=MilestoneListResponse)
async def get_project_milestones(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await get_project_for_user(project_id, current_user, db)
    timeline = build_timeline(
        await get_phases(project_id, db),
        await get_project_tasks(project_id, db),
        today=date.today(),
    )
    return MilestoneListResponse(project_id=project.id, milestones=timeline.milestones)
