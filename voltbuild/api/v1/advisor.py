import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.api.deps import get_current_user, get_db, get_project_for_user
from voltbuild.core.advisor.schemas import AdvisorReport
from voltbuild.core.advisor.service import advise_project
from voltbuild.db.models.user import User

router = APIRouter(prefix="/projects/{project_id}/advisor", tags=["Advisor"])


@router.get("", response_model=AdvisorReport)
async def get_advice(
    project_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Health score, status label, critical-path excerpt and top actions/risks."""
    project = await get_project_for_user(project_id, current_user, db)
    return await advise_project(project, db)
