from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.core.advisor.engine import build_advice
from voltbuild.core.advisor.schemas import AdvisorReport, AdvisorTaskInput
from voltbuild.core.projects.queries import get_phases, get_project_tasks
from voltbuild.db.models.project import Project


async def advise_project(project: Project, db: AsyncSession) -> AdvisorReport:
    """Run the advisor rules over the project's live tasks in plan order."""
    phase_names = {p.id: p.name for p in await get_phases(project.id, db)}
    tasks = await get_project_tasks(project.id, db)
    inputs = [
        AdvisorTaskInput(
            id=t.id,
            name=t.name,
            status=t.status,
            is_critical_path=t.is_critical_path,
            phase_name=phase_names.get(t.phase_id),
        )
        for t in tasks
    ]
    return build_advice(inputs, project.progress or 0)
