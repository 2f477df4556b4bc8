import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.common.cache import query_cache
from voltbuild.common.logging import get_logger
from voltbuild.core.progress.rollup import phase_progress, phase_status, project_progress
from voltbuild.core.projects.queries import get_phase_tasks, get_phases
from voltbuild.db.models.phase import Phase
from voltbuild.db.models.project import Project

logger = get_logger("progress.service")


class ProgressService:
    """Writes derived progress back to phases and projects.

    Runs inside the caller's session, so the triggering write and both
    roll-ups commit or roll back together.
    """

    async def recalculate_phase(self, phase_id: uuid.UUID, db: AsyncSession) -> Phase | None:
        result = await db.execute(
            select(Phase).where(Phase.id == phase_id, Phase.is_deleted.is_(False))
        )
        phase = result.scalar_one_or_none()
        if not phase:
            return None

        tasks = await get_phase_tasks(phase.id, db)
        statuses = [t.status for t in tasks]
        progress = phase_progress(statuses)
        status = phase_status(statuses)

        if progress is None or status is None:
            logger.debug("Phase %s has no tasks, leaving progress untouched", phase_id)
        else:
            phase.progress = progress
            phase.status = status.value
            await db.flush()
            logger.info("Phase %s progress=%d status=%s", phase_id, progress, status.value)

        await self.recalculate_project(phase.project_id, db)
        return phase

    async def recalculate_project(self, project_id: uuid.UUID, db: AsyncSession) -> Project | None:
        result = await db.execute(
            select(Project).where(Project.id == project_id, Project.is_deleted.is_(False))
        )
        project = result.scalar_one_or_none()
        if not project:
            return None

        phases = await get_phases(project_id, db)
        progress = project_progress([p.progress for p in phases])
        if progress is not None:
            project.progress = progress
            await db.flush()
            logger.info("Project %s progress=%d", project_id, progress)

        query_cache.invalidate_project(project_id, db)
        return project

    async def recalculate_all_phases(self, project_id: uuid.UUID, db: AsyncSession) -> list[Phase]:
        """Recompute every phase of a project, then the project once."""
        phases = await get_phases(project_id, db)
        for phase in phases:
            statuses = [t.status for t in await get_phase_tasks(phase.id, db)]
            progress = phase_progress(statuses)
            status = phase_status(statuses)
            if progress is not None and status is not None:
                phase.progress = progress
                phase.status = status.value
        await db.flush()
        await self.recalculate_project(project_id, db)
        return phases
