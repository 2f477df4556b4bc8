import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.common.enums import ProjectStatus
from voltbuild.db.models.project import Project


def run_async(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def active_project_ids(db: AsyncSession) -> list[str]:
    """Projects that are not yet complete."""
    result = await db.execute(
        select(Project.id).where(
            Project.status != ProjectStatus.COMPLETE.value,
            Project.is_deleted.is_(False),
        )
    )
    return [str(pid) for pid in result.scalars().all()]
