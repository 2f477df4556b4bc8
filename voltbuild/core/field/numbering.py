import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def next_number(db: AsyncSession, model, project_id: uuid.UUID, prefix: str) -> str:
    """Next sequential reference for a project, e.g. ``PL-004``.

    Soft-deleted rows still count so a number is never reissued.
    """
    result = await db.execute(
        select(func.count()).select_from(model).where(model.project_id == project_id)
    )
    return f"{prefix}-{(result.scalar() or 0) + 1:03d}"
