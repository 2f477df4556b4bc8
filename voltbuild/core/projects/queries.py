"""Shared loaders for a project's phases and tasks."""

from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voltbuild.db.models.phase import Phase
from voltbuild.db.models.task import Task


async def get_phases(project_id: uuid.UUID, db: AsyncSession) -> list[Phase]:
    result = await db.execute(
        select(Phase)
        .where(Phase.project_id == project_id, Phase.is_deleted.is_(False))
        .order_by(Phase.order_index, Phase.created_at)
    )
    return list(result.scalars().all())


async def get_project_tasks(
    project_id: uuid.UUID, db: AsyncSession, phase_id: uuid.UUID | None = None
) -> list[Task]:
    """Tasks of live phases, ordered by phase order then task order."""
    query = (
        select(Task)
        .join(Phase, Task.phase_id == Phase.id)
        .where(
            Phase.project_id == project_id,
            Phase.is_deleted.is_(False),
            Task.is_deleted.is_(False),
        )
    )
    if phase_id is not None:
        query = query.where(Task.phase_id == phase_id)
    query = query.order_by(Phase.order_index, Task.order_index, Task.created_at)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_phase_tasks(phase_id: uuid.UUID, db: AsyncSession) -> list[Task]:
    result = await db.execute(
        select(Task)
        .where(Task.phase_id == phase_id, Task.is_deleted.is_(False))
        .order_by(Task.order_index, Task.created_at)
    )
    return list(result.scalars().all())
