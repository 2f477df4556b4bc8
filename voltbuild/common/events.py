"""Broadcast project events to WebSocket subscribers.

Event names used across the API:
  - task.updated
  - phase.updated
  - forecast.generated
  - report.generated
  - change_order.created, change_order.updated
  - bid.awarded
  - commissioning.updated
"""

from __future__ import annotations

import uuid

from voltbuild.common.logging import get_logger

logger = get_logger("events")


async def emit(project_id: str | uuid.UUID, event: str, data: dict) -> None:
    """Push an event to every WebSocket connected to the project.

    Delivery failures are logged and never propagate to the caller.
    """
    from voltbuild.api.ws import manager

    try:
        await manager.broadcast(str(project_id), event, data)
    except Exception as e:
        logger.warning("Event %s for project %s not delivered: %s", event, project_id, e)

