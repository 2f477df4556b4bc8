"""Live project updates over WebSocket.

Clients connect to /api/v1/ws/projects/{project_id}?token=<jwt> and receive
events such as:
  - task.updated
  - phase.updated
  - forecast.generated
  - report.generated

Client messages: {"action": "ping"} and {"action": "subscribe", "events": [...]}.
"""

from __future__ import annotations

import json
import uuid

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from sqlalchemy import select

from voltbuild.api.deps import get_project_for_user
from voltbuild.api.ws import manager
from voltbuild.common.exceptions import VoltBuildException
from voltbuild.common.logging import get_logger
from voltbuild.common.security import decode_token
from voltbuild.db.models.user import User
from voltbuild.db.session import async_session_factory

logger = get_logger("api.v1.websocket")

router = APIRouter(tags=["WebSocket"])


async def _authenticate_ws(token: str) -> User | None:
    try:
        payload = decode_token(token)
    except ValueError:
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        return None
    async with async_session_factory() as db:
        result = await db.execute(
            select(User).where(User.id == user_id, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()


async def _has_project_access(user: User, project_id: uuid.UUID) -> bool:
    async with async_session_factory() as db:
        try:
            await get_project_for_user(project_id, user, db)
        except VoltBuildException:
            return False
    return True


@router.websocket("/ws/projects/{project_id}")
async def project_websocket(
    websocket: WebSocket,
    project_id: uuid.UUID,
    token: str = Query(...),
):
    user = await _authenticate_ws(token)
    if not user:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    if not await _has_project_access(user, project_id):
        await websocket.close(code=4003, reason="Access denied")
        return

    key = str(project_id)
    conn_id = await manager.connect(key, websocket, str(user.id))
    await manager.send_personal(key, conn_id, "connected", {
        "message": "Connected to project updates",
        "user_id": str(user.id),
        "user_name": user.full_name,
    })

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await manager.send_personal(key, conn_id, "error", {"message": "Invalid JSON"})
                continue

            action = msg.get("action")
            if action == "ping":
                await manager.send_personal(key, conn_id, "pong", {})
            elif action == "subscribe":
                events = [e for e in msg.get("events", []) if isinstance(e, str)]
                manager.subscribe(key, conn_id, events)
                await manager.send_personal(key, conn_id, "subscribed", {"events": events})
            else:
                await manager.send_personal(key, conn_id, "error", {
                    "message": f"Unknown action: {action}"
                })
    except WebSocketDisconnect:
        manager.disconnect(key, conn_id)
    except Exception as e:
        logger.error("WebSocket error: %s", e)
        manager.disconnect(key, conn_id)
