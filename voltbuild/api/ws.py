"""WebSocket connection registry for live project updates."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from voltbuild.common.logging import get_logger

logger = get_logger("ws.manager")


class _Connection:
    def __init__(self, websocket: WebSocket, user_id: str, events: set[str] | None = None):
        self.websocket = websocket
        self.user_id = user_id
        # Empty means every event
        self.events = events or set()

    def wants(self, event: str) -> bool:
        return not self.events or event in self.events


def _message(project_id: str, event: str, data: dict) -> str:
    return json.dumps({
        "event": event,
        "data": data,
        "project_id": project_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


class ConnectionManager:
    """Tracks WebSocket connections per project and fans events out to them."""

    def __init__(self):
        self._connections: dict[str, dict[str, _Connection]] = {}

    async def connect(self, project_id: str, websocket: WebSocket, user_id: str) -> str:
        await websocket.accept()
        conn_id = uuid.uuid4().hex[:12]
        self._connections.setdefault(project_id, {})[conn_id] = _Connection(websocket, user_id)
        logger.info(
            "WS connected: project=%s conn=%s (%d total)",
            project_id, conn_id, len(self._connections[project_id]),
        )
        return conn_id

    def disconnect(self, project_id: str, conn_id: str) -> None:
        conns = self._connections.get(project_id)
        if conns is not None:
            conns.pop(conn_id, None)
            if not conns:
                del self._connections[project_id]
        logger.info("WS disconnected: project=%s conn=%s", project_id, conn_id)

    def subscribe(self, project_id: str, conn_id: str, events: list[str]) -> None:
        conn = self._connections.get(project_id, {}).get(conn_id)
        if conn is not None:
            conn.events = set(events)

    async def broadcast(self, project_id: str, event: str, data: dict) -> int:
        """Send to every interested connection; returns how many received it."""
        conns = self._connections.get(project_id)
        if not conns:
            return 0
        message = _message(project_id, event, data)
        delivered = 0
        dead = []
        for conn_id, conn in list(conns.items()):
            if not conn.wants(event):
                continue
            try:
                if conn.websocket.client_state == WebSocketState.CONNECTED:
                    await conn.websocket.send_text(message)
                    delivered += 1
            except Exception as e:
                logger.warning("WS send failed: project=%s conn=%s error=%s", project_id, conn_id, e)
                dead.append(conn_id)
        for conn_id in dead:
            self.disconnect(project_id, conn_id)
        return delivered

    async def send_personal(self, project_id: str, conn_id: str, event: str, data: dict) -> None:
        conn = self._connections.get(project_id, {}).get(conn_id)
        if conn is None:
            return
        try:
            if conn.websocket.client_state == WebSocketState.CONNECTED:
                await conn.websocket.send_text(_message(project_id, event, data))
        except Exception as e:
            logger.warning("WS send failed: project=%s conn=%s error=%s", project_id, conn_id, e)
            self.disconnect(project_id, conn_id)

    def connection_count(self, project_id: str | None = None) -> int:
        if project_id is not None:
            return len(self._connections.get(project_id, {}))
        return sum(len(conns) for conns in self._connections.values())


# Global singleton
manager = ConnectionManager()
