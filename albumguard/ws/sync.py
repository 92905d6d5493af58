"""WebSocket handler delivering album events to their recipients."""

import asyncio
import json
import logging
from typing import Dict

import jwt
from fastapi import WebSocket, WebSocketDisconnect

from albumguard.services.events import ALBUM_INVITE, ALBUM_UPDATE, event_bus
from albumguard.utils.security import user_id_from_token

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages active WebSocket connections per user.

    Album operations run in worker threads; ``notify`` hands messages to
    the event loop that owns the sockets.
    """

    def __init__(self):
        self._connections: Dict[str, list[WebSocket]] = {}  # user_id -> [ws]
        self._loop: asyncio.AbstractEventLoop | None = None

    async def connect(self, ws: WebSocket, user_id: str):
        await ws.accept()
        self._loop = asyncio.get_running_loop()
        self._connections.setdefault(user_id, []).append(ws)

    def disconnect(self, ws: WebSocket, user_id: str):
        conns = self._connections.get(user_id, [])
        if ws in conns:
            conns.remove(ws)
        if not conns:
            self._connections.pop(user_id, None)

    async def send_to_user(self, user_id: str, message: dict):
        """Send a message to every connection of one user."""
        conns = self._connections.get(user_id, [])
        dead = []
        for ws in list(conns):
            try:
                await ws.send_json(message)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws, user_id)

    def notify(self, user_id: str, message: dict) -> None:
        """Thread-safe, fire-and-forget delivery."""
        loop = self._loop
        if loop is None or loop.is_closed() or user_id not in self._connections:
            return
        loop.call_soon_threadsafe(
            lambda: asyncio.ensure_future(self.send_to_user(user_id, message))
        )

    def on_album_event(self, name: str, payload: dict) -> None:
        if name == ALBUM_UPDATE:
            self.notify(payload["recipient_id"], {"type": name, "album_id": payload["id"]})
        elif name == ALBUM_INVITE:
            self.notify(payload["user_id"], {"type": name, "album_id": payload["id"]})

    @property
    def connection_count(self) -> int:
        return sum(len(v) for v in self._connections.values())


manager = ConnectionManager()
event_bus.subscribe(manager.on_album_event)


async def websocket_sync(ws: WebSocket, token: str | None = None):
    """WebSocket endpoint for album events."""
    # Authenticate
    if not token:
        await ws.close(code=4001, reason="Missing token")
        return

    try:
        user_id = user_id_from_token(token)
    except jwt.PyJWTError:
        await ws.close(code=4001, reason="Invalid token")
        return

    await manager.connect(ws, user_id)

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
                msg_type = msg.get("type", "")

                if msg_type == "ping":
                    await ws.send_json({"type": "pong"})
                else:
                    await ws.send_json({"type": "error", "message": f"Unknown type: {msg_type}"})
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "message": "Invalid JSON"})
    except WebSocketDisconnect:
        manager.disconnect(ws, user_id)
