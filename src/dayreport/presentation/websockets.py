from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from typing import Any

import inject
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from src.dayreport.application.notifications import NotificationBus
from src.dayreport.application.registry import TaskRegistry
from src.dayreport.domain.events.task_event import TaskEvent
from src.dayreport.domain.exceptions import InputValidationError
from src.dayreport.domain.repositories import FileRevealer
from src.setup.api_config import ApiSettings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ws"])


def _now_ms() -> int:
    return int(time.time() * 1000)


class WebSocketSubscriber:
    """Adapts a websocket connection to the notification bus subscriber contract."""

    def __init__(self, websocket: WebSocket, connection_id: str) -> None:
        self._websocket = websocket
        self._send_lock = asyncio.Lock()
        self.connection_id = connection_id

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: dict[str, Any]) -> None:
        async with self._send_lock:
            await self._websocket.send_json(payload)

    async def send(self, event: TaskEvent) -> None:
        await self.send_json(event.to_wire())


class ConnectionManager:
    def __init__(self, bus: NotificationBus, max_connections: int) -> None:
        self._bus = bus
        self._max_connections = max_connections
        self._connections: set[WebSocketSubscriber] = set()

    @property
    def count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> WebSocketSubscriber | None:
        await websocket.accept()
        if len(self._connections) >= self._max_connections:
            logger.warning(
                "Connection limit exceeded, rejecting",
                extra={"limit": self._max_connections},
            )
            await websocket.close(code=1008, reason="Connection limit exceeded")
            return None
        client = websocket.client
        host = client.host if client else "unknown"
        subscriber = WebSocketSubscriber(websocket, f"{host}_{_now_ms()}")
        self._connections.add(subscriber)
        self._bus.subscribe(subscriber)
        logger.info(
            "WebSocket connected",
            extra={"connection_id": subscriber.connection_id, "connections": self.count},
        )
        return subscriber

    def disconnect(self, subscriber: WebSocketSubscriber) -> None:
        self._connections.discard(subscriber)
        self._bus.unsubscribe(subscriber)
        logger.info(
            "WebSocket disconnected",
            extra={"connection_id": subscriber.connection_id, "connections": self.count},
        )


async def handle_message(
    subscriber: WebSocketSubscriber, message: dict[str, Any], settings: ApiSettings
) -> None:
    kind = message.get("type") or message.get("action")

    if kind == "ping":
        await subscriber.send_json({"type": "pong", "timestamp": _now_ms()})

    elif kind == "start-task":
        registry: TaskRegistry = inject.instance(TaskRegistry)
        try:
            task = await registry.submit(message.get("data") or {})
        except InputValidationError as exc:
            await subscriber.send_json({"type": "error", "message": str(exc)})
            return
        await subscriber.send_json(
            {"type": "task-started", "taskId": task.id, "message": "Task started"}
        )

    elif kind == "open-file-location":
        revealer: FileRevealer = inject.instance(FileRevealer)
        try:
            await asyncio.to_thread(revealer.reveal, message.get("filePath"))
        except InputValidationError as exc:
            logger.warning("Rejected file path", extra={"path": message.get("filePath")})
            await subscriber.send_json({"type": "error", "message": str(exc)})
            return
        except OSError as exc:
            await subscriber.send_json({"type": "error", "message": f"Could not open location: {exc}"})
            return
        await subscriber.send_json({"type": "success", "message": "File location opened"})

    elif kind == "get-info":
        await subscriber.send_json(
            {
                "type": "info",
                "data": {
                    "name": settings.APP_NAME,
                    "version": settings.APP_VERSION,
                    "platform": sys.platform,
                    "port": settings.PORT,
                    "timestamp": _now_ms(),
                },
            }
        )

    else:
        await subscriber.send_json(
            {"type": "error", "message": f"Unsupported message type: {kind!r}"}
        )


async def _receive_frame(websocket: WebSocket) -> bytes:
    """Return the next frame as bytes, whether the client sent text or binary."""
    frame = await websocket.receive()
    if frame["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(frame.get("code", 1000), frame.get("reason"))
    if frame.get("text") is not None:
        return frame["text"].encode("utf-8")
    return frame.get("bytes") or b""


@router.websocket("/ws")
async def events_socket(websocket: WebSocket) -> None:
    settings: ApiSettings = websocket.app.state.settings
    manager: ConnectionManager = websocket.app.state.connections
    subscriber = await manager.connect(websocket)
    if subscriber is None:
        return
    try:
        await subscriber.send_json(
            {
                "type": "connected",
                "connectionId": subscriber.connection_id,
                "port": settings.PORT,
                "timestamp": _now_ms(),
            }
        )
        while True:
            raw = await _receive_frame(websocket)
            if len(raw) > settings.WS_MAX_MESSAGE_BYTES:
                await subscriber.send_json({"type": "error", "message": "Message size exceeds limit"})
                continue
            try:
                message = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as exc:
                await subscriber.send_json(
                    {"type": "error", "message": "Invalid message format", "error": str(exc)}
                )
                continue
            if not isinstance(message, dict):
                await subscriber.send_json({"type": "error", "message": "Invalid message format"})
                continue
            await handle_message(subscriber, message, settings)
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(subscriber)
