"""WebSocket endpoint for real-time updates."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from core.broadcast import BroadcastHub

logger = logging.getLogger(__name__)

# Seconds without client traffic before a keep-alive ping is sent
KEEPALIVE_TIMEOUT = 60.0


def _orjson_dumps(obj: Any) -> str:
    """Serialize object to JSON string using orjson."""
    return orjson.dumps(obj, default=str).decode("utf-8")


def _control(event: str, payload: dict | None = None) -> str:
    return _orjson_dumps({
        "event": event,
        "payload": payload or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


class WebSocketSubscriber:
    """Adapts a FastAPI WebSocket to the BroadcastHub subscriber protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Events sent to clients:
    - marketUpdate: Fresh market data {symbol, price, change24h, volume, timestamp}
    - newSignal: A newly generated signal

    Message format:
    {
        "event": "newSignal",
        "payload": {...}
    }
    """
    hub: BroadcastHub = websocket.app.state.services.hub
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    await hub.register(subscriber)

    try:
        await websocket.send_text(_control("connected", {"message": "Connected to LiquidAlpha"}))

        # Keep connection alive and handle incoming messages
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=KEEPALIVE_TIMEOUT,
                )
                try:
                    message = orjson.loads(data)
                    await handle_client_message(websocket, message)
                except orjson.JSONDecodeError:
                    await websocket.send_text(_control("error", {"message": "Invalid JSON"}))

            except asyncio.TimeoutError:
                await websocket.send_text(_control("ping"))

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        await hub.unregister(subscriber)


async def handle_client_message(websocket: WebSocket, message: Any) -> None:
    """Handle incoming message from client."""
    msg_type = message.get("event", "") if isinstance(message, dict) else ""

    if msg_type == "ping":
        await websocket.send_text(_control("pong"))
    else:
        await websocket.send_text(
            _control("error", {"message": f"Unknown message type: {msg_type}"})
        )
