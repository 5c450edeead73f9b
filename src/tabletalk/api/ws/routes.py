from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from tabletalk.api.ws.channel import BroadcastChannel

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    channel: BroadcastChannel = websocket.app.state.broadcast_channel
    registry = channel.registry

    # admitted before the handshake completes so nothing published after accept is missed
    subscriber = registry.register(websocket)
    try:
        await websocket.accept()
    except Exception:
        await registry.unregister(websocket)
        raise
    subscriber.start(registry)

    try:
        while True:
            # inbound frames carry nothing; reading keeps disconnect detection alive
            await websocket.receive_text()
    except WebSocketDisconnect:
        await registry.unregister(websocket)
    except Exception:
        logger.exception("ws_connection_error", extra={"subscriber_id": subscriber.subscriber_id})
        await registry.unregister(websocket)
