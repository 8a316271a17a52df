import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from business.relay import BroadcastRelay
from models.message import RelayMessage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def get_relay(websocket: WebSocket) -> BroadcastRelay:
    return websocket.app.state.relay


@router.websocket("/ws")
async def relay_socket(
    websocket: WebSocket,
    relay: BroadcastRelay = Depends(get_relay),
):
    """
    Live feed of every message published by any client.

    Each inbound ``{sender, receiver, content, media}`` frame is re-emitted
    unchanged to all connected clients, the sender included. Nothing here
    touches the message store.
    """
    await relay.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.warning("Ignoring binary relay frame")
                await websocket.send_json({"error": "Invalid message"})
                continue
            try:
                event = RelayMessage.model_validate_json(raw)
            except ValidationError:
                logger.warning("Ignoring malformed relay frame")
                await websocket.send_json({"error": "Invalid message"})
                continue
            await relay.publish(event.model_dump())
    except WebSocketDisconnect:
        pass
    finally:
        await relay.disconnect(websocket)
