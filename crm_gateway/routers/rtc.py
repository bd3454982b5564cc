"""WebSocket endpoint pairing a browser with a call session."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from ..services.gateway import CallGateway
from ..services.session_registry import DuplicateSessionError
from .deps import get_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_call_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        call_id = int(raw)
    except ValueError:
        return None
    return call_id if call_id > 0 else None


@router.websocket("/ws/rtc")
async def call_session_endpoint(websocket: WebSocket, gateway: CallGateway = Depends(get_gateway)) -> None:
    """Relay a browser call session until the socket closes."""

    await websocket.accept()

    call_id = _parse_call_id(websocket.query_params.get("call_id"))
    if call_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Call ID required")
        return

    try:
        session = await gateway.connect(call_id, send=websocket.send_json, close=websocket.close)
    except DuplicateSessionError:
        logger.warning("Rejected duplicate connection for call %s", call_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Call session already active")
        return

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            frame = message.get("text")
            if frame is None:
                frame = message.get("bytes") or b""
            await gateway.handle_frame(session, frame)
    except WebSocketDisconnect:
        pass
    except Exception:  # noqa: BLE001
        logger.exception("Call session socket error for call %s", call_id)
        await gateway.report_connection_error(session)
    finally:
        await gateway.disconnect(session)
