import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()

@router.websocket("/progress/{owner_id}")
async def websocket_progress(websocket: WebSocket, owner_id: str):
    """websocket endpoint for real-time job progress of one user"""
    notifier = websocket.app.state.context.notifier
    await websocket.accept()
    notifier.subscribe(owner_id, websocket)

    try:
        while True:
            # client can send "ping" to keep alive
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"progress stream closed for owner {owner_id}")
    except Exception:
        logger.exception(f"progress stream for owner {owner_id} crashed")
    finally:
        notifier.unsubscribe(owner_id, websocket)
