"""
WebSocket handler for real-time pipeline updates.

Provides live streaming of pipeline state transitions.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.session import get_pipeline_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

HEARTBEAT_INTERVAL = 30.0


@router.websocket("/ws/pipeline")
async def pipeline_websocket(websocket: WebSocket) -> None:
    """
    WebSocket endpoint for pipeline state updates.

    Sends the current view on connect, then one message per reducer
    transition. Messages are JSON objects {"type": "pipeline", "state": ...};
    a {"type": "heartbeat"} is sent after 30s without transitions.

    Example client (Python):
        async with websockets.connect("ws://localhost:8801/ws/pipeline") as ws:
            async for message in ws:
                data = json.loads(message)
                if data["type"] == "pipeline":
                    print(data["state"]["current_step"])

    Args:
        websocket: WebSocket connection
    """
    session = get_pipeline_session()

    await websocket.accept()
    logger.info("WebSocket connected for pipeline updates")

    queue = session.subscribe()

    try:
        await websocket.send_json(session.state_message())

        while True:
            try:
                message = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_INTERVAL)
                await websocket.send_json(message)

            except asyncio.TimeoutError:
                # Keep idle connections alive
                try:
                    await websocket.send_json({"type": "heartbeat"})
                except Exception:
                    break

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        session.unsubscribe(queue)
        logger.info("WebSocket closed")
