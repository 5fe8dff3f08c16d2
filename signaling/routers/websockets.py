from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, WebSocket

from ..connection import Connection
from ..logging_config import get_logger
from ..relay_logic import decode_message, handle_disconnect, handle_ws_message
from ..state import registry

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["ws"])


def _frame_text(message: dict) -> Optional[str]:
    if message.get("text") is not None:
        return message["text"]
    if message.get("bytes") is not None:
        try:
            return message["bytes"].decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(f"Dropping binary frame that is not valid UTF-8: {e}")
    return None


@router.websocket("/")
@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    connection = Connection(ws)
    connection.start()
    registry.register(connection)
    logger.info(f"New connection {connection!r}")

    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"{connection!r} closed by peer (code={message.get('code')})")
                break

            # Any frame at all proves the peer is still there
            connection.mark_alive()

            raw = _frame_text(message)
            data = decode_message(raw) if raw is not None else None
            if data is None:
                continue
            try:
                handle_ws_message(connection, data)
            except Exception as e:
                logger.error(f"Error handling {data.get('type')!r} from {connection!r}: {e}", exc_info=True)
    except Exception as e:
        logger.error(f"WebSocket error on {connection!r}: {e}", exc_info=True)
    finally:
        handle_disconnect(connection)
        await connection.wait_closed()
