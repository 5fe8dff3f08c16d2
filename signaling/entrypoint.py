from typing import Any, Dict

import uvicorn

from signaling.constants import HOST, LIVENESS_INTERVAL_SECONDS, LOG_FILE, LOG_LEVEL, PORT
from signaling.logging_config import get_logger, setup_logging

# Setup logging before importing app
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)

from signaling.app import app  # noqa: E402

logger = get_logger(__name__)


def server_options() -> Dict[str, Any]:
    # Transport-level ping/pong: uvicorn closes sockets whose peer stops
    # answering, which runs the same teardown as any other close.
    return {
        "host": HOST,
        "port": PORT,
        "log_level": LOG_LEVEL.lower(),
        "ws_ping_interval": float(LIVENESS_INTERVAL_SECONDS),
        "ws_ping_timeout": float(LIVENESS_INTERVAL_SECONDS),
    }


def main() -> None:
    logger.info(f"Starting signaling relay on {HOST}:{PORT}")
    logger.info(f"WebSocket endpoint: ws://{HOST}:{PORT}/ws")
    uvicorn.run(app, **server_options())


if __name__ == "__main__":
    main()
