from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .liveness import LivenessMonitor
from .logging_config import get_logger
from .routers import rooms as rooms_router
from .routers import websockets as ws_router

logger = get_logger(__name__)

liveness_monitor = LivenessMonitor()


@asynccontextmanager
async def lifespan(app: FastAPI):
    liveness_monitor.start()
    try:
        yield
    finally:
        await liveness_monitor.stop()


# -----------------------------
# FastAPI app instance
# -----------------------------

app = FastAPI(title="Signaling Relay", lifespan=lifespan)

# Allow all origins; browsers on any host may use the relay.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(rooms_router.router)
app.include_router(ws_router.router)

logger.info("FastAPI application initialized")

__all__ = ["app", "liveness_monitor"]
