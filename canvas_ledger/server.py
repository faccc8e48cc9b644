"""
Canvas Ledger Server
====================

FastAPI server exposing the canvas ledger.

Features:
- Canvas creation, pixel painting and claiming
- Token metadata, ownership, transfer and burn
- Event feed for indexers, with optional push to an external indexer
- Optional JSON snapshots so canvases survive restarts
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from .canvas.ledger import CanvasLedger
from .services.indexer_client import IndexerClient

# Import API routers
from .api import canvas_routes, event_routes, token_routes


# Shared service instances
ledger: CanvasLedger = None
indexer_client: IndexerClient = None


def build_ledger() -> CanvasLedger:
    """Ledger wired from configuration, restored from snapshots if enabled."""
    store = config.build_snapshot_store()
    current = CanvasLedger(
        ticks=config.build_tick_source(),
        store=store,
        event_retention=config.event_retention(),
    )
    if store is not None:
        current.restore()
    return current


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global ledger, indexer_client

    logger.info("[CANVAS-LEDGER] Starting up...")

    ledger = build_ledger()

    if config.INDEXER_URL:
        indexer_client = IndexerClient(config.INDEXER_URL, timeout=config.INDEXER_TIMEOUT)
        # Events from before this process started are not replayed
        indexer_client.last_delivered = ledger.events.last_sequence

    # Inject into route modules
    canvas_routes.ledger = ledger
    canvas_routes.indexer_client = indexer_client
    token_routes.ledger = ledger
    token_routes.indexer_client = indexer_client
    event_routes.ledger = ledger

    logger.info(
        f"[CANVAS-LEDGER] Services initialized (tick_mode={config.TICK_MODE}, "
        f"snapshots={'on' if config.SNAPSHOT_DIR else 'off'}, "
        f"indexer={'on' if indexer_client else 'off'})"
    )

    yield

    # Cleanup
    logger.info("[CANVAS-LEDGER] Shutting down...")
    if indexer_client:
        await indexer_client.close()


# Create FastAPI app
app = FastAPI(
    title="Canvas Ledger",
    description="Collaborative pixel canvases minted as non-fungible tokens",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(canvas_routes.router)
app.include_router(token_routes.router)
app.include_router(event_routes.router)


@app.get("/")
async def root():
    """Service info."""
    return {
        "service": "Canvas Ledger",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "canvas": "/api/canvas/{canvas_id}",
            "pixel": "/api/canvas/{canvas_id}/pixels/{x}/{y}",
            "claim": "/api/canvas/{canvas_id}/claim",
            "token": "/api/token/{token_id}/metadata",
            "events": "/api/events",
            "tick": "/api/tick"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "canvas-ledger",
        "canvases": ledger.canvas_count if ledger else 0,
        "tick": ledger.current_tick if ledger else None
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "canvas_ledger.server:app",
        host="0.0.0.0",
        port=8080,
        reload=True
    )
