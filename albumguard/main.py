"""albumguard - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, Query
from fastapi.middleware.cors import CORSMiddleware

from albumguard.config import settings
from albumguard.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and initialize the database on startup."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    yield


app = FastAPI(
    title="albumguard",
    description="Album membership and timeline visibility service",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS - allow all origins for local network usage
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register API routers ---
from albumguard.api.albums import router as albums_router  # noqa: E402
from albumguard.api.assets import router as assets_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(albums_router, prefix=API_PREFIX)
app.include_router(assets_router, prefix=API_PREFIX)


# --- WebSocket endpoints ---
from albumguard.ws.sync import websocket_sync  # noqa: E402


@app.websocket("/ws")
async def ws_endpoint(ws: WebSocket, token: str = Query(default="")):
    await websocket_sync(ws, token or None)


@app.get("/")
def root():
    """Server info."""
    return {
        "name": settings.server_name,
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok"}
