"""FastAPI application for the CRM call-session gateway."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .core.config import settings
from .db.session import SessionLocal, dispose_engine
from .routers import calls as calls_router
from .routers import realtime as realtime_router
from .routers import rtc as rtc_router
from .routers.deps import get_gateway
from .services.gateway import CallGateway
from .services.realtime import OpenAIRealtimeClient
from .services.session_registry import SessionRegistry

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


def build_gateway() -> CallGateway:
    """Wire the gateway to the database and the realtime service."""

    return CallGateway(
        session_factory=SessionLocal,
        realtime=OpenAIRealtimeClient.from_settings(settings),
        registry=SessionRegistry(settings.duplicate_connection_policy),
        config=settings,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    gateway = build_gateway()
    app.state.gateway = gateway
    logger.info("Call-session gateway ready on /ws/rtc (policy=%s)", gateway.registry.policy)
    try:
        yield
    finally:
        await gateway.shutdown()
        await dispose_engine()


app = FastAPI(title="CRM Call Gateway", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(rtc_router.router, tags=["rtc"])
app.include_router(realtime_router.router, prefix="/api/realtime", tags=["realtime"])
app.include_router(calls_router.router, prefix="/api/calls", tags=["calls"])


@app.get("/api/health", tags=["meta"])
async def health(gateway: CallGateway = Depends(get_gateway)) -> dict[str, object]:
    """Liveness probe with the number of live call sessions."""

    return {"status": "ok", "active_sessions": gateway.session_count}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)
