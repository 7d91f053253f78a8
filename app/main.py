"""
PitchRoom — FastAPI application entry-point.

Run with:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.config import settings
from app.database import engine, init_models

# ── Import routers ──
from app.routers import auth, funding_rounds, notifications, offers, pitch_rooms, users
from app.services.negotiation import NegotiationService
from app.services.room_registry import RoomRegistry

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables and the process-wide collaborators on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    app.state.rooms = RoomRegistry()
    app.state.negotiation = NegotiationService()
    logger.info("%s started", settings.APP_NAME)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Startup fundraising marketplace — pitch rooms, real-time chat and offer negotiation.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))

# ── Register API routers ──
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(funding_rounds.router)
app.include_router(offers.router)
app.include_router(pitch_rooms.router)
app.include_router(notifications.router)

if settings.ENVIRONMENT != "production":
    from fastapi.responses import RedirectResponse
    from app.routers.auth import _set_auth_cookie

    @app.get("/mock-login/{user_id}")
    def mock_login(user_id: str):
        resp = RedirectResponse(url="/users/me", status_code=303)
        return _set_auth_cookie(resp, user_id)


@app.get("/")
async def homepage():
    return {"app": settings.APP_NAME, "status": "ok"}
