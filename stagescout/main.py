import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from stagescout.config import settings
from stagescout.database import close_database, init_database
from stagescout.errors import register_exception_handlers
from stagescout.realtime import endpoint as realtime
from stagescout.realtime.connection_manager import ConnectionManager
from stagescout.routes import (
    auth, casting_calls, groups, leaderboard, messages, notifications, posts, presence, users
)

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    logger.info("Starting up StageScout backend...")
    os.makedirs(settings.MEDIA_ROOT, exist_ok=True)
    await init_database()

    yield

    # Shutdown
    logger.info("Shutting down StageScout backend...")
    await close_database()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Casting and creative networking platform with realtime presence and chat",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(posts.router, prefix="/api/posts", tags=["Posts"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(casting_calls.router, prefix="/api/casting-calls", tags=["Casting Calls"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(leaderboard.router, prefix="/api/leaderboard", tags=["Leaderboard"])
app.include_router(messages.router, prefix="/api/messages", tags=["Messages"])
app.include_router(presence.router, prefix="/api/presence", tags=["Presence"])
app.include_router(realtime.router, tags=["Realtime"])

# Uploaded media
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "StageScout API is running...",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check(manager: ConnectionManager = Depends(realtime.get_connection_manager)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "connections": len(manager.connection_ids()),
        "online_users": len(manager.get_online_users())
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("stagescout.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
