"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from pwa_backend import __version__
from pwa_backend.api import auth, images, notifications, posts, push, system, users
from pwa_backend.api.errors import register_exception_handlers
from pwa_backend.config import get_push_config, get_settings
from pwa_backend.logging_config import configure_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    configure_logging(settings)
    push_config = get_push_config()
    if push_config.is_configured:
        logger.info(f"Push notifications configured (VAPID key {push_config.public_key_prefix})")
    else:
        logger.warning("VAPID credentials not configured, push disabled")
    logger.info(f"Backend started in {settings.environment} mode")
    yield
    logger.info("Backend shutting down")


app = FastAPI(
    title="PWA Backend API",
    description="Accounts, content and web push notifications for the PWA",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request with its status and duration."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)"
    )
    return response


register_exception_handlers(app, settings)

# Register routers
app.include_router(system.router)
app.include_router(auth.router)
app.include_router(push.router)
app.include_router(users.router)
app.include_router(notifications.router)
app.include_router(posts.router)
app.include_router(images.router)
