"""
FastAPI application factory.

* Registers routes for rides, bookings and admin.
* Builds the notifier (Redis pub/sub, or a no-op when disabled) and closes
  connections on shutdown via lifespan events.
* Applies rate-limiting middleware and the domain error handlers.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from unipool.api.errors import register_exception_handlers
from unipool.api.middleware import limiter
from unipool.api.routes import admin, bookings, rides
from unipool.config import settings
from unipool.infrastructure.database import engine
from unipool.infrastructure.notifier import build_notifier
from unipool.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the database pool and Redis connections on shutdown."""
    logger.info(
        "UniPool API starting (notifications %s)",
        "enabled" if settings.notifications_enabled else "disabled",
    )
    yield
    await close_redis()
    await engine.dispose()
    logger.info("UniPool API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="UniPool API",
        description=(
            "University carpooling: drivers post rides, passengers request "
            "seats, and bookings move through accept / reject / cancel "
            "while the ride's seat count stays consistent."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.notifier = build_notifier(settings)

    # Rate limiter + error mapping
    app.state.limiter = limiter
    register_exception_handlers(app)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
