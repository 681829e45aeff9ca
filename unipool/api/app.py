"""
FastAPI application factory.

* Registers routes for rides, users, recommendations and admin.
* Creates the key-value table and starts / stops the cleanup worker via
  lifespan events.
* Maps domain errors to HTTP status codes.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from unipool.api.middleware import limiter
from unipool.api.routes import admin, recommendations, rides, users
from unipool.domain.errors import (
    AlreadyBooked,
    CarpoolError,
    InvalidStateTransition,
    NoSeatsAvailable,
    NotFound,
    PersistenceError,
    ValidationError,
)
from unipool.infrastructure.database import engine
from unipool.infrastructure.models import create_tables
from unipool.infrastructure.redis_client import close_redis
from unipool.workers import cleanup as _cleanup

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CarpoolError], int] = {
    NotFound: 404,
    NoSeatsAvailable: 409,
    AlreadyBooked: 409,
    InvalidStateTransition: 409,
    ValidationError: 422,
    PersistenceError: 503,
}


async def carpool_error_handler(request: Request, exc: CarpoolError) -> JSONResponse:
    status = next(
        (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400
    )
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure the store table exists and run the cleanup worker."""
    await create_tables(engine)
    await _cleanup.start_cleanup_loop()
    yield
    await _cleanup.stop_cleanup_loop()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="UniPool Campus Carpool API",
        description=(
            "Post and search campus rides, book and cancel seats, rate "
            "drivers and riders, and get ride recommendations ranked by "
            "driver rating, departure proximity and open seats."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(CarpoolError, carpool_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(recommendations.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
