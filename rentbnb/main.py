import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from . import models
from .database import engine
from .routers import (
    auth_router, user_router, listing_router, reservation_router, review_router, favorite_router, amenity_router
)
from .responses import register_exception_handlers

import redis.asyncio as redis
from fastapi_limiter import FastAPILimiter
from .config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("rentbnb")

# Alembic owns the schema in production; this keeps a fresh SQLite setup usable
models.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("RentBnB API starting up...")

    redis_client = None
    if settings.RATE_LIMIT_ENABLED:
        try:
            redis_client = redis.from_url(settings.REDIS_URL, encoding="utf-8")
            await FastAPILimiter.init(redis_client)
            logger.info("FastAPILimiter initialized with Redis.")
        except Exception as e:
            logger.error(f"Failed to initialize FastAPILimiter: {e}")
    else:
        logger.info("Rate limiting disabled.")

    yield  # The application is now running

    logger.info("RentBnB API shutting down...")
    if redis_client is not None:
        await redis_client.aclose()


app = FastAPI(
    title="RentBnB API",
    description="Listings, reservations, reviews and favorites for a rental marketplace.",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(listing_router.router)
app.include_router(reservation_router.router)
app.include_router(review_router.router)
app.include_router(favorite_router.router)
app.include_router(amenity_router.router)


@app.get("/")
def read_root():
    return {"success": True, "data": {"message": "Welcome to the RentBnB API"}}
