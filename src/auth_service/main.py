"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth_service.api.auth import router as auth_router
from auth_service.api.error_handlers import register_error_handlers
from auth_service.cache.store import create_cache
from auth_service.config import settings
from auth_service.database.engine import dispose_db, init_db

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    await init_db()
    logger.info("Database initialised")
    app.state.cache = create_cache(settings)
    logger.info("Cache backend: %s", settings.cache_backend)
    yield
    logger.info("Shutting down %s …", settings.app_name)
    await app.state.cache.close()
    await dispose_db()


app = FastAPI(
    title=settings.app_name,
    description="E-commerce auth service with OTP-verified registration and password reset",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_headers=["Authorization", "Content-Type"],
    allow_methods=["*"],
    allow_credentials=True,
)

register_error_handlers(app)
app.include_router(auth_router)


@app.get("/")
async def root():
    return {"message": "Hello API"}


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name}
