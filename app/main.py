# =============================================================================
# FastAPI Application Entry Point
# =============================================================================
#
# Wires the cars router, exception handlers, middleware, and the static
# mount that serves stored images.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api import cars
from app.api.audit import AuditLoggingMiddleware
from app.config import settings
from app.db.engine import async_engine, init_models
from app.exceptions import CarServiceError, car_service_exception_handler
from app.models.responses import HealthResponse

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create tables and the upload directory.
    Shutdown: dispose of the connection pool.
    """
    logger.info(
        "Starting %s v%s (auth %s)",
        settings.app_name,
        settings.app_version,
        "enabled" if settings.auth_enabled else "disabled",
    )
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    await init_models()

    yield

    logger.info("Shutting down %s", settings.app_name)
    await async_engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Owner-scoped car records with image uploads.",
    lifespan=lifespan,
)

app.add_middleware(AuditLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(CarServiceError, car_service_exception_handler)

app.include_router(cars.router)

# Stored references look like "uploads/<file>", so they resolve as URL paths
app.mount(
    f"/{Path(settings.upload_dir).name}",
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(version=settings.app_version, service=settings.app_name)
