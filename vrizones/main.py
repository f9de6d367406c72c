"""
Entry point of the VRI zoning service.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from vrizones.config import settings
from vrizones.middleware.error_handler import ErrorHandlerMiddleware
from vrizones.api.v1.routers import (
    geometry,
    irrigation_systems,
    prescriptions,
    sprinkler_zones,
    units,
    zones,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (geometry, sprinkler_zones, irrigation_systems, zones, prescriptions, units)

# Applies to every route through SlowAPIMiddleware
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_requests}/minute"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Logs the effective settings on startup and closes the backend client on shutdown."""
    logger.info(
        f"{settings.app_name} v{settings.app_version} starting "
        f"(log level {settings.log_level}, {settings.rate_limit_requests} requests/minute)"
    )
    logger.info(
        f"Irrigation backend at {settings.backend_base_url} "
        f"(retries={settings.max_retry_attempts}, timeout={settings.backend_timeout}s)"
    )

    yield

    from vrizones.infrastructure.backend_client import get_backend_client
    await get_backend_client().close()
    logger.info("Backend client closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Variable-Rate Irrigation zoning API

    Turns irrigation hardware drawn on a map into geographic shapes, groups
    the cells of an irrigation system into management zones and overlays VRI
    prescriptions on those cells.

    - **Geometry**: pivot sectors, linear-move rectangles, bearings, geodesic
      measurements and GeoJSON shapes
    - **Sprinkler zones**: validation of chained radial or width bands
    - **Management zones**: non-overlapping cell groups with boundary styling
    - **Prescriptions**: rate document overlay, legend and manual rate edits
    - **Units**: drip application rates in imperial or metric units

    Backend calls are retried with exponential backoff and every client is
    rate limited.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ErrorHandlerMiddleware)

for module in ROUTERS:
    app.include_router(module.router, prefix=API_PREFIX)


@app.get("/", tags=["health"])
async def root():
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """Liveness probe; does not call the irrigation backend."""
    return {"status": "healthy", "service": settings.app_name}
