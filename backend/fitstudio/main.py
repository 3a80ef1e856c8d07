# backend/fitstudio/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.routing import APIRoute

from . import __version__
from .core.config import settings
from .errors import register_error_handlers
from .middleware.prometheus_middleware import METRICS_PATH, PrometheusMiddleware
from .routes import health, prometheus
from .routes.v1 import bookings as bookings_v1, cancellation_requests as cancellation_requests_v1

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Fitness Studio Booking API"
API_DESCRIPTION = "Capacity-group booking admission, status management and cancellations."


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info("Fitness studio booking API starting up...")
    logger.info(f"Environment: {settings.environment} (timezone={settings.studio_timezone})")
    yield
    logger.info("Fitness studio booking API shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
        generate_unique_id_function=_unique_operation_id,
    )
    # Register unified error envelope handlers
    register_error_handlers(app)

    app.add_middleware(PrometheusMiddleware)

    # Create API v1 router
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(cancellation_requests_v1.router, prefix="/cancellation-requests")
    app.include_router(api_v1)

    # Infrastructure routes stay unversioned
    app.include_router(health.router, prefix="/health")
    app.include_router(prometheus.router, prefix=METRICS_PATH)
    return app


app = create_app()
