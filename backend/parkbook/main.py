"""
ParkBook API application.

Run with ``uvicorn parkbook.main:app`` from the ``backend`` directory.
"""

from contextlib import asynccontextmanager
import logging
import time
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.request_context import REQUEST_ID_HEADER, attach_request_id_filter, bound_request_id
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import api_v1

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
attach_request_id_filter()

logger = logging.getLogger(__name__)

BRAND_NAME = "ParkBook"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment} (SITE_MODE={settings.site_mode or 'unset'})")
    if not settings.webhook_secret_value:
        if settings.is_production:
            logger.error("STRIPE_WEBHOOK_SECRET is missing; webhooks will be refused")
        else:
            logger.warning("STRIPE_WEBHOOK_SECRET is not set; webhook signatures are not verified")
    if not settings.stripe_secret_key.get_secret_value():
        logger.warning("STRIPE_SECRET_KEY is not set; checkout is unavailable")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Park sports program booking with Stripe checkout",
    version="1.0.0",
    lifespan=app_lifespan,
)

register_error_handlers(app)


@app.middleware("http")
async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind X-Request-ID to the logging context for the lifetime of the request."""
    start = time.perf_counter()
    with bound_request_id(request.headers.get(REQUEST_ID_HEADER)) as request_id:
        request.state.request_id = request_id
        response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    duration_ms = (time.perf_counter() - start) * 1000
    if duration_ms > 1000:
        logger.warning(
            "Slow request: %s %s took %.0fms", request.method, request.url.path, duration_ms
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", settings.cors_origins, True)

app.include_router(api_v1)
app.include_router(prometheus.router)


@app.get("/health", include_in_schema=False)
def health() -> dict[str, str]:
    return {"status": "healthy", "service": f"{BRAND_NAME.lower()}-api"}
