import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from leadintake.api.v1.router import router as api_v1_router
from leadintake.core.cache import CacheService
from leadintake.core.config import settings as app_settings
from leadintake.core.database import AsyncSessionLocal
from leadintake.core.exceptions import (
    ConfigurationError,
    CountryNotFoundError,
    DecaySweepInProgressError,
    LeadNotFoundError,
    NotFoundError,
    ValidationError,
)
from leadintake.core.rate_limit import limiter
from leadintake.repositories.crm_settings_repository import CrmSettingsRepository
from leadintake.services.crm_settings import CrmSettingsService
from leadintake.services.score_decay import start_score_decay_loop

# Configure logging
logging.basicConfig(level=app_settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def _seed_default_settings(cache: CacheService) -> None:
    try:
        async with AsyncSessionLocal() as session:
            service = CrmSettingsService(CrmSettingsRepository(session), cache)
            await service.seed_defaults_if_missing()
    except Exception:
        logger.warning("Could not seed default crm_settings at startup", exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed rule documents and manage the score decay background task."""
    redis_client = Redis.from_url(app_settings.REDIS_URL, decode_responses=True)
    cache = CacheService(redis_client)
    await _seed_default_settings(cache)

    decay_task = None
    if app_settings.SCORE_DECAY_LOOP_ENABLED:
        decay_task = asyncio.create_task(start_score_decay_loop(AsyncSessionLocal, cache))
        logger.info("Background score decay task scheduled")
    yield
    if decay_task is not None:
        decay_task.cancel()
        try:
            await decay_task
        except asyncio.CancelledError:
            logger.info("Background score decay task stopped")
    await redis_client.aclose()


app = FastAPI(
    title="Lead Intake Engine",
    description="Lead qualification, scoring and sales assignment for the CRM",
    version="0.1.0",
    lifespan=lifespan,
)

# Attach rate limiter state so slowapi middleware can find it
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware: restricted to configured origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in app_settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.exception_handler(ValidationError)
async def lead_validation_handler(request: Request, exc: ValidationError):
    logger.warning("Lead rejected: %s", exc.detail)
    return JSONResponse(
        status_code=422,
        content={"detail": exc.detail, "type": "lead_validation_error"},
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    if isinstance(exc, LeadNotFoundError):
        error_type = "lead_not_found"
    elif isinstance(exc, CountryNotFoundError):
        error_type = "country_not_found"
    else:
        error_type = "not_found"
    logger.warning("Not found: %s", exc.detail)
    return JSONResponse(
        status_code=404,
        content={"detail": exc.detail, "type": error_type},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("CRM configuration error: %s", exc.detail)
    return JSONResponse(
        status_code=500,
        content={"detail": exc.detail, "type": "configuration_error"},
    )


@app.exception_handler(DecaySweepInProgressError)
async def decay_in_progress_handler(request: Request, exc: DecaySweepInProgressError):
    logger.info("Decay sweep request rejected: %s", exc.detail)
    return JSONResponse(
        status_code=409,
        content={"detail": exc.detail, "type": "decay_sweep_in_progress"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation error: %s", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
            "type": "validation_error",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected/unhandled exceptions.

    Returns a generic 500 response so that raw stack traces are never
    leaked to the client.
    """
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected internal error occurred. Please try again later.",
            "type": "internal_server_error",
        },
    )
