"""Savora API — FastAPI application wiring storage, external adapters and routers."""
from __future__ import annotations

import logging

from src.logging_config import setup_logging
setup_logging()
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.api import favorites, meal_plans, recipes, reviews, shopping_list, users
from src.db import build_storage
from src.middleware.request_id import RequestIDMiddleware
from src.middleware.security_headers import SecurityHeadersMiddleware
from src.services.mealdb import MealDbClient
from src.services.nutrition import NutritionClient

APP_NAME = "Savora"
VERSION = "1.0.0"

# ── Sentry Error Tracking ────────────────────────
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR),
        ],
        send_default_pii=False,
    )

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build storage and external clients on startup; release them on shutdown."""
    from src.startup_checks import validate_settings
    validate_settings()

    storage = build_storage(settings.STORAGE_BACKEND, settings.DATABASE_URL)
    await storage.init()
    app.state.storage = storage
    app.state.mealdb = MealDbClient(
        base_url=settings.MEALDB_API_URL,
        timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
    )
    app.state.nutrition = NutritionClient(
        api_key=settings.SPOONACULAR_API_KEY,
        base_url=settings.SPOONACULAR_API_URL,
        timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
    )
    logger.info("Storage backend: %s", storage.backend)

    yield

    logger.info("Shutting down — closing clients and storage...")
    await app.state.mealdb.aclose()
    await app.state.nutrition.aclose()
    await storage.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Savora API",
    version=VERSION,
    description="Recipe discovery, reviews, shopping lists and meal planning",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(users.router)
app.include_router(recipes.router)
app.include_router(reviews.router)
app.include_router(favorites.router)
app.include_router(shopping_list.router)
app.include_router(meal_plans.router)


@app.get("/")
async def root(request: Request):
    storage = getattr(request.app.state, "storage", None)
    return {"app": APP_NAME, "version": VERSION, "backend": storage.backend if storage else None}


@app.get("/health")
async def health(request: Request):
    storage = getattr(request.app.state, "storage", None)
    status = "ok" if storage is not None else "starting"
    return {"status": status, "backend": storage.backend if storage else None, "version": VERSION}


# ── Structured Error Responses ───────────────────────

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Return clean, structured validation errors instead of raw Pydantic output."""
    errors = []
    for err in exc.errors():
        field = " → ".join(str(loc) for loc in err["loc"]) if err.get("loc") else "unknown"
        errors.append({"field": field, "message": err["msg"]})
    return JSONResponse(status_code=422, content={
        "error": "validation_error",
        "message": "Invalid request data",
        "details": errors,
    })


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Consistent error envelope for all HTTP errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail if isinstance(exc.detail, str) else "error",
            "message": exc.detail,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Catch-all for unhandled exceptions — never leak stack traces."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={
        "error": "internal_error",
        "message": "Something went wrong. Please try again.",
    })
