"""App settings — loaded from environment."""
from __future__ import annotations

import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # API
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    # Storage: "memory" (process-local tables) or "sql" (SQLAlchemy)
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").lower()
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///savora.db")

    # Auth
    JWT_SECRET = os.getenv("JWT_SECRET", "savora-dev-secret-change-in-prod")

    # CORS origins (comma-separated, or * for dev)
    CORS_ORIGINS = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")
    ]

    # TheMealDB (public recipe database, no key needed for the v1 test key)
    MEALDB_API_URL = os.getenv("MEALDB_API_URL", "https://www.themealdb.com/api/json/v1/1")

    # Spoonacular (ingredient nutrition)
    SPOONACULAR_API_KEY = os.getenv("SPOONACULAR_API_KEY", "")
    SPOONACULAR_API_URL = os.getenv("SPOONACULAR_API_URL", "https://api.spoonacular.com")

    # External calls
    EXTERNAL_TIMEOUT_SECONDS = float(os.getenv("EXTERNAL_TIMEOUT_SECONDS", "8"))
    # Pad sparse local listings with TheMealDB results
    EXTERNAL_BACKFILL = _flag("EXTERNAL_BACKFILL", "true")

    # Observability
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")
    SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
    SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))

    # Logging
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
