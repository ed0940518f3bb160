"""Startup validation — catch misconfigurations before the app serves traffic."""
from __future__ import annotations

import logging
import sys

from config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "savora-dev-secret-change-in-prod"
STORAGE_BACKENDS = ("memory", "sql")


def is_production(settings: Settings) -> bool:
    return settings.STORAGE_BACKEND == "sql" and "sqlite" not in settings.DATABASE_URL


def validate_settings(settings: Settings = default_settings) -> list[str]:
    """Validate configuration. Returns list of warnings (empty = all good).

    Raises SystemExit for critical misconfigurations in production.
    """
    warnings: list[str] = []
    is_prod = is_production(settings)

    if settings.STORAGE_BACKEND not in STORAGE_BACKENDS:
        logger.critical("STORAGE_BACKEND=%r is not one of %s", settings.STORAGE_BACKEND, STORAGE_BACKENDS)
        sys.exit(1)

    # Critical: JWT secret must be changed in production
    if is_prod and settings.JWT_SECRET == DEFAULT_JWT_SECRET:
        logger.critical("JWT_SECRET is still the default! Set a real secret for production.")
        sys.exit(1)

    if is_prod and "*" in settings.CORS_ORIGINS:
        warnings.append("CORS_ORIGINS is set to * — restrict in production")

    if settings.STORAGE_BACKEND == "memory":
        warnings.append("STORAGE_BACKEND=memory — data is lost on restart")

    if not settings.SPOONACULAR_API_KEY:
        warnings.append("SPOONACULAR_API_KEY not set — ingredient search and nutrition disabled")

    if not settings.EXTERNAL_BACKFILL:
        warnings.append("EXTERNAL_BACKFILL off — listings show local recipes only")

    for w in warnings:
        logger.warning("⚠️  %s", w)

    if not warnings:
        logger.info("✅ All startup checks passed")

    return warnings
