"""Append-only audit trail of user actions."""
from __future__ import annotations

import logging
from typing import Optional

from src.db.storage import Storage
from src.models import ActivityLog, ActivityLogCreate

logger = logging.getLogger(__name__)


async def record_activity(
    storage: Storage,
    user_id: int,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    details: Optional[str] = None,
) -> ActivityLog:
    entry = await storage.create_activity_log(ActivityLogCreate(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    ))
    logger.debug("activity user=%s action=%s %s=%s", user_id, action, entity_type, entity_id)
    return entry
