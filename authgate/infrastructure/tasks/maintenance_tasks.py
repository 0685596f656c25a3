"""Celery tasks for auth state maintenance."""

import logging
from typing import Dict

from authgate.infrastructure.database.init_db import sweep_expired_state
from authgate.infrastructure.tasks.celery_app import celery_app
from authgate.utils.async_helpers import run_async
from authgate.utils.clock import utcnow

logger = logging.getLogger("authgate.tasks")


@celery_app.task
def sweep_expired_auth_state() -> Dict:
    """
    Reclaim expired refresh tokens, blacklist entries and rate limit windows.

    Returns:
        Sweep result with the number of rows removed per store
    """
    try:
        removed = run_async(sweep_expired_state())
    except Exception as e:
        logger.exception("Storage sweep failed")
        return {
            "status": "FAILED",
            "error": str(e),
            "failed_at": utcnow().isoformat(),
        }

    return {
        "status": "COMPLETED",
        "removed": removed,
        "completed_at": utcnow().isoformat(),
    }
