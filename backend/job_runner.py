"""
Maintenance jobs run by the scheduler (see runtime.py).
Each run_* returns a dict with "message" and "count".
"""
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


async def run_session_sweep(sessions, now: Optional[datetime] = None):
    try:
        count = sessions.sweep_expired(now or datetime.now(timezone.utc))
        logger.info(f"Session sweep completed: {count} expired sessions removed")
        return {"message": f"Expired sessions removed: {count}", "count": count}
    except Exception as e:
        logger.error(f"Session sweep job failed: {e}")
        raise


async def run_document_expiry_sweep(documents, now: Optional[datetime] = None):
    try:
        count = await documents.expire_overdue(now)
        logger.info(f"Document expiry sweep completed: {count} documents expired")
        return {"message": f"Documents expired: {count}", "count": count}
    except Exception as e:
        logger.error(f"Document expiry sweep job failed: {e}")
        raise


async def run_store_snapshot(store, path: Union[str, Path]):
    try:
        count = await store.save_snapshot(path)
        logger.info(f"Store snapshot completed: {count} documents written")
        return {"message": f"Snapshot saved: {count} documents", "count": count}
    except Exception as e:
        logger.error(f"Store snapshot job failed: {e}")
        raise
