"""Service for cleanup operations."""
import logging
import threading
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from api.config import CLEANUP_INTERVAL_SECONDS, STALE_SESSION_HOURS
from api.database import SessionLocal
from api.services import persistence_service
from api.services.session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)


def abandon_stale_sessions() -> int:
    """Mark sessions left in_progress for too long as abandoned."""
    if STALE_SESSION_HOURS <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(hours=STALE_SESSION_HOURS)
    db = SessionLocal()
    try:
        abandoned = persistence_service.abandon_stale_sessions(db, cutoff)
    finally:
        db.close()
    if abandoned > 0:
        logger.info(f"Marked {abandoned} stale sessions as abandoned")
    return abandoned


def run_cleanup(store: SessionStore | None = None) -> None:
    """One housekeeping pass: expire live tests, abandon stale sessions."""
    store = store or get_session_store()
    store.evict_expired()
    try:
        abandon_stale_sessions()
    except SQLAlchemyError as e:
        logger.error(f"Failed to abandon stale sessions: {e}")


def schedule_cleanup(stop: threading.Event | None = None) -> threading.Thread:
    """Run housekeeping periodically in a daemon thread."""
    stop = stop or threading.Event()

    def _worker() -> None:
        # Initial delay before first cleanup
        if stop.wait(60):
            return
        while True:
            try:
                run_cleanup()
            except Exception:
                logger.exception("Cleanup pass failed")
            if stop.wait(CLEANUP_INTERVAL_SECONDS):
                return

    thread = threading.Thread(
        target=_worker,
        name="sessions_cleanup",
        daemon=True,
    )
    thread.start()
    return thread
