import logging

from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError

from annapurna.db.session import SessionLocal
from annapurna.services.email_service import process_pending_emails

logger = logging.getLogger(__name__)


def process_email_queue(limit: int = 50, session_factory=SessionLocal) -> dict:
    """Retry queued/failed notification emails. Run periodically via Celery beat."""
    db: Session = session_factory()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("email_logs table missing; skipping email retry")
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
