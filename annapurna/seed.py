import uuid
import logging

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from annapurna.db.session import SessionLocal
from annapurna.core.config import settings
from annapurna.core.security import hash_password
from annapurna.models.user import User

logger = logging.getLogger(__name__)


def ensure_user(db: Session, email: str, password: str, role: str, name: str) -> bool:
    u = db.query(User).filter(User.email == email.lower()).first()
    if u:
        return False
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email.lower(),
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()
    return True


def run(db=None):
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet; skipping seed (run alembic upgrade head)")
            return

        if ensure_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, "admin", "Admin"):
            logger.info("Seeded admin user %s", settings.ADMIN_EMAIL)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    from annapurna.core.logging import configure_logging
    configure_logging()
    run()
