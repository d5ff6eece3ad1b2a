#!/usr/bin/env python3
"""
Container entrypoint: wait for Postgres, apply migrations, seed the admin
account, then hand the process over to uvicorn.

Set SKIP_MIGRATIONS=1 when migrations are run as a separate release step.
"""
import logging
import os
import sys

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from annapurna.core.config import settings
from annapurna.core.logging import configure_logging

logger = logging.getLogger("start_api")

ROOT = os.path.dirname(os.path.abspath(__file__))


def migrate() -> None:
    cfg = Config(os.path.join(ROOT, "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")
    logger.info("Migrations applied")


def seed() -> None:
    # fresh engine: the app engine may have been created before the tables existed
    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        from annapurna.seed import run as run_seed
        run_seed(session)
    finally:
        session.close()
        engine.dispose()


def main() -> None:
    configure_logging()
    import wait_for_db  # noqa: F401  blocks until Postgres answers

    if os.getenv("SKIP_MIGRATIONS", "").lower() not in ("1", "true", "yes"):
        migrate()
    seed()

    port = os.getenv("PORT", "8000")
    logger.info("Starting uvicorn on port %s", port)
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "annapurna.main:app", "--host", "0.0.0.0", "--port", port],
    )


if __name__ == "__main__":
    main()
