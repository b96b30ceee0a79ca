import logging
import os

from alembic import command
from alembic.config import Config

from ..config.settings import get_database_url

logger = logging.getLogger(__name__)


def run_migrations():
    """Run database migrations on startup."""
    logger.info("Starting database migrations...")

    try:
        database_url = get_database_url()

        # Ensure data directory exists for SQLite only
        if database_url.startswith("sqlite"):
            db_path = database_url.replace("sqlite:///", "")
            db_dir = os.path.dirname(db_path)
            if db_dir and db_dir != ".":
                os.makedirs(db_dir, exist_ok=True)

        alembic_cfg = Config("alembic.ini")
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)

        db_type = "PostgreSQL" if database_url.startswith("postgresql") else "SQLite"
        logger.info(f"Running alembic migrations ({db_type})...")
        command.upgrade(alembic_cfg, "head")

        logger.info("Database migrations completed successfully")

    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise
