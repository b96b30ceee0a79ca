"""Application settings read from the environment."""

import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/reelnotes.db")

# With Redis enabled, comment change notifications fan out over pub/sub and
# blob cleanup runs on the arq worker; otherwise both stay in-process.
REDIS_ENABLED = os.getenv("REDIS_ENABLED", "false").lower() == "true"

STORAGE_ROOT = os.getenv("STORAGE_ROOT", "./data/blobs")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000/v1/files")

RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "true").lower() == "true"


def get_database_url() -> str:
    """Get the SQLAlchemy database URL."""
    return DATABASE_URL


def get_storage_root() -> str:
    """Get the directory blobs are stored under."""
    return STORAGE_ROOT


def get_public_base_url() -> str:
    """Get the base URL download links are built from."""
    return PUBLIC_BASE_URL.rstrip("/")
