"""arq worker configuration.

The worker consumes background jobs from the 'reelnotes' queue. Its only job
today removes the blobs of a deleted project:

    arq reelnotes.workers.arq_worker.WorkerSettings
"""

import logging
import os

from ..config.redis_config import REDIS_SETTINGS
from ..config.settings import get_public_base_url, get_storage_root
from ..services.job_producer import QUEUE_NAME
from ..services.storage_service import LocalBlobStorage

logger = logging.getLogger(__name__)


async def startup(ctx) -> None:
    """Attach the blob store to the worker context."""
    ctx["storage"] = LocalBlobStorage(get_storage_root(), get_public_base_url())
    logger.info(f"Worker storage root: {get_storage_root()}")


async def cleanup_project_assets(ctx, project_id: str) -> dict:
    """Delete every video and thumbnail stored for a deleted project.

    Args:
        ctx: arq context holding the blob store
        project_id: The deleted project

    Returns:
        Dictionary with the number of removed files
    """
    storage: LocalBlobStorage = ctx["storage"]
    removed = storage.delete_project_assets(project_id)
    logger.info(f"Removed {removed} blobs for deleted project {project_id}")
    return {"project_id": project_id, "removed": removed}


class WorkerSettings:
    """arq worker configuration."""

    functions = [cleanup_project_assets]
    on_startup = startup

    queue_name = QUEUE_NAME

    redis_settings = REDIS_SETTINGS

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", 4))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", 300))
    max_tries = 3
