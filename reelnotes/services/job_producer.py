"""Job producer for enqueueing background jobs to Redis via arq."""

import logging

from arq import create_pool

from ..config.redis_config import get_redis_settings, get_redis_url

logger = logging.getLogger(__name__)

QUEUE_NAME = "reelnotes"


class JobProducer:
    """Produces background jobs consumed by the arq worker.

    Jobs are enqueued with a deterministic job id, so enqueueing the same
    cleanup twice while the first is still queued is a no-op.
    """

    SUPPORTED_JOBS = {"cleanup_project_assets"}

    def __init__(self, redis_url: str | None = None):
        """Initialize JobProducer.

        Args:
            redis_url: Redis connection URL (default: from redis_config.py)
        """
        self.redis_url = redis_url or get_redis_url()
        self.pool = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool."""
        self.pool = await create_pool(get_redis_settings())
        logger.info(f"JobProducer initialized with Redis: {self.redis_url}")

    async def close(self) -> None:
        """Close Redis connection pool."""
        if self.pool:
            await self.pool.close()
            logger.info("JobProducer connection closed")

    async def enqueue_asset_cleanup(self, project_id: str) -> str:
        """Enqueue deletion of a project's videos and thumbnails.

        Returns:
            The arq job id

        Raises:
            RuntimeError: If the pool has not been initialized
        """
        return await self._enqueue(
            "cleanup_project_assets", f"cleanup_{project_id}", project_id
        )

    async def _enqueue(self, function: str, job_id: str, *args) -> str:
        if function not in self.SUPPORTED_JOBS:
            raise ValueError(f"Unknown job: {function}")
        if not self.pool:
            raise RuntimeError("JobProducer not initialized. Call initialize() first.")

        job = await self.pool.enqueue_job(
            function, *args, _job_id=job_id, _queue_name=QUEUE_NAME
        )
        if job is None:
            logger.info(f"Job {job_id} already queued")
        else:
            logger.info(f"Enqueued {function} job {job_id}")
        return job_id
