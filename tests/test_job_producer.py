"""Test JobProducer service."""

from unittest.mock import AsyncMock, patch

import pytest

from reelnotes.services.job_producer import QUEUE_NAME, JobProducer


class TestJobProducerLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_creates_pool(self):
        producer = JobProducer(redis_url="redis://localhost:6379/0")
        mock_pool = AsyncMock()

        with patch(
            "reelnotes.services.job_producer.create_pool",
            new=AsyncMock(return_value=mock_pool),
        ):
            await producer.initialize()

        assert producer.pool is mock_pool

    @pytest.mark.asyncio
    async def test_close_closes_pool(self):
        producer = JobProducer()
        producer.pool = AsyncMock()

        await producer.close()

        producer.pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_pool(self):
        await JobProducer().close()


class TestAssetCleanupJobs:
    @pytest.mark.asyncio
    async def test_enqueue_requires_initialize(self):
        producer = JobProducer()

        with pytest.raises(RuntimeError, match="not initialized"):
            await producer.enqueue_asset_cleanup("p1")

    @pytest.mark.asyncio
    async def test_enqueue_uses_deterministic_job_id(self):
        producer = JobProducer()
        producer.pool = AsyncMock()

        job_id = await producer.enqueue_asset_cleanup("p1")

        assert job_id == "cleanup_p1"
        producer.pool.enqueue_job.assert_awaited_once_with(
            "cleanup_project_assets", "p1", _job_id="cleanup_p1", _queue_name=QUEUE_NAME
        )

    @pytest.mark.asyncio
    async def test_duplicate_enqueue_returns_same_job_id(self):
        producer = JobProducer()
        producer.pool = AsyncMock()
        producer.pool.enqueue_job.return_value = None

        assert await producer.enqueue_asset_cleanup("p1") == "cleanup_p1"

    @pytest.mark.asyncio
    async def test_unknown_job_rejected(self):
        producer = JobProducer()
        producer.pool = AsyncMock()

        with pytest.raises(ValueError, match="Unknown job"):
            await producer._enqueue("transcode", "t1")
