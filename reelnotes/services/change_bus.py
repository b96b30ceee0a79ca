"""Change notifications for comment timelines.

A notification carries only the project id; listeners reload the snapshot
they care about. The in-memory bus serves a single process, the Redis bus
fans out across API workers through pub/sub.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "reelnotes:comments:"

# How long a Redis listener blocks per poll before re-checking for close()
REDIS_POLL_TIMEOUT = 1.0


def channel_for(project_id: str) -> str:
    """Get the pub/sub channel name for a project."""
    return f"{CHANNEL_PREFIX}{project_id}"


class ChangeListener(ABC):
    """Receives change notifications for one project."""

    @abstractmethod
    async def wait(self) -> bool:
        """Wait for the next change.

        Returns:
            True when a change arrived, False once the listener is closed
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop listening; pending and future wait() calls return False."""
        pass


class ChangeBus(ABC):
    """Publishes and subscribes to per-project change notifications."""

    @abstractmethod
    async def publish(self, project_id: str) -> None:
        """Announce that a project's comments changed."""
        pass

    @abstractmethod
    async def listen(self, project_id: str) -> ChangeListener:
        """Start listening for a project's changes."""
        pass

    async def close(self) -> None:
        """Release bus resources."""
        pass


class _QueueListener(ChangeListener):
    _CLOSED = object()

    def __init__(self, bus: "InMemoryChangeBus", project_id: str):
        self.bus = bus
        self.project_id = project_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def wait(self) -> bool:
        if self.closed:
            return False
        item = await self.queue.get()
        return item is not self._CLOSED and not self.closed

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.bus._detach(self)
        self.queue.put_nowait(self._CLOSED)


class InMemoryChangeBus(ChangeBus):
    """Process-local change bus built on asyncio queues."""

    def __init__(self):
        self._listeners: dict[str, set[_QueueListener]] = {}

    async def publish(self, project_id: str) -> None:
        for listener in list(self._listeners.get(project_id, ())):
            listener.queue.put_nowait(project_id)

    async def listen(self, project_id: str) -> ChangeListener:
        listener = _QueueListener(self, project_id)
        self._listeners.setdefault(project_id, set()).add(listener)
        return listener

    def listener_count(self, project_id: str) -> int:
        """Number of open listeners for a project."""
        return len(self._listeners.get(project_id, ()))

    def _detach(self, listener: _QueueListener) -> None:
        listeners = self._listeners.get(listener.project_id)
        if listeners is None:
            return
        listeners.discard(listener)
        if not listeners:
            del self._listeners[listener.project_id]


class _RedisListener(ChangeListener):
    def __init__(self, pubsub, channel: str, poll_timeout: float):
        self.pubsub = pubsub
        self.channel = channel
        self.poll_timeout = poll_timeout
        self.closed = False

    async def wait(self) -> bool:
        while not self.closed:
            message = await self.pubsub.get_message(
                ignore_subscribe_messages=True, timeout=self.poll_timeout
            )
            if message is not None and message.get("type") == "message":
                return not self.closed
        return False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self.pubsub.unsubscribe(self.channel)
        finally:
            await self.pubsub.aclose()


class RedisChangeBus(ChangeBus):
    """Change bus over Redis pub/sub."""

    def __init__(self, redis_url: str, poll_timeout: float = REDIS_POLL_TIMEOUT):
        self.redis_url = redis_url
        self.poll_timeout = poll_timeout
        self.redis_client = None

    async def connect(self) -> None:
        """Establish Redis connection."""
        self.redis_client = redis.from_url(self.redis_url)
        logger.info(f"RedisChangeBus connected to {self.redis_url}")

    async def close(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("RedisChangeBus connection closed")

    async def publish(self, project_id: str) -> None:
        self._require_client()
        await self.redis_client.publish(channel_for(project_id), project_id)

    async def listen(self, project_id: str) -> ChangeListener:
        self._require_client()
        pubsub = self.redis_client.pubsub()
        channel = channel_for(project_id)
        await pubsub.subscribe(channel)
        return _RedisListener(pubsub, channel, self.poll_timeout)

    def _require_client(self) -> None:
        if not self.redis_client:
            raise RuntimeError("Redis client not connected. Call connect() first.")
