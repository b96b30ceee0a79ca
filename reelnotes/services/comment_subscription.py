"""Live comment subscriptions.

A subscription is a cancelable handle that yields full, ordered comment
snapshots: the current one immediately, then one per change within its
scope. Use it as an async context manager so it is closed on every exit path:

    async with open_comment_subscription(factory, bus, project_id) as sub:
        async for comments in sub:
            ...
"""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import sessionmaker

from ..domain.exceptions import ProjectNotFoundError
from ..domain.models import Comment
from ..repositories.comment_repository import SqlCommentRepository
from ..repositories.project_repository import SqlProjectRepository
from .change_bus import ChangeBus, ChangeListener
from .comment_service import CommentService

logger = logging.getLogger(__name__)

SnapshotLoader = Callable[[], list[Comment]]


def _fingerprint(comments: list[Comment]) -> tuple:
    return tuple(
        (
            c.comment_id,
            c.timestamp,
            c.text,
            tuple(repr(a.to_dict()) for a in c.annotations),
        )
        for c in comments
    )


class CommentSubscription:
    """Async iterator of comment snapshots for one project (or time range)."""

    def __init__(self, bus: ChangeBus, project_id: str, loader: SnapshotLoader):
        self.bus = bus
        self.project_id = project_id
        self.loader = loader
        self._listener: ChangeListener | None = None
        self._last: tuple | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "CommentSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __aiter__(self) -> "CommentSubscription":
        return self

    async def __anext__(self) -> list[Comment]:
        if self._closed:
            raise StopAsyncIteration

        if self._listener is None:
            # Listen before the first read so no change slips in between
            self._listener = await self.bus.listen(self.project_id)
            snapshot = await self._load()
            return self._deliver(snapshot)

        while True:
            changed = await self._listener.wait()
            if not changed or self._closed:
                raise StopAsyncIteration

            try:
                snapshot = await self._load()
            except ProjectNotFoundError:
                logger.info(f"Project {self.project_id} deleted; ending subscription")
                await self.close()
                raise StopAsyncIteration from None

            # A close() that raced the reload wins: nothing more is delivered
            if self._closed:
                raise StopAsyncIteration
            if _fingerprint(snapshot) != self._last:
                return self._deliver(snapshot)

    async def close(self) -> None:
        """Cancel the subscription. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._listener is not None:
            await self._listener.close()
        logger.debug(f"Comment subscription for project {self.project_id} closed")

    async def _load(self) -> list[Comment]:
        return await asyncio.to_thread(self.loader)

    def _deliver(self, snapshot: list[Comment]) -> list[Comment]:
        self._last = _fingerprint(snapshot)
        return snapshot


def make_snapshot_loader(
    session_factory: sessionmaker,
    project_id: str,
    start: float | None = None,
    end: float | None = None,
) -> SnapshotLoader:
    """Build a loader that reads a fresh snapshot in its own session."""

    def load() -> list[Comment]:
        session = session_factory()
        try:
            service = CommentService(
                SqlCommentRepository(session), SqlProjectRepository(session)
            )
            if start is None or end is None:
                return service.list_comments(project_id)
            return service.list_comments_in_range(project_id, start, end)
        finally:
            session.close()

    return load


def open_comment_subscription(
    session_factory: sessionmaker,
    bus: ChangeBus,
    project_id: str,
    start: float | None = None,
    end: float | None = None,
) -> CommentSubscription:
    """Subscribe to a project's timeline, optionally limited to [start, end]."""
    loader = make_snapshot_loader(session_factory, project_id, start, end)
    return CommentSubscription(bus, project_id, loader)
