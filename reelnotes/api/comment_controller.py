import json
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import sessionmaker

from ..database.connection import get_session_factory
from ..domain.context import ActorContext
from ..domain.exceptions import InvalidArgumentError
from ..domain.models import Comment, CommentUpdate, validate_timestamp
from ..services.access_policy import ProjectAccessPolicy
from ..services.change_bus import ChangeBus
from ..services.comment_service import CommentService
from ..services.comment_subscription import (
    CommentSubscription,
    open_comment_subscription,
)
from .dependencies import (
    get_access_policy,
    get_actor_context,
    get_change_bus,
    get_comment_service,
)
from .schemas import (
    AnnotationSchema,
    CommentCreateSchema,
    CommentResponseSchema,
    CommentUpdateSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects/{project_id}/comments", tags=["comments"])


def list_for_query(
    service: CommentService,
    project_id: str,
    start: float | None,
    end: float | None,
    commenter_id: str | None,
) -> list[Comment]:
    """Dispatch a listing to the right timeline query."""
    if (start is None) != (end is None):
        raise InvalidArgumentError("start", "start and end must be given together")
    if commenter_id is not None:
        comments = service.list_comments_by_user(project_id, commenter_id)
        if start is not None:
            comments = [c for c in comments if c.in_range(start, end)]
        return comments
    if start is not None:
        return service.list_comments_in_range(project_id, start, end)
    return service.list_comments(project_id)


def check_stream_range(start: float | None, end: float | None) -> None:
    """Validate stream bounds before any response is sent."""
    if (start is None) != (end is None):
        raise InvalidArgumentError("start", "start and end must be given together")
    if start is None:
        return
    validate_timestamp(start)
    validate_timestamp(end)
    if start > end:
        raise InvalidArgumentError("start", "must not be greater than end")


def snapshot_event(comments: list[Comment]) -> str:
    """Encode a snapshot as one Server-Sent Events message."""
    payload = [
        CommentResponseSchema.from_domain(c).model_dump(mode="json", by_alias=True)
        for c in comments
    ]
    return f"event: snapshot\ndata: {json.dumps(payload)}\n\n"


def stream_subscription(subscription: CommentSubscription) -> StreamingResponse:
    """Serve a subscription as an SSE stream; it is closed when the client leaves."""

    async def events():
        async with subscription:
            async for comments in subscription:
                yield snapshot_event(comments)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("", response_model=list[CommentResponseSchema])
async def list_comments(
    project_id: str,
    start: float | None = Query(None, ge=0, description="Range start in seconds"),
    end: float | None = Query(None, ge=0, description="Range end in seconds"),
    commenter_id: str | None = Query(None, description="Only this commenter"),
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    service: CommentService = Depends(get_comment_service),
) -> list[CommentResponseSchema]:
    """List comments ordered by timestamp; optionally by range and/or commenter."""
    access.require_participant(ctx, project_id)
    comments = list_for_query(service, project_id, start, end, commenter_id)
    return [CommentResponseSchema.from_domain(c) for c in comments]


@router.post(
    "", response_model=CommentResponseSchema, status_code=status.HTTP_201_CREATED
)
async def create_comment(
    project_id: str,
    data: CommentCreateSchema,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> CommentResponseSchema:
    """Post a comment at a playback timestamp."""
    comment = service.create_comment(
        ctx,
        project_id,
        data.timestamp,
        data.text,
        annotations=[a.to_domain() for a in data.annotations or []],
    )
    await bus.publish(project_id)
    return CommentResponseSchema.from_domain(comment)


@router.get("/stream")
async def stream_comments(
    project_id: str,
    start: float | None = Query(None, ge=0),
    end: float | None = Query(None, ge=0),
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    bus: ChangeBus = Depends(get_change_bus),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> StreamingResponse:
    """Live comment snapshots as Server-Sent Events.

    The first event is the current snapshot; each later event is the full
    ordered list after a change within [start, end] (or the whole timeline).
    """
    access.require_participant(ctx, project_id)
    check_stream_range(start, end)

    subscription = open_comment_subscription(
        session_factory, bus, project_id, start, end
    )
    return stream_subscription(subscription)


@router.get("/{comment_id}", response_model=CommentResponseSchema)
async def get_comment(
    project_id: str,
    comment_id: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    service: CommentService = Depends(get_comment_service),
) -> CommentResponseSchema:
    """Get a single comment."""
    access.require_participant(ctx, project_id)
    return CommentResponseSchema.from_domain(
        service.get_comment(project_id, comment_id)
    )


@router.patch("/{comment_id}", response_model=CommentResponseSchema)
async def update_comment(
    project_id: str,
    comment_id: str,
    data: CommentUpdateSchema,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> CommentResponseSchema:
    """Partially update a comment (original, non-anonymous commenter only)."""
    fields = CommentUpdate(
        text=data.text,
        timestamp=data.timestamp,
        annotations=(
            [a.to_domain() for a in data.annotations]
            if data.annotations is not None
            else None
        ),
    )
    comment = service.update_comment(ctx, project_id, comment_id, fields)
    await bus.publish(project_id)
    return CommentResponseSchema.from_domain(comment)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    project_id: str,
    comment_id: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> None:
    """Delete a comment (original, non-anonymous commenter only)."""
    service.delete_comment(ctx, project_id, comment_id)
    await bus.publish(project_id)


@router.post(
    "/{comment_id}/annotations",
    response_model=list[AnnotationSchema],
    status_code=status.HTTP_201_CREATED,
)
async def add_annotation(
    project_id: str,
    comment_id: str,
    data: AnnotationSchema,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> list[AnnotationSchema]:
    """Append an annotation; returns the comment's full annotation list."""
    annotations = service.add_annotation(
        ctx, project_id, comment_id, data.to_domain()
    )
    await bus.publish(project_id)
    return [AnnotationSchema.from_domain(a) for a in annotations]


@router.delete(
    "/{comment_id}/annotations/{index}", response_model=list[AnnotationSchema]
)
async def remove_annotation(
    project_id: str,
    comment_id: str,
    index: int,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> list[AnnotationSchema]:
    """Remove the annotation at a position; an out-of-range index changes nothing."""
    annotations = service.remove_annotation(ctx, project_id, comment_id, index)
    await bus.publish(project_id)
    return [AnnotationSchema.from_domain(a) for a in annotations]
