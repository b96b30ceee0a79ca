"""Access to a project through its shareable link token.

Link holders are usually anonymous sessions: they may read the project and
its timeline and post comments, but never edit or delete them.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import sessionmaker

from ..database.connection import get_session_factory
from ..domain.context import ActorContext
from ..services.change_bus import ChangeBus
from ..services.comment_service import CommentService
from ..services.comment_subscription import open_comment_subscription
from ..services.project_service import ProjectService
from ..services.share_link_service import ShareLinkService
from .comment_controller import (
    check_stream_range,
    list_for_query,
    stream_subscription,
)
from .dependencies import (
    get_actor_context,
    get_change_bus,
    get_comment_service,
    get_project_service,
    get_share_link_service,
)
from .schemas import (
    CommentCreateSchema,
    CommentResponseSchema,
    SharedProjectResponseSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shared/{token}", tags=["shared"])


@router.get("", response_model=SharedProjectResponseSchema)
async def get_shared_project(
    token: str,
    service: ProjectService = Depends(get_project_service),
) -> SharedProjectResponseSchema:
    """Resolve a shareable link to its project."""
    return SharedProjectResponseSchema.model_validate(service.get_by_share_link(token))


@router.get("/comments", response_model=list[CommentResponseSchema])
async def list_shared_comments(
    token: str,
    start: float | None = Query(None, ge=0),
    end: float | None = Query(None, ge=0),
    commenter_id: str | None = Query(None),
    share_links: ShareLinkService = Depends(get_share_link_service),
    service: CommentService = Depends(get_comment_service),
) -> list[CommentResponseSchema]:
    """List a shared project's comments in timeline order."""
    project = share_links.resolve(token)
    comments = list_for_query(service, project.project_id, start, end, commenter_id)
    return [CommentResponseSchema.from_domain(c) for c in comments]


@router.post(
    "/comments",
    response_model=CommentResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_shared_comment(
    token: str,
    data: CommentCreateSchema,
    ctx: ActorContext | None = Depends(get_actor_context),
    share_links: ShareLinkService = Depends(get_share_link_service),
    service: CommentService = Depends(get_comment_service),
    bus: ChangeBus = Depends(get_change_bus),
) -> CommentResponseSchema:
    """Post a comment as a link holder."""
    project = share_links.resolve(token)
    comment = service.create_comment(
        ctx,
        project.project_id,
        data.timestamp,
        data.text,
        annotations=[a.to_domain() for a in data.annotations or []],
        share_token=token,
    )
    await bus.publish(project.project_id)
    return CommentResponseSchema.from_domain(comment)


@router.get("/comments/stream")
async def stream_shared_comments(
    token: str,
    start: float | None = Query(None, ge=0),
    end: float | None = Query(None, ge=0),
    share_links: ShareLinkService = Depends(get_share_link_service),
    bus: ChangeBus = Depends(get_change_bus),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> StreamingResponse:
    """Live comment snapshots for a shared project as Server-Sent Events."""
    project = share_links.resolve(token)
    check_stream_range(start, end)

    subscription = open_comment_subscription(
        session_factory, bus, project.project_id, start, end
    )
    return stream_subscription(subscription)
