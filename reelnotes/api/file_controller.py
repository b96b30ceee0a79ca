"""Video and thumbnail uploads, listings and downloads."""

import logging
import mimetypes

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import FileResponse

from ..domain.context import ActorContext
from ..services.access_policy import ProjectAccessPolicy
from ..services.storage_service import THUMBNAILS, VIDEOS, LocalBlobStorage
from .dependencies import get_access_policy, get_actor_context, get_storage
from .schemas import StoredFileResponseSchema

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])

CACHE_MAX_AGE = 3600  # 1 hour in seconds


@router.put(
    "/projects/{project_id}/videos/{file_name}",
    response_model=StoredFileResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def upload_video(
    project_id: str,
    file_name: str,
    request: Request,
    content_length: int | None = Header(default=None),
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> StoredFileResponseSchema:
    """Upload a project video as the raw request body (owner only)."""
    access.require_owner(ctx, project_id)

    def log_progress(percent: float) -> None:
        logger.debug(f"Upload of {file_name} for project {project_id}: {percent:.0f}%")

    url = await storage.upload_video(
        project_id,
        request.stream(),
        file_name,
        total_size=content_length,
        on_progress=log_progress,
    )
    metadata = storage.get_video_metadata(project_id, file_name)
    return StoredFileResponseSchema(**metadata, url=url)


@router.get("/projects/{project_id}/videos", response_model=list[str])
async def list_videos(
    project_id: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> list[str]:
    """List download URLs of a project's videos."""
    access.require_participant(ctx, project_id)
    return storage.list_project_videos(project_id)


@router.get(
    "/projects/{project_id}/videos/{file_name}",
    response_model=StoredFileResponseSchema,
)
async def get_video_metadata(
    project_id: str,
    file_name: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> StoredFileResponseSchema:
    """Describe a stored video."""
    access.require_participant(ctx, project_id)
    metadata = storage.get_video_metadata(project_id, file_name)
    return StoredFileResponseSchema(
        **metadata, url=storage.get_video_url(project_id, file_name)
    )


@router.delete(
    "/projects/{project_id}/videos/{file_name}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_video(
    project_id: str,
    file_name: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> None:
    """Delete a stored video (owner only)."""
    access.require_owner(ctx, project_id)
    storage.delete_video(project_id, file_name)


@router.put(
    "/projects/{project_id}/thumbnails/{file_name}",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
)
async def upload_thumbnail(
    project_id: str,
    file_name: str,
    request: Request,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> dict:
    """Upload a project thumbnail as the raw request body (owner only)."""
    access.require_owner(ctx, project_id)
    url = await storage.upload_thumbnail(project_id, request.stream(), file_name)
    return {"url": url}


@router.get("/projects/{project_id}/thumbnails/{file_name}", response_model=dict)
async def get_thumbnail_url(
    project_id: str,
    file_name: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    access: ProjectAccessPolicy = Depends(get_access_policy),
    storage: LocalBlobStorage = Depends(get_storage),
) -> dict:
    """Resolve the download URL of a stored thumbnail."""
    access.require_participant(ctx, project_id)
    return {"url": storage.get_thumbnail_url(project_id, file_name)}


@router.get("/files/{kind}/{project_id}/{file_name}")
async def download_file(
    kind: str,
    project_id: str,
    file_name: str,
    storage: LocalBlobStorage = Depends(get_storage),
) -> FileResponse:
    """Serve a stored blob. Download URLs are public."""
    path = storage.resolve_path(kind, project_id, file_name)
    media_type, _ = mimetypes.guess_type(path.name)
    if media_type is None:
        media_type = "video/mp4" if kind == VIDEOS else "image/jpeg"

    headers = {"Accept-Ranges": "bytes"} if kind == VIDEOS else {}
    if kind == THUMBNAILS:
        headers["Cache-Control"] = f"public, max-age={CACHE_MAX_AGE}"
    return FileResponse(path, media_type=media_type, headers=headers)
