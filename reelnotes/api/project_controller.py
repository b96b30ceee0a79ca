import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from ..domain.context import ActorContext
from ..domain.models import ProjectUpdate
from ..services.change_bus import ChangeBus
from ..services.project_lifecycle import ProjectLifecycle
from ..services.project_service import ProjectService
from .dependencies import (
    get_actor_context,
    get_change_bus,
    get_project_lifecycle,
    get_project_service,
    require_actor_context,
)
from .schemas import ProjectCreateSchema, ProjectResponseSchema, ProjectUpdateSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post(
    "", response_model=ProjectResponseSchema, status_code=status.HTTP_201_CREATED
)
async def create_project(
    data: ProjectCreateSchema,
    ctx: ActorContext = Depends(require_actor_context),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponseSchema:
    """Create a project owned by the caller; a shareable link is issued."""
    project = service.create_project(ctx, data.title, data.video_url)
    return ProjectResponseSchema.from_domain(project)


@router.get("", response_model=list[ProjectResponseSchema])
async def list_projects(
    scope: Literal["owned", "collaborated"] = Query("owned"),
    ctx: ActorContext = Depends(require_actor_context),
    service: ProjectService = Depends(get_project_service),
) -> list[ProjectResponseSchema]:
    """List the caller's own projects or the ones they collaborate on."""
    if scope == "collaborated":
        projects = service.get_collaborated_projects(ctx.uid)
    else:
        projects = service.get_projects_by_owner(ctx.uid)
    return [ProjectResponseSchema.from_domain(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponseSchema)
async def get_project(
    project_id: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponseSchema:
    """Get a project the caller owns or collaborates on."""
    return ProjectResponseSchema.from_domain(service.get_project_for(ctx, project_id))


@router.patch("/{project_id}", response_model=ProjectResponseSchema)
async def update_project(
    project_id: str,
    data: ProjectUpdateSchema,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponseSchema:
    """Change a project's title or video URL (owner only)."""
    project = service.update_project(
        ctx, project_id, ProjectUpdate(title=data.title, video_url=data.video_url)
    )
    return ProjectResponseSchema.from_domain(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: ProjectService = Depends(get_project_service),
    lifecycle: ProjectLifecycle = Depends(get_project_lifecycle),
    bus: ChangeBus = Depends(get_change_bus),
) -> None:
    """Delete a project together with all of its comments (owner only)."""
    service.delete_project(ctx, project_id)
    await bus.publish(project_id)
    await lifecycle.schedule_asset_cleanup(project_id)
