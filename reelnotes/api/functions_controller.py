"""Remote callable procedures.

These run in the trusted server context and keep the request and response
shapes of the client-facing callables: generate-shareable-link,
check-access and update-collaborators.
"""

import logging

from fastapi import APIRouter, Depends

from ..domain.context import ActorContext
from ..domain.exceptions import InvalidArgumentError, UnauthenticatedError
from ..services.access_policy import ProjectAccessPolicy
from ..services.collaborator_service import CollaboratorService
from ..services.share_link_service import ShareLinkService
from .dependencies import (
    get_access_policy,
    get_actor_context,
    get_collaborator_service,
    get_share_link_service,
)
from .schemas import (
    CheckAccessRequest,
    CheckAccessResponse,
    GenerateShareableLinkRequest,
    GenerateShareableLinkResponse,
    UpdateCollaboratorsRequest,
    UpdateCollaboratorsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["functions"])


@router.post("/generate-shareable-link", response_model=GenerateShareableLinkResponse)
async def generate_shareable_link(
    data: GenerateShareableLinkRequest,
    ctx: ActorContext | None = Depends(get_actor_context),
    share_links: ShareLinkService = Depends(get_share_link_service),
) -> GenerateShareableLinkResponse:
    """Replace a project's shareable link with a fresh token.

    Owner only: a signed-in caller who does not own the project gets
    permission-denied, even though any signed-in user may call this endpoint.
    """
    if ctx is None:
        raise UnauthenticatedError()
    if not data.projectId:
        raise InvalidArgumentError("projectId", "Project ID is required")

    token = share_links.regenerate(ctx, data.projectId)
    return GenerateShareableLinkResponse(success=True, shareableLink=token)


@router.post("/check-access", response_model=CheckAccessResponse)
async def check_access(
    data: CheckAccessRequest,
    access: ProjectAccessPolicy = Depends(get_access_policy),
) -> CheckAccessResponse:
    """Classify a user against a project. Public."""
    if not data.projectId:
        raise InvalidArgumentError("projectId", "Project ID is required")

    role = access.check_access(data.projectId, data.userId)
    return CheckAccessResponse(hasAccess=role.has_access, role=role.value)


@router.post("/update-collaborators", response_model=UpdateCollaboratorsResponse)
async def update_collaborators(
    data: UpdateCollaboratorsRequest,
    ctx: ActorContext | None = Depends(get_actor_context),
    service: CollaboratorService = Depends(get_collaborator_service),
) -> UpdateCollaboratorsResponse:
    """Add or remove a collaborator (owner only)."""
    if ctx is None:
        raise UnauthenticatedError()
    if not data.projectId or not data.userId or not data.action:
        raise InvalidArgumentError(
            "request", "Project ID, user ID, and action are required"
        )

    collaborators = service.apply(ctx, data.projectId, data.userId, data.action)
    return UpdateCollaboratorsResponse(
        success=True,
        action=data.action,
        userId=data.userId,
        collaborators=collaborators,
    )
