import logging

from fastapi import APIRouter, Depends, status

from ..domain.context import ActorContext
from ..services.session_service import SessionService
from .dependencies import (
    bearer_token,
    get_session_service,
    require_actor_context,
)
from .schemas import (
    ProfileUpdateSchema,
    SessionCreateSchema,
    SessionResponseSchema,
    UserResponseSchema,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])
users_router = APIRouter(prefix="/users", tags=["users"])


def _session_response(ctx: ActorContext) -> SessionResponseSchema:
    return SessionResponseSchema(
        token=ctx.session_token,
        uid=ctx.uid,
        display_name=ctx.display_name,
        is_anonymous=ctx.is_anonymous,
    )


@router.post(
    "", response_model=SessionResponseSchema, status_code=status.HTTP_201_CREATED
)
async def sign_in(
    data: SessionCreateSchema,
    service: SessionService = Depends(get_session_service),
) -> SessionResponseSchema:
    """Open a session for an identity verified by the identity provider."""
    ctx = service.sign_in(
        data.uid,
        email=data.email,
        display_name=data.display_name,
        photo_url=data.photo_url,
    )
    return _session_response(ctx)


@router.post(
    "/anonymous",
    response_model=SessionResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def sign_in_anonymously(
    service: SessionService = Depends(get_session_service),
) -> SessionResponseSchema:
    """Open a session for a fresh anonymous identity."""
    return _session_response(service.sign_in_anonymously())


@router.get("/current", response_model=UserResponseSchema)
async def current_user(
    ctx: ActorContext = Depends(require_actor_context),
    service: SessionService = Depends(get_session_service),
) -> UserResponseSchema:
    """Get the signed-in user's profile."""
    return UserResponseSchema.model_validate(service.get_user(ctx.uid))


@router.delete("/current", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    token: str | None = Depends(bearer_token),
    service: SessionService = Depends(get_session_service),
) -> None:
    """Release the current session."""
    service.sign_out(token)


@users_router.patch("/me", response_model=UserResponseSchema)
async def update_profile(
    data: ProfileUpdateSchema,
    ctx: ActorContext = Depends(require_actor_context),
    service: SessionService = Depends(get_session_service),
) -> UserResponseSchema:
    """Update the signed-in user's display name and/or avatar."""
    user = service.update_profile(
        ctx, display_name=data.display_name, photo_url=data.photo_url
    )
    return UserResponseSchema.model_validate(user)
