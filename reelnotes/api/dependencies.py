"""FastAPI dependency wiring for services and the actor context."""

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..database.connection import get_db
from ..domain.context import ActorContext
from ..domain.exceptions import UnauthenticatedError
from ..repositories.comment_repository import SqlCommentRepository
from ..repositories.project_repository import SqlProjectRepository
from ..repositories.user_repository import SqlUserRepository
from ..services.access_policy import ProjectAccessPolicy
from ..services.change_bus import ChangeBus
from ..services.collaborator_service import CollaboratorService
from ..services.comment_service import CommentService
from ..services.job_producer import JobProducer
from ..services.project_lifecycle import ProjectLifecycle
from ..services.project_service import ProjectService
from ..services.session_service import SessionService
from ..services.share_link_service import ShareLinkService
from ..services.storage_service import LocalBlobStorage


def get_change_bus(request: Request) -> ChangeBus:
    return request.app.state.change_bus


def get_job_producer(request: Request) -> JobProducer | None:
    return getattr(request.app.state, "job_producer", None)


def get_storage(request: Request) -> LocalBlobStorage:
    return request.app.state.storage


def get_session_service(session: Session = Depends(get_db)) -> SessionService:
    """Dependency injection for SessionService."""
    return SessionService(SqlUserRepository(session))


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Extract the session token from an 'Authorization: Bearer' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_actor_context(
    token: str | None = Depends(bearer_token),
    sessions: SessionService = Depends(get_session_service),
) -> ActorContext | None:
    """Resolve the caller, or None for unauthenticated requests."""
    return sessions.resolve(token)


def require_actor_context(
    ctx: ActorContext | None = Depends(get_actor_context),
) -> ActorContext:
    if ctx is None:
        raise UnauthenticatedError()
    return ctx


def get_access_policy(session: Session = Depends(get_db)) -> ProjectAccessPolicy:
    return ProjectAccessPolicy(SqlProjectRepository(session))


def get_share_link_service(session: Session = Depends(get_db)) -> ShareLinkService:
    """Dependency injection for ShareLinkService."""
    return ShareLinkService(SqlProjectRepository(session))


def get_collaborator_service(
    session: Session = Depends(get_db),
) -> CollaboratorService:
    """Dependency injection for CollaboratorService."""
    return CollaboratorService(SqlProjectRepository(session))


def get_project_lifecycle(
    session: Session = Depends(get_db),
    job_producer: JobProducer | None = Depends(get_job_producer),
    storage: LocalBlobStorage = Depends(get_storage),
) -> ProjectLifecycle:
    repository = SqlProjectRepository(session)
    return ProjectLifecycle(
        repository,
        share_links=ShareLinkService(repository),
        job_producer=job_producer,
        storage=storage,
    )


def get_project_service(
    session: Session = Depends(get_db),
    lifecycle: ProjectLifecycle = Depends(get_project_lifecycle),
) -> ProjectService:
    """Dependency injection for ProjectService."""
    return ProjectService(SqlProjectRepository(session), lifecycle=lifecycle)


def get_comment_service(session: Session = Depends(get_db)) -> CommentService:
    """Dependency injection for CommentService."""
    return CommentService(SqlCommentRepository(session), SqlProjectRepository(session))
