import logging
import uuid

from ..domain.context import ActorContext
from ..domain.exceptions import (
    InvalidArgumentError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from ..domain.models import Project, ProjectUpdate, validate_title
from ..repositories.interfaces import ProjectRepository
from .access_policy import ProjectAccessPolicy
from .project_lifecycle import ProjectLifecycle

logger = logging.getLogger(__name__)


class ProjectService:
    """Service layer for Project business operations."""

    def __init__(
        self,
        project_repository: ProjectRepository,
        lifecycle: ProjectLifecycle | None = None,
        access_policy: ProjectAccessPolicy | None = None,
    ):
        self.project_repository = project_repository
        self.access_policy = access_policy or ProjectAccessPolicy(project_repository)
        self.lifecycle = lifecycle or ProjectLifecycle(project_repository)

    def create_project(
        self, ctx: ActorContext | None, title: str, video_url: str
    ) -> Project:
        """Create a project owned by the calling user."""
        if ctx is None:
            raise UnauthenticatedError()
        # Anonymous identities cannot be matched across sessions, so they
        # could never act as owner afterwards
        if ctx.is_anonymous:
            raise PermissionDeniedError("Anonymous users cannot create projects")

        validate_title(title)
        if not isinstance(video_url, str) or not video_url.strip():
            raise InvalidArgumentError("video_url", "must not be empty")

        project = Project(
            project_id=str(uuid.uuid4()),
            title=title.strip(),
            video_url=video_url.strip(),
            owner_id=ctx.uid,
        )
        created = self.project_repository.save(project)
        logger.info(f"Created project {created.project_id} for {ctx.uid}")

        return self.lifecycle.on_created(created)

    def get_project(self, project_id: str) -> Project | None:
        """Get project by ID."""
        return self.project_repository.find_by_id(project_id)

    def get_project_for(
        self, ctx: ActorContext | None, project_id: str, share_token: str | None = None
    ) -> Project:
        """Get a project the actor is allowed to see."""
        return self.access_policy.require_participant(ctx, project_id, share_token)

    def get_by_share_link(self, token: str) -> Project:
        """Resolve a shareable link token to its project."""
        return self.lifecycle.share_links.resolve(token)

    def get_projects_by_owner(self, owner_id: str) -> list[Project]:
        """Get projects owned by a user, newest first."""
        return self.project_repository.find_by_owner(owner_id)

    def get_collaborated_projects(self, uid: str) -> list[Project]:
        """Get projects a user collaborates on, newest first."""
        return self.project_repository.find_by_collaborator(uid)

    def update_project(
        self, ctx: ActorContext | None, project_id: str, fields: ProjectUpdate
    ) -> Project:
        """Change the title and/or video URL (owner only)."""
        self.access_policy.require_owner(ctx, project_id)
        fields.validate()

        # Only the edited columns are written; roster and link stay untouched
        return self.project_repository.update_fields(
            project_id,
            title=fields.title.strip() if fields.title is not None else None,
            video_url=(
                fields.video_url.strip() if fields.video_url is not None else None
            ),
        )

    def delete_project(self, ctx: ActorContext | None, project_id: str) -> int:
        """Delete a project and its comments (owner only).

        Returns:
            Number of comments removed with the project
        """
        self.access_policy.require_owner(ctx, project_id)
        removed = self.lifecycle.on_deleted(project_id)
        logger.info(f"Project {project_id} deleted by {ctx.uid}")
        return removed
