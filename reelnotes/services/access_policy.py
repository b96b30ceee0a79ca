"""Project access policy.

Every decision re-reads the project from the repository; roles are never
cached between requests, so a roster change takes effect on the next call.
"""

import logging

from ..domain.context import ActorContext
from ..domain.exceptions import (
    PermissionDeniedError,
    ProjectNotFoundError,
    UnauthenticatedError,
)
from ..domain.models import AccessRole, Project
from ..repositories.interfaces import ProjectRepository

logger = logging.getLogger(__name__)


class ProjectAccessPolicy:
    """Decides what an actor may do with a project."""

    def __init__(self, project_repository: ProjectRepository):
        self.project_repository = project_repository

    def classify(self, uid: str | None, project: Project) -> AccessRole:
        """Classify an identity as exactly one of owner, collaborator or none."""
        return project.role_for(uid)

    def check_access(self, project_id: str, uid: str | None) -> AccessRole:
        """Load a project and classify an identity against it.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        return self.classify(uid, self.load(project_id))

    def load(self, project_id: str) -> Project:
        """Read the latest project snapshot."""
        project = self.project_repository.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    def require_owner(self, ctx: ActorContext | None, project_id: str) -> Project:
        """Return the project if the actor owns it.

        Raises:
            UnauthenticatedError: If there is no actor
            ProjectNotFoundError: If the project does not exist
            PermissionDeniedError: If the actor is not the owner
        """
        if ctx is None:
            raise UnauthenticatedError()

        project = self.load(project_id)
        if self.classify(ctx.uid, project) is not AccessRole.OWNER:
            logger.warning(
                f"Owner-only operation on project {project_id} denied for {ctx.uid}"
            )
            raise PermissionDeniedError("Only project owners can perform this action")
        return project

    def require_participant(
        self,
        ctx: ActorContext | None,
        project_id: str,
        share_token: str | None = None,
    ) -> Project:
        """Return the project if the actor may read it and post comments.

        Owners and collaborators qualify by role. Anyone presenting the
        project's current shareable link token qualifies as a link holder.
        """
        project = self.load(project_id)

        if share_token and project.shareable_link == share_token:
            return project

        if ctx is None:
            raise UnauthenticatedError()

        if not self.classify(ctx.uid, project).has_access:
            logger.warning(f"Access to project {project_id} denied for {ctx.uid}")
            raise PermissionDeniedError("You do not have access to this project")
        return project
