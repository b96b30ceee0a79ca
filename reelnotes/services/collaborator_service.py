"""Collaborator roster management."""

import logging

from ..domain.context import ActorContext
from ..domain.exceptions import InvalidArgumentError, UnauthenticatedError
from ..repositories.interfaces import ProjectRepository
from .access_policy import ProjectAccessPolicy

logger = logging.getLogger(__name__)

ROSTER_ACTIONS = ("add", "remove")


class CollaboratorService:
    """Owner-only mutation of a project's collaborator set.

    Each mutation reads the latest project, computes the new roster and
    overwrites the whole array. Two owners' sessions editing concurrently can
    therefore lose one of the edits (last write wins on the array).
    """

    def __init__(
        self,
        project_repository: ProjectRepository,
        access_policy: ProjectAccessPolicy | None = None,
    ):
        self.project_repository = project_repository
        self.access_policy = access_policy or ProjectAccessPolicy(project_repository)

    def add(self, ctx: ActorContext | None, project_id: str, user_id: str) -> list[str]:
        """Add a collaborator; a no-op if already present. Returns the roster."""
        return self.apply(ctx, project_id, user_id, "add")

    def remove(
        self, ctx: ActorContext | None, project_id: str, user_id: str
    ) -> list[str]:
        """Remove every occurrence of a collaborator. Returns the roster."""
        return self.apply(ctx, project_id, user_id, "remove")

    def get_roster(self, ctx: ActorContext | None, project_id: str) -> list[str]:
        """Return the roster to anyone with standing access."""
        return self.access_policy.require_participant(ctx, project_id).collaborators

    def apply(
        self, ctx: ActorContext | None, project_id: str, user_id: str, action: str
    ) -> list[str]:
        """Apply a roster action ('add' or 'remove').

        Raises:
            UnauthenticatedError: If there is no actor
            InvalidArgumentError: If an identifier or the action is invalid
            ProjectNotFoundError: If the project does not exist
            PermissionDeniedError: If the actor is not the owner
        """
        if ctx is None:
            raise UnauthenticatedError()
        if not project_id:
            raise InvalidArgumentError("project_id", "Project ID is required")
        if not user_id:
            raise InvalidArgumentError("user_id", "User ID is required")
        if action not in ROSTER_ACTIONS:
            raise InvalidArgumentError(
                "action", 'Action must be either "add" or "remove"'
            )

        project = self.access_policy.require_owner(ctx, project_id)
        collaborators = list(project.collaborators)

        if action == "add":
            if user_id not in collaborators:
                collaborators.append(user_id)
        else:
            collaborators = [uid for uid in collaborators if uid != user_id]

        if collaborators == project.collaborators:
            return collaborators

        updated = self.project_repository.set_collaborators(project_id, collaborators)
        logger.info(f"Roster {action} of {user_id} on project {project_id}")
        return updated.collaborators
