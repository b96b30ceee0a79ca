"""Shareable link issuance and resolution."""

import logging
import secrets
import string
from collections.abc import Callable

from ..domain.context import ActorContext
from ..domain.exceptions import (
    InternalError,
    NotFoundError,
    ShareableLinkCollisionError,
)
from ..domain.models import Project
from ..repositories.interfaces import ProjectRepository
from .access_policy import ProjectAccessPolicy

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
TOKEN_LENGTH = 16

# 62**16 keyspace; a second collision in a row means something else is wrong
MAX_ISSUE_ATTEMPTS = 5


def generate_token() -> str:
    """Draw a 16-character alphanumeric token uniformly at random."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


class ShareLinkService:
    """Issues, reissues and resolves shareable link tokens.

    The automatic path (`issue`) only assigns a token when the project has
    none and is therefore idempotent. The manual path (`regenerate`) always
    overwrites, which invalidates any previously shared link.
    """

    def __init__(
        self,
        project_repository: ProjectRepository,
        access_policy: ProjectAccessPolicy | None = None,
        token_factory: Callable[[], str] = generate_token,
    ):
        self.project_repository = project_repository
        self.access_policy = access_policy or ProjectAccessPolicy(project_repository)
        self.token_factory = token_factory

    def issue(self, project_id: str) -> str:
        """Assign a token if the project has none; return the current token."""
        project = self.access_policy.load(project_id)
        if project.has_shareable_link():
            return project.shareable_link

        token = self._assign(project_id)
        logger.info(f"Issued shareable link for project {project_id}")
        return token

    def regenerate(self, ctx: ActorContext | None, project_id: str) -> str:
        """Unconditionally replace the project's token (owner only)."""
        self.access_policy.require_owner(ctx, project_id)
        token = self._assign(project_id)
        logger.info(f"Regenerated shareable link for project {project_id}")
        return token

    def resolve(self, token: str) -> Project:
        """Map a token back to its project.

        Raises:
            NotFoundError: If no project holds the token
        """
        project = self.project_repository.find_by_shareable_link(token) if token else None
        if not project:
            raise NotFoundError("shareable link", token or "")
        return project

    def _assign(self, project_id: str) -> str:
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            token = self.token_factory()
            try:
                self.project_repository.set_shareable_link(project_id, token)
                return token
            except ShareableLinkCollisionError:
                logger.warning(
                    f"Shareable link collision for project {project_id} "
                    f"(attempt {attempt}/{MAX_ISSUE_ATTEMPTS})"
                )
        raise InternalError("Failed to generate shareable link")
