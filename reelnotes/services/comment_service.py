"""Comment timeline and annotation overlay operations."""

import logging
import uuid

from ..domain.context import ActorContext
from ..domain.exceptions import (
    CommentNotFoundError,
    InvalidArgumentError,
    PermissionDeniedError,
    UnauthenticatedError,
)
from ..domain.models import (
    Annotation,
    Comment,
    CommentUpdate,
    validate_comment_text,
    validate_timestamp,
)
from ..repositories.interfaces import CommentRepository, ProjectRepository
from .access_policy import ProjectAccessPolicy

logger = logging.getLogger(__name__)


class CommentService:
    """Service layer for comments anchored to playback timestamps.

    Listings are always ordered by timestamp ascending with ties broken by
    insertion order, and never fail on an empty result. Edits, deletions and
    annotation changes are reserved to the original commenter, and never
    granted to anonymous commenters.
    """

    def __init__(
        self,
        comment_repository: CommentRepository,
        project_repository: ProjectRepository,
        access_policy: ProjectAccessPolicy | None = None,
    ):
        self.comment_repository = comment_repository
        self.project_repository = project_repository
        self.access_policy = access_policy or ProjectAccessPolicy(project_repository)

    def create_comment(
        self,
        ctx: ActorContext | None,
        project_id: str,
        timestamp: float,
        text: str,
        annotations: list[Annotation] | None = None,
        share_token: str | None = None,
    ) -> Comment:
        """Post a comment as the calling actor.

        Owners and collaborators may post; so may anyone holding the
        project's current shareable link token (typically anonymous).
        """
        if ctx is None:
            raise UnauthenticatedError()
        validate_timestamp(timestamp)
        validate_comment_text(text)
        self.access_policy.require_participant(ctx, project_id, share_token)

        comment = Comment(
            comment_id=str(uuid.uuid4()),
            project_id=project_id,
            commenter_id=ctx.uid,
            timestamp=float(timestamp),
            text=text.strip(),
            annotations=annotations,
        )
        created = self.comment_repository.create(comment)
        logger.info(
            f"Comment {created.comment_id} posted on project {project_id} "
            f"at {created.timestamp}s by {ctx.uid}"
        )
        return created

    def get_comment(self, project_id: str, comment_id: str) -> Comment:
        """Get a comment by ID."""
        self.access_policy.load(project_id)
        comment = self.comment_repository.find_by_id(project_id, comment_id)
        if not comment:
            raise CommentNotFoundError(comment_id)
        return comment

    def list_comments(self, project_id: str) -> list[Comment]:
        """Get all comments for a project in timeline order."""
        self.access_policy.load(project_id)
        return self.comment_repository.find_by_project(project_id)

    def list_comments_in_range(
        self, project_id: str, start: float, end: float
    ) -> list[Comment]:
        """Get comments with start <= timestamp <= end, in timeline order."""
        validate_timestamp(start)
        validate_timestamp(end)
        if start > end:
            raise InvalidArgumentError("start", "must not be greater than end")
        self.access_policy.load(project_id)
        return self.comment_repository.find_by_project(project_id, start=start, end=end)

    def list_comments_by_user(self, project_id: str, commenter_id: str) -> list[Comment]:
        """Get one commenter's comments, in timeline order."""
        if not commenter_id:
            raise InvalidArgumentError("commenter_id", "must not be empty")
        self.access_policy.load(project_id)
        return self.comment_repository.find_by_project(
            project_id, commenter_id=commenter_id
        )

    def update_comment(
        self,
        ctx: ActorContext | None,
        project_id: str,
        comment_id: str,
        fields: CommentUpdate,
    ) -> Comment:
        """Apply a sparse update to a comment."""
        self._require_author(ctx, project_id, comment_id)
        fields.validate()

        updated = self.comment_repository.update_fields(
            project_id,
            comment_id,
            text=fields.text.strip() if fields.text is not None else None,
            timestamp=float(fields.timestamp) if fields.timestamp is not None else None,
            annotations=fields.annotations,
        )
        if not updated:
            raise CommentNotFoundError(comment_id)
        logger.info(f"Comment {comment_id} on project {project_id} updated")
        return updated

    def delete_comment(
        self, ctx: ActorContext | None, project_id: str, comment_id: str
    ) -> None:
        """Delete a comment."""
        self._require_author(ctx, project_id, comment_id)
        if not self.comment_repository.delete(project_id, comment_id):
            raise CommentNotFoundError(comment_id)
        logger.info(f"Comment {comment_id} on project {project_id} deleted")

    def add_annotation(
        self,
        ctx: ActorContext | None,
        project_id: str,
        comment_id: str,
        annotation: Annotation,
    ) -> list[Annotation]:
        """Append an annotation and write the whole list back."""
        comment = self._require_author(ctx, project_id, comment_id)
        annotations = [*comment.annotations, annotation]
        return self._write_annotations(project_id, comment_id, annotations)

    def remove_annotation(
        self,
        ctx: ActorContext | None,
        project_id: str,
        comment_id: str,
        index: int,
    ) -> list[Annotation]:
        """Remove the annotation at a position; out-of-range is a no-op."""
        comment = self._require_author(ctx, project_id, comment_id)
        if not 0 <= index < len(comment.annotations):
            return comment.annotations

        annotations = [a for i, a in enumerate(comment.annotations) if i != index]
        return self._write_annotations(project_id, comment_id, annotations)

    def _write_annotations(
        self, project_id: str, comment_id: str, annotations: list[Annotation]
    ) -> list[Annotation]:
        updated = self.comment_repository.update_fields(
            project_id, comment_id, annotations=annotations
        )
        if not updated:
            raise CommentNotFoundError(comment_id)
        return updated.annotations

    def _require_author(
        self, ctx: ActorContext | None, project_id: str, comment_id: str
    ) -> Comment:
        if ctx is None:
            raise UnauthenticatedError()

        comment = self.get_comment(project_id, comment_id)
        if not comment.can_be_modified_by(ctx.uid) or ctx.is_anonymous:
            logger.warning(
                f"Modification of comment {comment_id} denied for {ctx.uid}"
            )
            if comment.is_anonymous():
                raise PermissionDeniedError("Anonymous comments cannot be modified")
            raise PermissionDeniedError("Only the original commenter can do this")
        return comment
