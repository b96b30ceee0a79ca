"""SQLAlchemy implementation of CommentRepository."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import Comment as CommentEntity
from ..domain.models import Annotation, Comment
from .interfaces import CommentRepository


class SqlCommentRepository(CommentRepository):
    """SQLAlchemy implementation of CommentRepository."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, comment: Comment) -> Comment:
        """Insert a new comment; the store assigns created_at."""
        entity = CommentEntity(
            comment_id=comment.comment_id,
            project_id=comment.project_id,
            commenter_id=comment.commenter_id,
            timestamp=comment.timestamp,
            text=comment.text,
            annotations=[a.to_dict() for a in comment.annotations],
        )
        self.session.add(entity)
        self._commit()
        self.session.refresh(entity)
        return self._to_domain(entity)

    def find_by_id(self, project_id: str, comment_id: str) -> Comment | None:
        """Find a comment within its project."""
        entity = self._get_entity(project_id, comment_id)
        return self._to_domain(entity) if entity else None

    def find_by_project(
        self,
        project_id: str,
        start: float | None = None,
        end: float | None = None,
        commenter_id: str | None = None,
    ) -> list[Comment]:
        """Find comments ordered by timestamp, ties by insertion order."""
        query = self.session.query(CommentEntity).filter(
            CommentEntity.project_id == project_id
        )
        if start is not None:
            query = query.filter(CommentEntity.timestamp >= start)
        if end is not None:
            query = query.filter(CommentEntity.timestamp <= end)
        if commenter_id is not None:
            query = query.filter(CommentEntity.commenter_id == commenter_id)

        entities = query.order_by(
            CommentEntity.timestamp.asc(), CommentEntity.id.asc()
        ).all()
        return [self._to_domain(entity) for entity in entities]

    def update_fields(
        self,
        project_id: str,
        comment_id: str,
        text: str | None = None,
        timestamp: float | None = None,
        annotations: list[Annotation] | None = None,
    ) -> Comment | None:
        """Overwrite the given fields; None leaves a field unchanged."""
        entity = self._get_entity(project_id, comment_id)
        if not entity:
            return None

        if text is not None:
            entity.text = text
        if timestamp is not None:
            entity.timestamp = timestamp
        if annotations is not None:
            # Whole-array write, last writer wins
            entity.annotations = [a.to_dict() for a in annotations]

        self._commit()
        self.session.refresh(entity)
        return self._to_domain(entity)

    def delete(self, project_id: str, comment_id: str) -> bool:
        """Delete a comment."""
        entity = self._get_entity(project_id, comment_id)
        if entity:
            self.session.delete(entity)
            self._commit()
            return True
        return False

    def _get_entity(self, project_id: str, comment_id: str) -> CommentEntity | None:
        return (
            self.session.query(CommentEntity)
            .filter(
                CommentEntity.project_id == project_id,
                CommentEntity.comment_id == comment_id,
            )
            .first()
        )

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _to_domain(self, entity: CommentEntity) -> Comment:
        """Convert SQLAlchemy entity to domain model."""
        return Comment(
            comment_id=entity.comment_id,
            project_id=entity.project_id,
            commenter_id=entity.commenter_id,
            timestamp=entity.timestamp,
            text=entity.text,
            annotations=[Annotation.from_dict(a) for a in entity.annotations or []],
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
