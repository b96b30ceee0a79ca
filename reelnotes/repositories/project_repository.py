"""SQLAlchemy implementation of ProjectRepository."""

import json
import logging

from sqlalchemy import String, cast
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import Comment as CommentEntity
from ..database.models import Project as ProjectEntity
from ..domain.exceptions import ProjectNotFoundError, ShareableLinkCollisionError
from ..domain.models import Project
from .interfaces import ProjectRepository

logger = logging.getLogger(__name__)


class SqlProjectRepository(ProjectRepository):
    """SQLAlchemy implementation of ProjectRepository."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, project: Project) -> Project:
        """Insert a new project."""
        entity = ProjectEntity(
            project_id=project.project_id,
            title=project.title,
            video_url=project.video_url,
            owner_id=project.owner_id,
            shareable_link=project.shareable_link,
            collaborators=list(project.collaborators),
        )
        self.session.add(entity)

        self._commit(project.shareable_link)
        self.session.refresh(entity)
        return self._to_domain(entity)

    def find_by_id(self, project_id: str) -> Project | None:
        """Find project by ID."""
        entity = self._get_entity(project_id)
        return self._to_domain(entity) if entity else None

    def find_by_shareable_link(self, token: str) -> Project | None:
        """Find the project a shareable link token belongs to."""
        entity = (
            self.session.query(ProjectEntity)
            .filter(ProjectEntity.shareable_link == token)
            .first()
        )
        return self._to_domain(entity) if entity else None

    def find_by_owner(self, owner_id: str) -> list[Project]:
        """Find projects owned by a user, newest first."""
        entities = (
            self.session.query(ProjectEntity)
            .filter(ProjectEntity.owner_id == owner_id)
            .order_by(ProjectEntity.created_at.desc(), ProjectEntity.project_id)
            .all()
        )
        return [self._to_domain(entity) for entity in entities]

    def find_by_collaborator(self, uid: str) -> list[Project]:
        """Find projects a user collaborates on, newest first."""
        # Coarse textual prefilter on the serialized JSON array (uids appear
        # there JSON-escaped), exact membership below
        serialized = json.dumps(uid)[1:-1]
        escaped = (
            serialized.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        )
        entities = (
            self.session.query(ProjectEntity)
            .filter(
                cast(ProjectEntity.collaborators, String).like(
                    f'%"{escaped}"%', escape="\\"
                )
            )
            .order_by(ProjectEntity.created_at.desc(), ProjectEntity.project_id)
            .all()
        )
        return [
            self._to_domain(entity)
            for entity in entities
            if uid in (entity.collaborators or [])
        ]

    def update_fields(
        self,
        project_id: str,
        title: str | None = None,
        video_url: str | None = None,
    ) -> Project:
        """Overwrite the given fields; None leaves a field unchanged."""
        entity = self._require_entity(project_id)

        if title is not None:
            entity.title = title
        if video_url is not None:
            entity.video_url = video_url

        self._commit()
        self.session.refresh(entity)
        return self._to_domain(entity)

    def set_shareable_link(self, project_id: str, token: str) -> Project:
        """Overwrite the shareable link field."""
        entity = self._require_entity(project_id)
        entity.shareable_link = token
        self._commit(token)
        self.session.refresh(entity)
        return self._to_domain(entity)

    def set_collaborators(self, project_id: str, collaborators: list[str]) -> Project:
        """Overwrite the whole collaborator array."""
        entity = self._require_entity(project_id)
        # Assign a fresh list so the JSON column is flagged dirty
        entity.collaborators = list(collaborators)
        self._commit()
        self.session.refresh(entity)
        return self._to_domain(entity)

    def delete_with_comments(self, project_id: str) -> int:
        """Delete a project and all its comments in one transaction."""
        entity = self._require_entity(project_id)
        try:
            removed = (
                self.session.query(CommentEntity)
                .filter(CommentEntity.project_id == project_id)
                .delete(synchronize_session=False)
            )
            self.session.delete(entity)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        logger.info(f"Deleted project {project_id} with {removed} comments")
        return removed

    def _get_entity(self, project_id: str) -> ProjectEntity | None:
        return (
            self.session.query(ProjectEntity)
            .filter(ProjectEntity.project_id == project_id)
            .first()
        )

    def _require_entity(self, project_id: str) -> ProjectEntity:
        entity = self._get_entity(project_id)
        if not entity:
            raise ProjectNotFoundError(project_id)
        return entity

    def _commit(self, token: str | None = None) -> None:
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if token is not None:
                raise ShareableLinkCollisionError(token) from None
            raise
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _to_domain(self, entity: ProjectEntity) -> Project:
        """Convert SQLAlchemy entity to domain model."""
        return Project(
            project_id=entity.project_id,
            title=entity.title,
            video_url=entity.video_url,
            owner_id=entity.owner_id,
            shareable_link=entity.shareable_link,
            collaborators=list(entity.collaborators or []),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
