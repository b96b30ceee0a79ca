from abc import ABC, abstractmethod

from ..domain.models import Annotation, Comment, Project, User


class UserRepository(ABC):
    """Abstract repository interface for User and session persistence."""

    @abstractmethod
    def save(self, user: User) -> User:
        """Create or update a user profile."""
        pass

    @abstractmethod
    def find_by_uid(self, uid: str) -> User | None:
        """Find user by uid."""
        pass

    @abstractmethod
    def create_session(self, token: str, uid: str) -> None:
        """Record a signed-in session."""
        pass

    @abstractmethod
    def find_session_user(self, token: str) -> User | None:
        """Find the user a session token belongs to."""
        pass

    @abstractmethod
    def delete_session(self, token: str) -> bool:
        """Release a session."""
        pass


class ProjectRepository(ABC):
    """Abstract repository interface for Project persistence."""

    @abstractmethod
    def save(self, project: Project) -> Project:
        """Insert a new project."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: str) -> Project | None:
        """Find project by ID."""
        pass

    @abstractmethod
    def find_by_shareable_link(self, token: str) -> Project | None:
        """Find the project a shareable link token belongs to."""
        pass

    @abstractmethod
    def find_by_owner(self, owner_id: str) -> list[Project]:
        """Find projects owned by a user, newest first."""
        pass

    @abstractmethod
    def find_by_collaborator(self, uid: str) -> list[Project]:
        """Find projects a user collaborates on, newest first."""
        pass

    @abstractmethod
    def update_fields(
        self,
        project_id: str,
        title: str | None = None,
        video_url: str | None = None,
    ) -> Project:
        """Overwrite the given fields; None leaves a field unchanged."""
        pass

    @abstractmethod
    def set_shareable_link(self, project_id: str, token: str) -> Project:
        """Overwrite the shareable link field.

        Raises:
            ShareableLinkCollisionError: If another project holds the token
        """
        pass

    @abstractmethod
    def set_collaborators(self, project_id: str, collaborators: list[str]) -> Project:
        """Overwrite the whole collaborator array."""
        pass

    @abstractmethod
    def delete_with_comments(self, project_id: str) -> int:
        """Delete a project and all its comments in one transaction.

        Returns:
            Number of comments removed
        """
        pass


class CommentRepository(ABC):
    """Abstract repository interface for Comment persistence."""

    @abstractmethod
    def create(self, comment: Comment) -> Comment:
        """Insert a new comment; the store assigns created_at."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: str, comment_id: str) -> Comment | None:
        """Find a comment within its project."""
        pass

    @abstractmethod
    def find_by_project(
        self,
        project_id: str,
        start: float | None = None,
        end: float | None = None,
        commenter_id: str | None = None,
    ) -> list[Comment]:
        """Find comments ordered by timestamp, ties by insertion order."""
        pass

    @abstractmethod
    def update_fields(
        self,
        project_id: str,
        comment_id: str,
        text: str | None = None,
        timestamp: float | None = None,
        annotations: list[Annotation] | None = None,
    ) -> Comment | None:
        """Overwrite the given fields; None leaves a field unchanged."""
        pass

    @abstractmethod
    def delete(self, project_id: str, comment_id: str) -> bool:
        """Delete a comment."""
        pass
