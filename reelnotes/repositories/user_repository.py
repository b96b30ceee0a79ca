"""SQLAlchemy implementation of UserRepository."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import User as UserEntity
from ..database.models import UserSession as UserSessionEntity
from ..domain.models import User
from .interfaces import UserRepository


class SqlUserRepository(UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    def __init__(self, session: Session):
        self.session = session

    def save(self, user: User) -> User:
        """Create the user, or update the profile fields that are set."""
        existing = (
            self.session.query(UserEntity).filter(UserEntity.uid == user.uid).first()
        )

        if existing:
            for key in ("email", "display_name", "photo_url"):
                value = getattr(user, key)
                if value is not None:
                    setattr(existing, key, value)
            entity = existing
        else:
            entity = UserEntity(
                uid=user.uid,
                email=user.email,
                display_name=user.display_name,
                photo_url=user.photo_url,
                is_anonymous=user.is_anonymous,
            )
            self.session.add(entity)

        self._commit()
        self.session.refresh(entity)
        return self._to_domain(entity)

    def find_by_uid(self, uid: str) -> User | None:
        """Find user by uid."""
        entity = self.session.query(UserEntity).filter(UserEntity.uid == uid).first()
        return self._to_domain(entity) if entity else None

    def create_session(self, token: str, uid: str) -> None:
        """Record a signed-in session."""
        self.session.add(UserSessionEntity(token=token, uid=uid))
        self._commit()

    def find_session_user(self, token: str) -> User | None:
        """Find the user a session token belongs to."""
        entity = (
            self.session.query(UserEntity)
            .join(UserSessionEntity, UserSessionEntity.uid == UserEntity.uid)
            .filter(UserSessionEntity.token == token)
            .first()
        )
        return self._to_domain(entity) if entity else None

    def delete_session(self, token: str) -> bool:
        """Release a session."""
        entity = (
            self.session.query(UserSessionEntity)
            .filter(UserSessionEntity.token == token)
            .first()
        )
        if not entity:
            return False
        self.session.delete(entity)
        self._commit()
        return True

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _to_domain(self, entity: UserEntity) -> User:
        """Convert SQLAlchemy entity to domain model."""
        return User(
            uid=entity.uid,
            email=entity.email,
            display_name=entity.display_name,
            photo_url=entity.photo_url,
            is_anonymous=bool(entity.is_anonymous),
            created_at=entity.created_at,
        )
