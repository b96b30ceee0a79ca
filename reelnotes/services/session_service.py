"""Sign-in sessions.

The identity provider is trusted as given: sign-in records the uid and
profile it supplies and hands back an opaque session token. The token is the
only thing requests carry; it resolves to an ActorContext until sign-out.
"""

import logging
import secrets
import string
import time

from ..domain.context import ANONYMOUS_PREFIX, ActorContext, is_anonymous_uid
from ..domain.exceptions import InvalidArgumentError, UnauthenticatedError
from ..domain.models import User
from ..repositories.interfaces import UserRepository

logger = logging.getLogger(__name__)

BASE36 = string.digits + string.ascii_lowercase


def generate_anonymous_uid() -> str:
    """Mint a session-scoped anonymous identity, e.g. anon_1718000000000_k3j9x0a2b."""
    suffix = "".join(secrets.choice(BASE36) for _ in range(9))
    return f"{ANONYMOUS_PREFIX}{int(time.time() * 1000)}_{suffix}"


class SessionService:
    """Acquires and releases actor contexts."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    def sign_in(
        self,
        uid: str,
        email: str | None = None,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> ActorContext:
        """Open a session for a provider-verified identity."""
        if not uid or not uid.strip():
            raise InvalidArgumentError("uid", "must not be empty")
        if is_anonymous_uid(uid):
            raise InvalidArgumentError(
                "uid", f"'{ANONYMOUS_PREFIX}' identities are reserved"
            )

        user = self.user_repository.save(
            User(uid=uid, email=email, display_name=display_name, photo_url=photo_url)
        )
        return self._open(user)

    def sign_in_anonymously(self) -> ActorContext:
        """Open a session for a fresh anonymous identity."""
        user = self.user_repository.save(
            User(uid=generate_anonymous_uid(), is_anonymous=True)
        )
        return self._open(user)

    def resolve(self, token: str | None) -> ActorContext | None:
        """Map a session token to its actor, or None if unknown."""
        if not token:
            return None
        user = self.user_repository.find_session_user(token)
        if not user:
            return None
        return self._context(user, token)

    def sign_out(self, token: str | None) -> bool:
        """Release a session. Unknown tokens are ignored."""
        if not token:
            return False
        released = self.user_repository.delete_session(token)
        if released:
            logger.info("Session released")
        return released

    def get_user(self, uid: str) -> User | None:
        return self.user_repository.find_by_uid(uid)

    def update_profile(
        self,
        ctx: ActorContext | None,
        display_name: str | None = None,
        photo_url: str | None = None,
    ) -> User:
        """Update the caller's display name and/or avatar."""
        if ctx is None:
            raise UnauthenticatedError("No user is currently signed in")
        if display_name is None and photo_url is None:
            raise InvalidArgumentError("fields", "at least one field must be set")

        return self.user_repository.save(
            User(
                uid=ctx.uid,
                display_name=display_name,
                photo_url=photo_url,
                is_anonymous=ctx.is_anonymous,
            )
        )

    def _open(self, user: User) -> ActorContext:
        token = secrets.token_urlsafe(32)
        self.user_repository.create_session(token, user.uid)
        logger.info(
            f"Session opened for {'anonymous ' if user.is_anonymous else ''}"
            f"user {user.uid}"
        )
        return self._context(user, token)

    @staticmethod
    def _context(user: User, token: str) -> ActorContext:
        return ActorContext(
            uid=user.uid,
            session_token=token,
            display_name=user.display_name,
            is_anonymous=user.is_anonymous,
        )
