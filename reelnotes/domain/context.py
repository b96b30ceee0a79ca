"""Explicit actor context passed to every operation.

A context is acquired on sign-in and released on sign-out; nothing in the
service layer reads an ambient "current user".
"""

from dataclasses import dataclass

ANONYMOUS_PREFIX = "anon_"


def is_anonymous_uid(uid: str | None) -> bool:
    """Check whether an identifier follows the anonymous naming convention."""
    return bool(uid) and uid.startswith(ANONYMOUS_PREFIX)


@dataclass(frozen=True)
class ActorContext:
    """Identity of the caller for a single operation."""

    uid: str
    session_token: str | None = None
    display_name: str | None = None
    is_anonymous: bool = False

    def __post_init__(self):
        if not self.uid:
            raise ValueError("ActorContext requires a uid")
        # The naming convention wins over the flag
        if is_anonymous_uid(self.uid) and not self.is_anonymous:
            object.__setattr__(self, "is_anonymous", True)
