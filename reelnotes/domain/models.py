import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .context import is_anonymous_uid
from .exceptions import InvalidArgumentError


class AccessRole(Enum):
    """Classification of an actor against a project."""

    OWNER = "owner"
    COLLABORATOR = "collaborator"
    NONE = "none"

    @property
    def has_access(self) -> bool:
        return self is not AccessRole.NONE


class AnnotationType(Enum):
    ARROW = "arrow"
    CIRCLE = "circle"
    LINE = "line"
    TEXT = "text"


class User:
    """Domain model for User - pure business object."""

    def __init__(
        self,
        uid: str,
        email: str | None = None,
        display_name: str | None = None,
        photo_url: str | None = None,
        is_anonymous: bool = False,
        created_at: datetime | None = None,
    ):
        self.uid = uid
        self.email = email
        self.display_name = display_name
        self.photo_url = photo_url
        self.is_anonymous = is_anonymous or is_anonymous_uid(uid)
        self.created_at = created_at


class Project:
    """Domain model for Project - pure business object."""

    def __init__(
        self,
        project_id: str,
        title: str,
        video_url: str,
        owner_id: str,
        shareable_link: str | None = None,
        collaborators: list[str] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.project_id = project_id
        self.title = title
        self.video_url = video_url
        self.owner_id = owner_id
        self.shareable_link = shareable_link
        self.collaborators = list(collaborators or [])
        self.created_at = created_at
        self.updated_at = updated_at

    def role_for(self, uid: str | None) -> AccessRole:
        """Classify an identity as owner, collaborator or nobody."""
        if not uid:
            return AccessRole.NONE
        if uid == self.owner_id:
            return AccessRole.OWNER
        if uid in self.collaborators:
            return AccessRole.COLLABORATOR
        return AccessRole.NONE

    def has_shareable_link(self) -> bool:
        """Check if a shareable link token has been issued."""
        return bool(self.shareable_link)


@dataclass
class Coordinates:
    """Position payload of an annotation, in player-relative units."""

    x: float
    y: float
    end_x: float | None = None
    end_y: float | None = None
    radius: float | None = None

    def to_dict(self) -> dict:
        data = {"x": self.x, "y": self.y}
        if self.end_x is not None:
            data["endX"] = self.end_x
        if self.end_y is not None:
            data["endY"] = self.end_y
        if self.radius is not None:
            data["radius"] = self.radius
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Coordinates":
        return cls(
            x=data.get("x"),
            y=data.get("y"),
            end_x=data.get("endX"),
            end_y=data.get("endY"),
            radius=data.get("radius"),
        )


@dataclass
class Annotation:
    """
    Visual marker attached to a comment.

    Annotations are not addressable on their own; they live only as elements
    of a comment's ordered annotation list.
    """

    type: AnnotationType
    coordinates: Coordinates
    color: str
    size: float
    text: str | None = None

    def __post_init__(self):
        """Validate the type-dependent shape of the annotation."""
        if not isinstance(self.type, AnnotationType):
            try:
                self.type = AnnotationType(self.type)
            except ValueError:
                allowed = ", ".join(t.value for t in AnnotationType)
                raise InvalidArgumentError(
                    "type", f"must be one of: {allowed}"
                ) from None

        for name in ("x", "y"):
            if not _is_finite_number(getattr(self.coordinates, name)):
                raise InvalidArgumentError(f"coordinates.{name}", "must be a number")

        if self.type in (AnnotationType.ARROW, AnnotationType.LINE):
            if not _is_finite_number(self.coordinates.end_x) or not _is_finite_number(
                self.coordinates.end_y
            ):
                raise InvalidArgumentError(
                    "coordinates", f"{self.type.value} requires endX and endY"
                )
        if self.type is AnnotationType.CIRCLE:
            radius = self.coordinates.radius
            if not _is_finite_number(radius) or radius < 0:
                raise InvalidArgumentError(
                    "coordinates.radius", "circle requires a non-negative radius"
                )
        if self.type is AnnotationType.TEXT and not (self.text or "").strip():
            raise InvalidArgumentError("text", "text annotation requires text")

        if not self.color:
            raise InvalidArgumentError("color", "must not be empty")
        if not _is_finite_number(self.size) or self.size <= 0:
            raise InvalidArgumentError("size", "must be a positive number")

    def to_dict(self) -> dict:
        data = {
            "type": self.type.value,
            "coordinates": self.coordinates.to_dict(),
            "color": self.color,
            "size": self.size,
        }
        if self.text is not None:
            data["text"] = self.text
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Annotation":
        return cls(
            type=data.get("type"),
            coordinates=Coordinates.from_dict(data.get("coordinates") or {}),
            color=data.get("color"),
            size=data.get("size"),
            text=data.get("text"),
        )


class Comment:
    """Domain model for Comment - pure business object."""

    def __init__(
        self,
        comment_id: str,
        project_id: str,
        commenter_id: str,
        timestamp: float,
        text: str,
        annotations: list[Annotation] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.comment_id = comment_id
        self.project_id = project_id
        self.commenter_id = commenter_id
        self.timestamp = timestamp
        self.text = text
        self.annotations = list(annotations or [])
        self.created_at = created_at
        self.updated_at = updated_at

    def is_anonymous(self) -> bool:
        """Check if the comment was posted by an anonymous session."""
        return is_anonymous_uid(self.commenter_id)

    def can_be_modified_by(self, uid: str | None) -> bool:
        """Only the original, non-anonymous commenter may edit or delete."""
        return bool(uid) and uid == self.commenter_id and not self.is_anonymous()

    def in_range(self, start: float, end: float) -> bool:
        """Check if the playback timestamp lies within [start, end]."""
        return start <= self.timestamp <= end


@dataclass
class CommentUpdate:
    """Sparse set of comment fields to change; None means "leave as is"."""

    text: str | None = None
    timestamp: float | None = None
    annotations: list[Annotation] | None = None

    def is_empty(self) -> bool:
        return self.text is None and self.timestamp is None and self.annotations is None

    def validate(self) -> None:
        """Validate every present field against the comment schema."""
        if self.is_empty():
            raise InvalidArgumentError("fields", "at least one field must be set")
        if self.text is not None:
            validate_comment_text(self.text)
        if self.timestamp is not None:
            validate_timestamp(self.timestamp)


@dataclass
class ProjectUpdate:
    """Sparse set of project fields to change."""

    title: str | None = None
    video_url: str | None = None

    def is_empty(self) -> bool:
        return self.title is None and self.video_url is None

    def validate(self) -> None:
        if self.is_empty():
            raise InvalidArgumentError("fields", "at least one field must be set")
        if self.title is not None:
            validate_title(self.title)
        if self.video_url is not None and not self.video_url.strip():
            raise InvalidArgumentError("video_url", "must not be empty")


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_timestamp(timestamp) -> None:
    """Playback timestamps are finite, non-negative numbers of seconds."""
    if not _is_finite_number(timestamp):
        raise InvalidArgumentError("timestamp", "must be a finite number")
    if timestamp < 0:
        raise InvalidArgumentError("timestamp", "must be non-negative")


def validate_comment_text(text) -> None:
    if not isinstance(text, str) or not text.strip():
        raise InvalidArgumentError("text", "must not be empty")


def validate_title(title) -> None:
    if not isinstance(title, str) or not title.strip():
        raise InvalidArgumentError("title", "must not be empty")
