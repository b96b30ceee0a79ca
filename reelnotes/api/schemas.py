from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..domain.models import Annotation, Comment, Coordinates, Project


class ErrorResponseSchema(BaseModel):
    """Schema for error responses with consistent format.

    All error responses include detail, error_code, and timestamp
    for debugging and client-side error handling.
    """

    detail: str = Field(
        ...,
        description="Human-readable error message describing what went wrong",
        examples=["Project not found: 6f1c0b52-0d55-4c55-9e0f-1a1d0c4e9b7a"],
    )
    error_code: str = Field(
        ...,
        description=(
            "Machine-readable error kind: unauthenticated, invalid-argument, "
            "not-found, permission-denied or internal"
        ),
        examples=["not-found"],
    )
    timestamp: datetime = Field(
        ...,
        description="UTC timestamp when the error occurred",
        examples=["2026-05-19T02:22:21Z"],
    )


# Sessions and users


class SessionCreateSchema(BaseModel):
    """Identity supplied by the upstream identity provider."""

    uid: str = Field(..., min_length=1)
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None


class SessionResponseSchema(BaseModel):
    token: str
    uid: str
    display_name: str | None = None
    is_anonymous: bool


class UserResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    is_anonymous: bool
    created_at: datetime | None = None


class ProfileUpdateSchema(BaseModel):
    display_name: str | None = None
    photo_url: str | None = None


# Projects


class ProjectCreateSchema(BaseModel):
    title: str = Field(..., min_length=1)
    video_url: str = Field(..., min_length=1)


class ProjectUpdateSchema(BaseModel):
    title: str | None = None
    video_url: str | None = None


class ProjectResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_id: str
    title: str
    video_url: str
    owner_id: str
    shareable_link: str | None = None
    collaborators: list[str] = []
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, project: Project) -> "ProjectResponseSchema":
        return cls.model_validate(project)


class SharedProjectResponseSchema(BaseModel):
    """What an anonymous link holder gets to see of a project."""

    model_config = ConfigDict(from_attributes=True)

    project_id: str
    title: str
    video_url: str
    created_at: datetime | None = None


# Comments and annotations


class CoordinatesSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    x: float
    y: float
    end_x: float | None = Field(None, alias="endX")
    end_y: float | None = Field(None, alias="endY")
    radius: float | None = None


class AnnotationSchema(BaseModel):
    """A visual marker; endX/endY for arrows and lines, radius for circles."""

    type: Literal["arrow", "circle", "line", "text"]
    coordinates: CoordinatesSchema
    color: str = Field(..., min_length=1, examples=["#ff0000"])
    size: float = Field(..., gt=0)
    text: str | None = None

    def to_domain(self) -> Annotation:
        return Annotation(
            type=self.type,
            coordinates=Coordinates(
                x=self.coordinates.x,
                y=self.coordinates.y,
                end_x=self.coordinates.end_x,
                end_y=self.coordinates.end_y,
                radius=self.coordinates.radius,
            ),
            color=self.color,
            size=self.size,
            text=self.text,
        )

    @classmethod
    def from_domain(cls, annotation: Annotation) -> "AnnotationSchema":
        return cls.model_validate(annotation.to_dict())


class CommentCreateSchema(BaseModel):
    timestamp: float = Field(
        ..., ge=0, description="Playback position in seconds", examples=[12.5]
    )
    text: str = Field(..., min_length=1)
    annotations: list[AnnotationSchema] | None = None


class CommentUpdateSchema(BaseModel):
    """Sparse update; omitted fields are left unchanged."""

    text: str | None = None
    timestamp: float | None = Field(None, ge=0)
    annotations: list[AnnotationSchema] | None = None


class CommentResponseSchema(BaseModel):
    comment_id: str
    project_id: str
    commenter_id: str
    timestamp: float
    text: str
    annotations: list[AnnotationSchema] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponseSchema":
        return cls(
            comment_id=comment.comment_id,
            project_id=comment.project_id,
            commenter_id=comment.commenter_id,
            timestamp=comment.timestamp,
            text=comment.text,
            annotations=[AnnotationSchema.from_domain(a) for a in comment.annotations],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


# Callable procedures (request/response shapes kept camelCase)


class GenerateShareableLinkRequest(BaseModel):
    projectId: str | None = None


class GenerateShareableLinkResponse(BaseModel):
    success: bool
    shareableLink: str


class CheckAccessRequest(BaseModel):
    projectId: str | None = None
    userId: str | None = None


class CheckAccessResponse(BaseModel):
    hasAccess: bool
    role: Literal["owner", "collaborator", "none"]


class UpdateCollaboratorsRequest(BaseModel):
    projectId: str | None = None
    userId: str | None = None
    action: str | None = None


class UpdateCollaboratorsResponse(BaseModel):
    success: bool
    action: str
    userId: str
    collaborators: list[str]


# Files


class StoredFileResponseSchema(BaseModel):
    name: str
    path: str
    project_id: str
    size: int
    url: str
