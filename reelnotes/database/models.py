from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import func

from .connection import Base


class User(Base):
    __tablename__ = "users"

    uid = Column(String, primary_key=True)
    email = Column(String)
    display_name = Column(String)
    photo_url = Column(String)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())


class UserSession(Base):
    __tablename__ = "user_sessions"

    token = Column(String, primary_key=True)
    uid = Column(String, ForeignKey("users.uid"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    video_url = Column(String, nullable=False)
    owner_id = Column(String, nullable=False, index=True)
    shareable_link = Column(String, unique=True, index=True)  # 16 alphanumerics
    collaborators = Column(JSON, nullable=False, default=list)  # list of uids
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Comment(Base):
    __tablename__ = "comments"

    # Surrogate key doubles as the insertion order for timestamp ties
    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(String, nullable=False, unique=True, index=True)
    project_id = Column(
        String,
        ForeignKey("projects.project_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    commenter_id = Column(String, nullable=False, index=True)
    timestamp = Column(Float, nullable=False, index=True)  # playback seconds
    text = Column(Text, nullable=False)
    annotations = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
