import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker

from reelnotes.database.connection import Base
from reelnotes.database.migrations import run_migrations
from reelnotes.database.models import Comment as CommentEntity
from reelnotes.domain.exceptions import ShareableLinkCollisionError
from reelnotes.domain.models import Annotation, Comment, Coordinates, Project
from reelnotes.repositories.comment_repository import SqlCommentRepository
from reelnotes.repositories.project_repository import SqlProjectRepository

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def session():
    """Create a temporary database session for testing."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()

    yield session

    session.close()
    engine.dispose()
    os.unlink(db_path)


def make_project(project_id, link=None):
    return Project(
        project_id=project_id,
        title="Title",
        video_url="https://cdn.example.com/v.mp4",
        owner_id="owner",
        shareable_link=link,
    )


def test_migration_runner_creates_schema(monkeypatch):
    """Test that the migration runner creates every table."""
    monkeypatch.chdir(PROJECT_ROOT)
    with tempfile.TemporaryDirectory() as temp_dir:
        db_path = os.path.join(temp_dir, "nested", "test.db")
        url = f"sqlite:///{db_path}"

        with patch("reelnotes.database.migrations.get_database_url", return_value=url):
            run_migrations()

        engine = create_engine(url)
        tables = set(inspect(engine).get_table_names())
        engine.dispose()

        assert {"users", "user_sessions", "projects", "comments"} <= tables


class TestProjectRepository:
    def test_shareable_links_are_unique(self, session):
        repo = SqlProjectRepository(session)
        repo.save(make_project("p1", link="X" * 16))
        repo.save(make_project("p2"))

        with pytest.raises(ShareableLinkCollisionError):
            repo.set_shareable_link("p2", "X" * 16)

        assert repo.find_by_id("p2").shareable_link is None

    def test_collaborators_round_trip(self, session):
        repo = SqlProjectRepository(session)
        repo.save(make_project("p1"))

        repo.set_collaborators("p1", ["b", "a"])

        assert repo.find_by_id("p1").collaborators == ["b", "a"]

    def test_delete_with_comments(self, session):
        projects = SqlProjectRepository(session)
        comments = SqlCommentRepository(session)
        projects.save(make_project("p1"))
        comments.create(Comment("c1", "p1", "owner", 1.0, "x"))
        comments.create(Comment("c2", "p1", "owner", 2.0, "y"))

        assert projects.delete_with_comments("p1") == 2
        assert session.query(CommentEntity).count() == 0


class TestCommentRepository:
    def test_annotations_stored_as_json(self, session):
        SqlProjectRepository(session).save(make_project("p1"))
        repo = SqlCommentRepository(session)
        annotation = Annotation(
            type="text",
            coordinates=Coordinates(x=0.5, y=0.5),
            color="#000",
            size=14,
            text="here",
        )

        repo.create(Comment("c1", "p1", "owner", 3.0, "x", annotations=[annotation]))

        entity = session.query(CommentEntity).filter_by(comment_id="c1").one()
        assert entity.annotations == [annotation.to_dict()]
        assert repo.find_by_id("p1", "c1").annotations[0].text == "here"

    def test_comment_lookup_is_scoped_to_project(self, session):
        projects = SqlProjectRepository(session)
        projects.save(make_project("p1"))
        projects.save(make_project("p2"))
        repo = SqlCommentRepository(session)
        repo.create(Comment("c1", "p1", "owner", 3.0, "x"))

        assert repo.find_by_id("p2", "c1") is None
        assert repo.delete("p2", "c1") is False

    def test_update_fields_leaves_unset_fields(self, session):
        SqlProjectRepository(session).save(make_project("p1"))
        repo = SqlCommentRepository(session)
        repo.create(Comment("c1", "p1", "owner", 3.0, "x"))

        updated = repo.update_fields("p1", "c1", timestamp=9.0)

        assert updated.timestamp == 9.0
        assert updated.text == "x"
