"""Test shareable link issuance, reissue and resolution."""

import os
import re
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reelnotes.database.connection import Base
from reelnotes.database.models import Project as ProjectEntity  # noqa: F401
from reelnotes.domain.context import ActorContext
from reelnotes.domain.exceptions import (
    InternalError,
    NotFoundError,
    PermissionDeniedError,
    ProjectNotFoundError,
    UnauthenticatedError,
)
from reelnotes.domain.models import Project
from reelnotes.repositories.project_repository import SqlProjectRepository
from reelnotes.services.share_link_service import (
    TOKEN_LENGTH,
    ShareLinkService,
    generate_token,
)

OWNER = ActorContext(uid="owner", session_token="t-owner")


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


@pytest.fixture
def repo(session):
    return SqlProjectRepository(session)


def create_project(repo, project_id="p1", owner_id="owner"):
    return repo.save(
        Project(
            project_id=project_id,
            title="Rough cut",
            video_url="https://cdn.example.com/v.mp4",
            owner_id=owner_id,
        )
    )


class TestTokenGeneration:
    def test_token_is_sixteen_alphanumerics(self):
        token = generate_token()
        assert len(token) == TOKEN_LENGTH
        assert re.fullmatch(r"[A-Za-z0-9]{16}", token)

    def test_tokens_differ(self):
        assert len({generate_token() for _ in range(50)}) == 50


class TestIssue:
    def test_issue_assigns_token_and_resolves_back(self, repo):
        create_project(repo)
        service = ShareLinkService(repo)

        token = service.issue("p1")

        assert repo.find_by_id("p1").shareable_link == token
        assert service.resolve(token).project_id == "p1"

    def test_issue_is_idempotent(self, repo):
        create_project(repo)
        service = ShareLinkService(repo)

        assert service.issue("p1") == service.issue("p1")

    def test_distinct_projects_get_distinct_tokens(self, repo):
        create_project(repo, "p1")
        create_project(repo, "p2")
        service = ShareLinkService(repo)

        assert service.issue("p1") != service.issue("p2")

    def test_issue_for_missing_project(self, repo):
        with pytest.raises(ProjectNotFoundError):
            ShareLinkService(repo).issue("missing")

    def test_issue_retries_on_collision(self, repo):
        create_project(repo, "p1")
        create_project(repo, "p2")
        tokens = iter(["A" * 16, "A" * 16, "B" * 16])
        service = ShareLinkService(repo, token_factory=lambda: next(tokens))

        assert service.issue("p1") == "A" * 16
        assert service.issue("p2") == "B" * 16
        assert service.resolve("A" * 16).project_id == "p1"

    def test_issue_gives_up_after_repeated_collisions(self, repo):
        create_project(repo, "p1")
        create_project(repo, "p2")
        service = ShareLinkService(repo, token_factory=lambda: "C" * 16)
        service.issue("p1")

        with pytest.raises(InternalError):
            service.issue("p2")
        assert repo.find_by_id("p2").shareable_link is None


class TestRegenerate:
    def test_regenerate_always_changes_token(self, repo):
        create_project(repo)
        service = ShareLinkService(repo)
        first = service.issue("p1")

        second = service.regenerate(OWNER, "p1")
        third = service.regenerate(OWNER, "p1")

        assert len({first, second, third}) == 3

    def test_regenerate_invalidates_previous_link(self, repo):
        create_project(repo)
        service = ShareLinkService(repo)
        old = service.issue("p1")

        service.regenerate(OWNER, "p1")

        with pytest.raises(NotFoundError):
            service.resolve(old)

    def test_regenerate_requires_identity(self, repo):
        create_project(repo)
        with pytest.raises(UnauthenticatedError):
            ShareLinkService(repo).regenerate(None, "p1")

    def test_regenerate_is_owner_only(self, repo):
        create_project(repo)
        repo.set_collaborators("p1", ["alice"])
        with pytest.raises(PermissionDeniedError):
            ShareLinkService(repo).regenerate(ActorContext(uid="alice"), "p1")


class TestResolve:
    def test_unknown_token(self, repo):
        with pytest.raises(NotFoundError):
            ShareLinkService(repo).resolve("nope")

    def test_empty_token(self, repo):
        with pytest.raises(NotFoundError):
            ShareLinkService(repo).resolve("")
