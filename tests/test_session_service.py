"""Test sign-in sessions and the actor contexts they resolve to."""

import os
import re
import tempfile

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reelnotes.database.connection import Base
from reelnotes.database.models import UserSession  # noqa: F401
from reelnotes.domain.exceptions import InvalidArgumentError, UnauthenticatedError
from reelnotes.repositories.user_repository import SqlUserRepository
from reelnotes.services.session_service import SessionService, generate_anonymous_uid


@pytest.fixture
def service():
    """Create a session service over a temporary database."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()

    yield SessionService(SqlUserRepository(session))

    session.close()
    engine.dispose()
    os.unlink(db_path)


def test_anonymous_uid_format():
    uid = generate_anonymous_uid()
    assert re.fullmatch(r"anon_\d{13,}_[0-9a-z]{9}", uid)


class TestSignIn:
    def test_sign_in_returns_context(self, service):
        ctx = service.sign_in("u1", email="u1@example.com", display_name="Uma")

        assert ctx.uid == "u1"
        assert ctx.display_name == "Uma"
        assert not ctx.is_anonymous
        assert ctx.session_token

    def test_token_resolves_to_same_actor(self, service):
        ctx = service.sign_in("u1")

        resolved = service.resolve(ctx.session_token)

        assert resolved == ctx

    def test_repeat_sign_in_keeps_profile(self, service):
        service.sign_in("u1", display_name="Uma")
        ctx = service.sign_in("u1")

        assert ctx.display_name == "Uma"
        assert service.get_user("u1").display_name == "Uma"

    def test_empty_uid_rejected(self, service):
        with pytest.raises(InvalidArgumentError):
            service.sign_in("  ")

    def test_anonymous_prefix_reserved(self, service):
        with pytest.raises(InvalidArgumentError):
            service.sign_in("anon_123_abc")

    def test_anonymous_sign_in(self, service):
        ctx = service.sign_in_anonymously()

        assert ctx.is_anonymous
        assert ctx.uid.startswith("anon_")
        assert service.resolve(ctx.session_token).is_anonymous

    def test_anonymous_sessions_get_distinct_identities(self, service):
        assert (
            service.sign_in_anonymously().uid != service.sign_in_anonymously().uid
        )


class TestSignOut:
    def test_sign_out_releases_token(self, service):
        ctx = service.sign_in("u1")

        assert service.sign_out(ctx.session_token) is True
        assert service.resolve(ctx.session_token) is None

    def test_sign_out_unknown_token(self, service):
        assert service.sign_out("nope") is False
        assert service.sign_out(None) is False

    def test_resolve_unknown_token(self, service):
        assert service.resolve("nope") is None
        assert service.resolve(None) is None


class TestProfile:
    def test_update_profile(self, service):
        ctx = service.sign_in("u1", display_name="Uma", photo_url="http://a/1.png")

        user = service.update_profile(ctx, display_name="Uma T.")

        assert user.display_name == "Uma T."
        assert user.photo_url == "http://a/1.png"

    def test_update_profile_requires_identity(self, service):
        with pytest.raises(UnauthenticatedError):
            service.update_profile(None, display_name="x")

    def test_update_profile_requires_a_field(self, service):
        ctx = service.sign_in("u1")
        with pytest.raises(InvalidArgumentError):
            service.update_profile(ctx)
