import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from reelnotes.api.dependencies import get_storage
from reelnotes.database.connection import Base, get_db, get_session_factory
from reelnotes.main import app
from reelnotes.services.storage_service import LocalBlobStorage


@pytest.fixture(scope="module")
def test_db():
    """Create a temporary database for testing."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    engine = create_engine(
        f"sqlite:///{db_path}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)

    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield testing_session_local

    engine.dispose()
    os.unlink(db_path)


@pytest.fixture(scope="module")
def client(test_db, tmp_path_factory):
    """Create test client with database and storage overrides."""

    def override_get_db():
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    storage = LocalBlobStorage(
        tmp_path_factory.mktemp("blobs"), "http://testserver/v1/files"
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: test_db
    app.dependency_overrides[get_storage] = lambda: storage

    # No context manager: the lifespan (migrations, Redis) is not needed here
    yield TestClient(app)

    app.dependency_overrides.clear()


def sign_in(client, uid):
    response = client.post("/v1/sessions", json={"uid": uid, "display_name": uid})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def sign_in_anonymously(client):
    response = client.post("/v1/sessions/anonymous")
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def create_project(client, headers, title="Cut 1"):
    response = client.post(
        "/v1/projects",
        json={"title": title, "video_url": "https://cdn.example.com/cut.mp4"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def test_openapi_spec(client):
    """Test that OpenAPI spec is generated correctly."""
    response = client.get("/openapi.json")
    assert response.status_code == 200

    spec = response.json()
    assert spec["info"]["title"] == "ReelNotes - Video Feedback API"
    assert spec["info"]["version"] == "1.0.0"
    assert "/v1/projects" in spec["paths"]
    assert "/v1/functions/check-access" in spec["paths"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestSessions:
    def test_current_user(self, client):
        headers = sign_in(client, "api-user")

        response = client.get("/v1/sessions/current", headers=headers)

        assert response.status_code == 200
        assert response.json()["uid"] == "api-user"

    def test_sign_out(self, client):
        headers = sign_in(client, "api-leaver")

        assert client.delete("/v1/sessions/current", headers=headers).status_code == 204
        response = client.get("/v1/sessions/current", headers=headers)
        assert response.status_code == 401
        assert response.json()["error_code"] == "unauthenticated"

    def test_update_profile(self, client):
        headers = sign_in(client, "api-renamer")

        response = client.patch(
            "/v1/users/me", json={"display_name": "Renamed"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["display_name"] == "Renamed"


class TestProjects:
    def test_create_requires_session(self, client):
        response = client.post(
            "/v1/projects", json={"title": "x", "video_url": "https://cdn/x.mp4"}
        )

        assert response.status_code == 401
        body = response.json()
        assert body["error_code"] == "unauthenticated"
        assert "timestamp" in body

    def test_create_and_get(self, client):
        headers = sign_in(client, "owner-a")
        project = create_project(client, headers)

        assert len(project["shareable_link"]) == 16
        response = client.get(f"/v1/projects/{project['project_id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["title"] == "Cut 1"

    def test_missing_project(self, client):
        headers = sign_in(client, "owner-a")

        response = client.get("/v1/projects/does-not-exist", headers=headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "not-found"

    def test_stranger_is_denied(self, client):
        project = create_project(client, sign_in(client, "owner-b"))

        response = client.get(
            f"/v1/projects/{project['project_id']}",
            headers=sign_in(client, "stranger"),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "permission-denied"

    def test_invalid_body(self, client):
        response = client.post(
            "/v1/projects",
            json={"title": ""},
            headers=sign_in(client, "owner-a"),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid-argument"

    def test_list_owned_and_collaborated(self, client):
        owner = sign_in(client, "owner-list")
        project = create_project(client, owner, "Listed")
        client.post(
            "/v1/functions/update-collaborators",
            json={
                "projectId": project["project_id"],
                "userId": "collab-list",
                "action": "add",
            },
            headers=owner,
        )

        owned = client.get("/v1/projects", headers=owner).json()
        collaborated = client.get(
            "/v1/projects",
            params={"scope": "collaborated"},
            headers=sign_in(client, "collab-list"),
        ).json()

        assert [p["project_id"] for p in owned] == [project["project_id"]]
        assert [p["project_id"] for p in collaborated] == [project["project_id"]]

    def test_delete_cascades_to_comments(self, client):
        headers = sign_in(client, "owner-del")
        project = create_project(client, headers)
        pid = project["project_id"]
        client.post(
            f"/v1/projects/{pid}/comments",
            json={"timestamp": 1, "text": "gone soon"},
            headers=headers,
        )

        assert client.delete(f"/v1/projects/{pid}", headers=headers).status_code == 204
        assert client.get(f"/v1/projects/{pid}", headers=headers).status_code == 404
        response = client.get(f"/v1/shared/{project['shareable_link']}")
        assert response.status_code == 404


class TestComments:
    def test_timeline_order_and_range(self, client):
        headers = sign_in(client, "owner-c")
        pid = create_project(client, headers)["project_id"]
        for timestamp in (30, 5, 12):
            response = client.post(
                f"/v1/projects/{pid}/comments",
                json={"timestamp": timestamp, "text": f"at {timestamp}"},
                headers=headers,
            )
            assert response.status_code == 201

        listed = client.get(f"/v1/projects/{pid}/comments", headers=headers).json()
        in_range = client.get(
            f"/v1/projects/{pid}/comments",
            params={"start": 5, "end": 12},
            headers=headers,
        ).json()

        assert [c["timestamp"] for c in listed] == [5, 12, 30]
        assert [c["timestamp"] for c in in_range] == [5, 12]

    def test_range_start_after_end(self, client):
        headers = sign_in(client, "owner-c")
        pid = create_project(client, headers)["project_id"]

        response = client.get(
            f"/v1/projects/{pid}/comments",
            params={"start": 9, "end": 3},
            headers=headers,
        )

        assert response.status_code == 400

    def test_update_and_annotate(self, client):
        headers = sign_in(client, "owner-d")
        pid = create_project(client, headers)["project_id"]
        comment = client.post(
            f"/v1/projects/{pid}/comments",
            json={"timestamp": 2, "text": "draft"},
            headers=headers,
        ).json()
        base = f"/v1/projects/{pid}/comments/{comment['comment_id']}"

        patched = client.patch(base, json={"text": "final"}, headers=headers)
        added = client.post(
            f"{base}/annotations",
            json={
                "type": "arrow",
                "coordinates": {"x": 0.1, "y": 0.2, "endX": 0.5, "endY": 0.6},
                "color": "#ff0000",
                "size": 3,
            },
            headers=headers,
        )
        removed = client.delete(f"{base}/annotations/7", headers=headers)

        assert patched.json()["text"] == "final"
        assert patched.json()["timestamp"] == 2
        assert added.status_code == 201
        assert added.json()[0]["coordinates"]["endX"] == 0.5
        assert len(removed.json()) == 1

    def test_invalid_annotation_shape(self, client):
        headers = sign_in(client, "owner-d")
        pid = create_project(client, headers)["project_id"]
        comment = client.post(
            f"/v1/projects/{pid}/comments",
            json={"timestamp": 2, "text": "x"},
            headers=headers,
        ).json()

        response = client.post(
            f"/v1/projects/{pid}/comments/{comment['comment_id']}/annotations",
            json={
                "type": "circle",
                "coordinates": {"x": 0.1, "y": 0.2},
                "color": "#ff0000",
                "size": 3,
            },
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid-argument"

    def test_stream_requires_access(self, client):
        pid = create_project(client, sign_in(client, "owner-e"))["project_id"]

        response = client.get(
            f"/v1/projects/{pid}/comments/stream",
            headers=sign_in(client, "stranger-e"),
        )

        assert response.status_code == 403

    def test_stream_rejects_infinite_bound(self, client):
        headers = sign_in(client, "owner-e2")
        pid = create_project(client, headers)["project_id"]

        response = client.get(
            f"/v1/projects/{pid}/comments/stream",
            params={"start": 0, "end": "inf"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid-argument"


class TestSharedLinks:
    def test_anonymous_link_holder_flow(self, client):
        owner = sign_in(client, "owner-s")
        project = create_project(client, owner)
        link = project["shareable_link"]
        guest = sign_in_anonymously(client)

        shared = client.get(f"/v1/shared/{link}")
        posted = client.post(
            f"/v1/shared/{link}/comments",
            json={"timestamp": 4.5, "text": "Looks great"},
            headers=guest,
        )
        listed = client.get(f"/v1/shared/{link}/comments")

        assert shared.status_code == 200
        assert shared.json()["project_id"] == project["project_id"]
        assert "collaborators" not in shared.json()
        assert posted.status_code == 201
        assert posted.json()["commenter_id"].startswith("anon_")
        assert [c["text"] for c in listed.json()] == ["Looks great"]

        edit = client.patch(
            f"/v1/projects/{project['project_id']}/comments/"
            f"{posted.json()['comment_id']}",
            json={"text": "changed"},
            headers=guest,
        )
        assert edit.status_code == 403

    def test_posting_requires_session(self, client):
        link = create_project(client, sign_in(client, "owner-s"))["shareable_link"]

        response = client.post(
            f"/v1/shared/{link}/comments", json={"timestamp": 1, "text": "hi"}
        )

        assert response.status_code == 401

    def test_unknown_link(self, client):
        assert client.get("/v1/shared/AAAAAAAAAAAAAAAA").status_code == 404

    def test_shared_stream_rejects_infinite_bound(self, client):
        link = create_project(client, sign_in(client, "owner-s"))["shareable_link"]

        response = client.get(
            f"/v1/shared/{link}/comments/stream", params={"start": 0, "end": "inf"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid-argument"


class TestCallableFunctions:
    def test_check_access(self, client):
        project = create_project(client, sign_in(client, "owner-f"))

        owner = client.post(
            "/v1/functions/check-access",
            json={"projectId": project["project_id"], "userId": "owner-f"},
        )
        stranger = client.post(
            "/v1/functions/check-access",
            json={"projectId": project["project_id"], "userId": "nobody"},
        )

        assert owner.json() == {"hasAccess": True, "role": "owner"}
        assert stranger.json() == {"hasAccess": False, "role": "none"}

    def test_check_access_requires_project_id(self, client):
        response = client.post("/v1/functions/check-access", json={"userId": "u"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "invalid-argument"

    def test_update_collaborators(self, client):
        owner = sign_in(client, "owner-g")
        pid = create_project(client, owner)["project_id"]

        response = client.post(
            "/v1/functions/update-collaborators",
            json={"projectId": pid, "userId": "helper", "action": "add"},
            headers=owner,
        )
        bad = client.post(
            "/v1/functions/update-collaborators",
            json={"projectId": pid, "userId": "helper", "action": "promote"},
            headers=owner,
        )

        assert response.json() == {
            "success": True,
            "action": "add",
            "userId": "helper",
            "collaborators": ["helper"],
        }
        assert bad.status_code == 400

    def test_update_collaborators_owner_only(self, client):
        pid = create_project(client, sign_in(client, "owner-h"))["project_id"]

        response = client.post(
            "/v1/functions/update-collaborators",
            json={"projectId": pid, "userId": "me", "action": "add"},
            headers=sign_in(client, "intruder"),
        )

        assert response.status_code == 403

    def test_generate_shareable_link(self, client):
        owner = sign_in(client, "owner-i")
        project = create_project(client, owner)

        response = client.post(
            "/v1/functions/generate-shareable-link",
            json={"projectId": project["project_id"]},
            headers=owner,
        )

        new_link = response.json()["shareableLink"]
        assert response.json()["success"] is True
        assert new_link != project["shareable_link"]
        assert client.get(f"/v1/shared/{project['shareable_link']}").status_code == 404
        assert client.get(f"/v1/shared/{new_link}").status_code == 200

    def test_generate_shareable_link_requires_session(self, client):
        response = client.post(
            "/v1/functions/generate-shareable-link", json={"projectId": "p"}
        )

        assert response.status_code == 401

    def test_generate_shareable_link_owner_only(self, client):
        owner = sign_in(client, "owner-i2")
        project = create_project(client, owner)
        client.post(
            "/v1/functions/update-collaborators",
            json={
                "projectId": project["project_id"],
                "userId": "editor-i2",
                "action": "add",
            },
            headers=owner,
        )

        response = client.post(
            "/v1/functions/generate-shareable-link",
            json={"projectId": project["project_id"]},
            headers=sign_in(client, "editor-i2"),
        )

        assert response.status_code == 403
        assert client.get(f"/v1/shared/{project['shareable_link']}").status_code == 200


class TestFiles:
    def test_upload_list_and_download_video(self, client):
        owner = sign_in(client, "owner-j")
        pid = create_project(client, owner)["project_id"]

        uploaded = client.put(
            f"/v1/projects/{pid}/videos/cut.mp4", content=b"0123456789", headers=owner
        )
        listed = client.get(f"/v1/projects/{pid}/videos", headers=owner)
        downloaded = client.get(f"/v1/files/videos/{pid}/cut.mp4")

        assert uploaded.status_code == 201
        assert uploaded.json()["size"] == 10
        assert listed.json() == [uploaded.json()["url"]]
        assert downloaded.content == b"0123456789"

    def test_upload_is_owner_only(self, client):
        pid = create_project(client, sign_in(client, "owner-k"))["project_id"]

        response = client.put(
            f"/v1/projects/{pid}/videos/cut.mp4",
            content=b"x",
            headers=sign_in(client, "not-owner"),
        )

        assert response.status_code == 403

    def test_download_missing_file(self, client):
        assert client.get("/v1/files/videos/nope/missing.mp4").status_code == 404

    def test_thumbnail_url(self, client):
        owner = sign_in(client, "owner-l")
        pid = create_project(client, owner)["project_id"]
        uploaded = client.put(
            f"/v1/projects/{pid}/thumbnails/thumb.jpg", content=b"jpeg", headers=owner
        )

        resolved = client.get(f"/v1/projects/{pid}/thumbnails/thumb.jpg", headers=owner)
        missing = client.get(f"/v1/projects/{pid}/thumbnails/other.jpg", headers=owner)
        stranger = client.get(
            f"/v1/projects/{pid}/thumbnails/thumb.jpg",
            headers=sign_in(client, "stranger-l"),
        )

        assert resolved.json() == {"url": uploaded.json()["url"]}
        assert client.get(resolved.json()["url"]).content == b"jpeg"
        assert missing.status_code == 404
        assert stranger.status_code == 403
