from datetime import datetime

from blog_gateway.api import deps
from blog_gateway.models.db import Post, PostStatus, User

from conftest import ADMIN_EMAIL


def _create(client, headers, **fields):
    payload = {"title": "Hello", "content": "World"}
    payload.update(fields)
    return client.post("/admin/posts", json=payload, headers=headers)


def _ts(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_unauthenticated_create_never_reaches_handler(app, client):
    calls = {"repo": 0}

    def _counting_repository():
        calls["repo"] += 1
        raise AssertionError("repository must not be created for unauthenticated calls")

    app.dependency_overrides[deps.get_post_repository] = _counting_repository

    r = client.post("/admin/posts", json={"title": "T", "content": "C"})
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
    assert calls["repo"] == 0


def test_auth_is_checked_before_body_parsing(client, post_factory):
    post = post_factory()
    json_headers = {"Content-Type": "application/json"}

    r = client.post("/admin/posts", content=b'{"title": "x",', headers=json_headers)
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"

    r = client.put(f"/admin/posts/{post.id}", content=b'{"title": "x",', headers=json_headers)
    assert r.status_code == 401

    r = client.post("/admin/posts", json={"title": ""}, headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert "errors" not in r.json()

    assert client.put("/admin/posts/abc", json={}).status_code == 401


def test_invalid_token_is_401(client):
    r = client.get("/admin/posts", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert "timestamp" in r.json()


def test_wrong_scheme_is_401(client):
    assert client.get("/admin/posts", headers={"Authorization": "Basic abc"}).status_code == 401


def test_create_draft(client, admin_headers, db_session):
    r = _create(client, admin_headers)
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Post created successfully"
    post = body["data"]
    assert post["status"] == "draft"
    assert post["published_at"] is None
    assert post["is_published"] is False
    assert post["excerpt"] == "World"
    assert post["author"]["email"] == ADMIN_EMAIL


def test_create_published_sets_published_at(client, admin_headers):
    post = _create(client, admin_headers, status="published").json()["data"]
    assert post["published_at"] is not None
    assert _ts(post["published_at"]) >= _ts(post["created_at"])


def test_excerpt_derived_from_long_content(client, admin_headers):
    content = "a" * 150
    post = _create(client, admin_headers, content=content).json()["data"]
    assert post["excerpt"] == "a" * 100 + "..."


def test_explicit_excerpt_is_kept(client, admin_headers):
    post = _create(client, admin_headers, excerpt="Custom summary").json()["data"]
    assert post["excerpt"] == "Custom summary"


def test_author_is_created_lazily_once(client, admin_headers, db_session):
    assert db_session.query(User).filter_by(email=ADMIN_EMAIL).count() == 0
    _create(client, admin_headers)
    _create(client, admin_headers, title="Second")
    db_session.expire_all()
    users = db_session.query(User).filter_by(email=ADMIN_EMAIL).all()
    assert len(users) == 1
    assert users[0].name == "Admin User"
    assert db_session.query(Post).filter_by(user_id=users[0].id).count() == 2


def test_title_too_long_is_422(client, admin_headers):
    r = _create(client, admin_headers, title="x" * 300)
    assert r.status_code == 422
    body = r.json()
    assert body["message"] == "Validation failed"
    assert body["errors"]["title"] == ["Title must not exceed 255 characters"]


def test_missing_and_blank_fields_are_422(client, admin_headers):
    r = client.post("/admin/posts", json={"title": "   ", "content": ""}, headers=admin_headers)
    assert r.status_code == 422
    errors = r.json()["errors"]
    assert errors["title"] == ["Title is required"]
    assert errors["content"] == ["Content is required"]

    r = client.post("/admin/posts", json={}, headers=admin_headers)
    assert r.status_code == 422
    assert set(r.json()["errors"]) == {"title", "content"}


def test_unknown_status_is_422(client, admin_headers):
    r = _create(client, admin_headers, status="archived")
    assert r.status_code == 422
    assert "status" in r.json()["errors"]


def test_malformed_json_is_400(client, admin_headers):
    r = client.post(
        "/admin/posts",
        content=b'{"title": "x",',
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Malformed JSON body"


def test_publish_transition_and_preservation(client, admin_headers):
    draft = _create(client, admin_headers).json()["data"]
    post_id = draft["id"]

    published = client.put(
        f"/admin/posts/{post_id}",
        json={"title": "Hello", "content": "World", "status": "published"},
        headers=admin_headers,
    ).json()["data"]
    assert published["status"] == "published"
    first_published_at = published["published_at"]
    assert first_published_at is not None
    assert _ts(first_published_at) >= _ts(draft["created_at"])

    again = client.put(
        f"/admin/posts/{post_id}",
        json={"title": "Hello again", "content": "World", "status": "published"},
        headers=admin_headers,
    ).json()["data"]
    assert again["title"] == "Hello again"
    assert again["published_at"] == first_published_at

    unpublished = client.put(
        f"/admin/posts/{post_id}",
        json={"title": "Hello", "content": "World", "status": "draft"},
        headers=admin_headers,
    ).json()["data"]
    assert unpublished["status"] == "draft"
    assert unpublished["published_at"] is None


def test_update_without_status_keeps_current_status(client, admin_headers):
    post = _create(client, admin_headers, status="published").json()["data"]
    updated = client.put(
        f"/admin/posts/{post['id']}",
        json={"title": "Edited", "content": "Body"},
        headers=admin_headers,
    ).json()["data"]
    assert updated["status"] == "published"
    assert updated["published_at"] == post["published_at"]


def test_update_validates_body(client, admin_headers):
    post = _create(client, admin_headers).json()["data"]
    r = client.put(f"/admin/posts/{post['id']}", json={"title": "x" * 300, "content": "c"}, headers=admin_headers)
    assert r.status_code == 422
    assert "title" in r.json()["errors"]


def test_update_missing_post_is_404(client, admin_headers):
    r = client.put("/admin/posts/9999", json={"title": "T", "content": "C"}, headers=admin_headers)
    assert r.status_code == 404


def test_delete_then_get_is_404(client, admin_headers):
    post = _create(client, admin_headers).json()["data"]
    r = client.delete(f"/admin/posts/{post['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == f"Post {post['id']} deleted successfully"
    assert client.get(f"/admin/posts/{post['id']}", headers=admin_headers).status_code == 404


def test_delete_missing_post_reports_success(client, admin_headers):
    r = client.delete("/admin/posts/424242", headers=admin_headers)
    assert r.status_code == 200
    assert "deleted" in r.json()["message"]


def test_admin_get_returns_drafts(client, admin_headers, post_factory):
    draft = post_factory(status=PostStatus.DRAFT)
    r = client.get(f"/admin/posts/{draft.id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "draft"


def test_admin_list_status_filter(client, admin_headers, post_factory):
    draft = post_factory(title="Draft", status=PostStatus.DRAFT)
    published = post_factory(title="Live")

    def ids(**params):
        r = client.get("/admin/posts", params=params, headers=admin_headers)
        assert r.status_code == 200
        return [p["id"] for p in r.json()["data"]["data"]]

    assert ids() == [published.id, draft.id]
    assert ids(status="all") == [published.id, draft.id]
    assert ids(status="draft") == [draft.id]
    assert ids(status="published") == [published.id]


def test_admin_list_rejects_unknown_status(client, admin_headers):
    r = client.get("/admin/posts", params={"status": "archived"}, headers=admin_headers)
    assert r.status_code == 400


def test_storage_failure_is_500_without_details(app, client, admin_headers):
    from blog_gateway.errors import StorageError

    class _BrokenRepository:
        def list_posts(self, **kwargs):
            raise StorageError()

    app.dependency_overrides[deps.get_post_repository] = lambda: _BrokenRepository()
    r = client.get("/admin/posts", headers=admin_headers)
    assert r.status_code == 500
    assert r.json()["message"] == "Database error"
