from fastapi.testclient import TestClient

from blog_gateway import config
from blog_gateway.models.db import User
from blog_gateway.services.identity import IdentityProviderError

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_TOKEN


def test_login_returns_token_and_author(client, db_session):
    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Login successful"
    assert body["data"]["token"] == ADMIN_TOKEN
    assert body["data"]["user"]["email"] == ADMIN_EMAIL
    assert body["data"]["user"]["name"] == "Admin User"
    assert db_session.query(User).filter_by(email=ADMIN_EMAIL).count() == 1


def test_login_reuses_existing_author(client, db_session, user_factory):
    existing = user_factory(email=ADMIN_EMAIL, name="Existing Name")
    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.json()["data"]["user"]["id"] == existing.id
    assert db_session.query(User).filter_by(email=ADMIN_EMAIL).count() == 1


def test_login_wrong_password_is_401(client):
    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": "nope"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid credentials"


def test_login_provider_outage_is_401(client, identity_provider):
    identity_provider.fail_with = IdentityProviderError("connection refused")
    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 401


def test_login_body_validation(client):
    r = client.post("/login", json={"email": "not-an-email", "password": ""})
    assert r.status_code == 422
    assert set(r.json()["errors"]) == {"email", "password"}


def test_current_user(client, admin_headers):
    r = client.get("/user", headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["email"] == ADMIN_EMAIL
    assert data["name"] == "Admin User"
    assert data["id"]


def test_current_user_requires_token(client):
    assert client.get("/user").status_code == 401


def test_provider_outage_fails_closed(client, admin_headers, identity_provider):
    identity_provider.fail_with = IdentityProviderError("timeout")
    assert client.get("/user", headers=admin_headers).status_code == 401
    assert client.get("/admin/posts", headers=admin_headers).status_code == 401


def test_logout_revokes_session(client, admin_headers, identity_provider):
    r = client.post("/logout", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Logged out successfully"
    assert identity_provider.signed_out == [ADMIN_TOKEN]
    assert client.get("/user", headers=admin_headers).status_code == 401


def test_logout_revocation_failure_is_401(client, admin_headers, identity_provider, monkeypatch):
    def _failing_sign_out(token):
        raise IdentityProviderError("provider unavailable")

    monkeypatch.setattr(identity_provider, "sign_out", _failing_sign_out)
    assert client.post("/logout", headers=admin_headers).status_code == 401


def test_logout_requires_token(client):
    assert client.post("/logout").status_code == 401


def test_bootstrap_token_when_enabled(monkeypatch, make_app):
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_enabled", True)
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_token", "setup-token")
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_email", "setup@example.com")
    client = TestClient(make_app())

    headers = {"Authorization": "Bearer setup-token"}
    assert client.get("/user", headers=headers).json()["data"]["email"] == "setup@example.com"
    r = client.post("/admin/posts", json={"title": "First", "content": "Post"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["data"]["author"]["email"] == "setup@example.com"


def test_bootstrap_token_ignored_by_default(monkeypatch, make_app):
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_token", "setup-token")
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_enabled", False)
    client = TestClient(make_app())
    assert client.get("/user", headers={"Authorization": "Bearer setup-token"}).status_code == 401


def test_non_ascii_bearer_token_is_401_with_bootstrap_enabled(monkeypatch, make_app):
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_enabled", True)
    monkeypatch.setitem(config.AUTH_SETTINGS, "bootstrap_token", "boot")
    client = TestClient(make_app())
    r = client.get("/admin/posts", headers={"Authorization": b"Bearer \xe9t\xe9"})
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"
