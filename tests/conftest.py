import itertools
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure project root on sys.path so 'blog_gateway' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from blog_gateway.main import create_app  # type: ignore
from blog_gateway.database import Base  # type: ignore
from blog_gateway.api import deps  # type: ignore
"""Pytest fixtures and factories.

Every test gets a fresh app (own store, rate-limit counters and fake identity
provider) and a freshly created schema on a single in-memory SQLite connection.
The app lifespan is not entered, so the production engine is never touched.
"""
from blog_gateway.models.db import Post, PostStatus, User
from blog_gateway.services.identity import IdentityProviderError, IdentitySession, IdentityUser

ADMIN_TOKEN = "admin-token"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "correct-horse-battery"

engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeClock:
    """Settable epoch clock shared by the store and the rate limiters."""

    def __init__(self, start: float = 1_800_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeIdentityProvider:
    """In-process stand-in for Supabase Auth."""

    def __init__(self):
        self.tokens: Dict[str, IdentityUser] = {}
        self.passwords: Dict[str, Tuple[str, str]] = {}
        self.fail_with: Optional[Exception] = None
        self.get_user_calls = 0
        self.signed_out: List[str] = []

    def add_user(self, email: str, password: str, token: str, name: Optional[str] = None) -> IdentityUser:
        user = IdentityUser(id=f"uid-{len(self.tokens) + 1}", email=email, name=name)
        self.tokens[token] = user
        self.passwords[email] = (password, token)
        return user

    def get_user(self, token: str) -> Optional[IdentityUser]:
        self.get_user_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self.tokens.get(token)

    def sign_in(self, email: str, password: str) -> IdentitySession:
        if self.fail_with is not None:
            raise self.fail_with
        stored = self.passwords.get(email)
        if stored is None or stored[0] != password:
            raise IdentityProviderError("Invalid login credentials")
        return IdentitySession(user=self.tokens[stored[1]], access_token=stored[1])

    def sign_out(self, token: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.tokens.pop(token, None)
        self.signed_out.append(token)


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture()
def clock():
    return FakeClock()

@pytest.fixture()
def identity_provider():
    provider = FakeIdentityProvider()
    provider.add_user(ADMIN_EMAIL, ADMIN_PASSWORD, ADMIN_TOKEN, name="Admin User")
    return provider

@pytest.fixture()
def make_app(identity_provider, clock):
    """Build an app after the test has patched any settings dicts."""
    def _make(**kwargs):
        kwargs.setdefault("identity_provider", identity_provider)
        kwargs.setdefault("clock", clock)
        application = create_app(**kwargs)
        application.dependency_overrides[deps.get_db] = _override_get_db
        return application
    return _make

@pytest.fixture()
def app(make_app):
    return make_app()

@pytest.fixture()
def client(app):
    return TestClient(app)

@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(email: str = "author@example.com", name: str = "Author"):
        existing = db_session.query(User).filter_by(email=email).first()
        if existing:
            return existing
        u = User(email=email, name=name)
        db_session.add(u)
        db_session.commit()
        db_session.refresh(u)
        return u
    return _create

@pytest.fixture()
def post_factory(db_session, user_factory):
    """Create posts with strictly increasing created_at (later call = newer post)."""
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    counter = itertools.count()

    def _create(
        title: str = "A post",
        content: str = "Some body text",
        status: PostStatus = PostStatus.PUBLISHED,
        excerpt: Optional[str] = None,
        created_at: Optional[datetime] = None,
        author: Optional[User] = None,
    ):
        created = created_at or base + timedelta(minutes=next(counter))
        p = Post(
            title=title,
            content=content,
            excerpt=excerpt,
            status=status,
            published_at=created if status == PostStatus.PUBLISHED else None,
            created_at=created,
            updated_at=created,
            author=author or user_factory(),
        )
        db_session.add(p)
        db_session.commit()
        db_session.refresh(p)
        return p
    return _create
