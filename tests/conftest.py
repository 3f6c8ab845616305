import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("FRONTEND_URL", "https://app.example.com")

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.errors import Unauthenticated
from app.db.base import Base
from app.db.session import get_db
from app.dependencies.auth import get_identity_client
from app.main import app
from app.models.admin_role import AdminRole
from app.services.identity_client import AuthSession, AuthUser, MagicLink

ADMIN_ID = "00000000-0000-0000-0000-00000000a001"
USER_ID = "00000000-0000-0000-0000-00000000b002"
ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"


class FakeIdentityClient:
    """In-memory stand-in for SupabaseIdentityClient."""

    def __init__(self) -> None:
        self.users: Dict[str, AuthUser] = {}
        self.tokens: Dict[str, str] = {}
        self.generated_links: List[MagicLink] = []

    def add_user(self, user_id: str, email: Optional[str], token: Optional[str] = None) -> AuthUser:
        user = AuthUser(id=user_id, email=email, created_at="2026-01-01T00:00:00Z")
        self.users[user_id] = user
        if token:
            self.tokens[token] = user_id
        return user

    def get_user(self, token: str) -> AuthUser:
        user_id = self.tokens.get(token)
        if user_id is None:
            raise Unauthenticated("Invalid token signature")
        return self.users[user_id]

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        return self.users.get(user_id)

    def list_users(self) -> List[AuthUser]:
        return list(self.users.values())

    def generate_magic_link(self, email: str, redirect_to: Optional[str] = None) -> MagicLink:
        link = MagicLink(email=email, action_link=redirect_to, hashed_token=f"hash-{email}")
        self.generated_links.append(link)
        return link

    def verify_magic_link(self, link: MagicLink) -> AuthSession:
        return AuthSession(
            access_token=f"access-{link.email}",
            refresh_token=f"refresh-{link.email}",
            email=link.email,
        )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def identity() -> FakeIdentityClient:
    fake = FakeIdentityClient()
    fake.add_user(ADMIN_ID, "admin@example.com", token=ADMIN_TOKEN)
    fake.add_user(USER_ID, "user@example.com", token=USER_TOKEN)
    return fake


@pytest.fixture
def client(db_session, identity):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: identity
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(db_session) -> Dict[str, str]:
    db_session.add(AdminRole(user_id=ADMIN_ID, role="admin"))
    db_session.commit()
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def user_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {USER_TOKEN}"}
