"""
Pytest fixtures: in-memory SQLite engine, seeded users/items, service objects
and an authenticated API client.
"""
import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.config import Settings, get_settings
from app.db.db import enable_sqlite_foreign_keys, get_session
from app.main import app
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.claim_request import ClaimRequest  # noqa: F401
from app.models.found_item import FoundItem
from app.models.lost_item import LostItem
from app.models.notification import Notification  # noqa: F401
from app.models.user import User
from app.services.claim_registry import ClaimRegistry
from app.services.side_effects import SideEffects
from app.utils.auth_helper import ALGORITHM
from app.utils.dependencies import get_side_effects


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def fk_engine():
    """Same in-memory database, with foreign keys enforced as in production."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def make_user(session: Session, public_id: str, role: str = "user") -> User:
    user = User(public_id=public_id, name=public_id.capitalize(), email=f"{public_id}@example.com", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_item(session: Session, kind: str, owner: User, **fields):
    model = LostItem if kind == "lost" else FoundItem
    defaults = {
        "title": f"Black wallet ({kind})",
        "category": "keys-wallets",
        "description": "Leather wallet with a red stitch on the front",
        "location": "Library",
    }
    defaults.update(fields)

    item = model(user_id=owner.id, **defaults)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@pytest.fixture
def users(session):
    return SimpleNamespace(
        owner=make_user(session, "owner"),
        alice=make_user(session, "alice"),
        bob=make_user(session, "bob"),
        moderator=make_user(session, "moderator", role="moderator"),
        admin=make_user(session, "admin", role="admin"),
    )


@pytest.fixture
def items(session, users):
    return SimpleNamespace(
        lost=make_item(session, "lost", users.owner),
        found=make_item(session, "found", users.owner, category="electronics", title="Grey laptop"),
    )


@pytest.fixture
def effects(engine):
    return SideEffects(lambda: Session(engine))


def make_settings(auto_reject_siblings: bool = False) -> Settings:
    settings = Settings()
    settings.auto_reject_sibling_claims = auto_reject_siblings
    return settings


@pytest.fixture
def registry(session, effects):
    return ClaimRegistry(session, effects, settings=make_settings())


@pytest.fixture
def auto_reject_registry(session, effects):
    return ClaimRegistry(session, effects, settings=make_settings(auto_reject_siblings=True))


@pytest.fixture
def client(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_side_effects] = lambda: SideEffects(lambda: Session(engine))

    yield TestClient(app)

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    token = jwt.encode({"sub": user.public_id}, get_settings().jwt_secret, algorithm=ALGORITHM)
    return {"Authorization": f"Bearer {token}"}
